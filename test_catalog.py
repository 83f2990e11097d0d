"""test_catalog.py — TOML catalogs, kind registry, validation and fallback.

Run:  python test_catalog.py
"""
from __future__ import annotations
import sys, random, tempfile, traceback
from pathlib import Path

# ── Bootstrap ────────────────────────────────────────────────────────
from core.tuning import load as _load_tuning
_load_tuning()

from core.ecs import World
from core.events import EventBus
from components import (
    WorldState, Need, Fact, Position, Velocity, Facing, Navigator,
)
from logic.movement import NavHandle
from logic.perception import PoiLocator
from logic.goap.actions import NeedReductionAction, MoveToAction, NoOpAction
from logic.goap.goals import EatGoal, IdleGoal
from logic.goap.catalog import (
    AgentContext, load_catalog, build_catalog, standard_catalog,
    fallback_catalog, validate_catalog, register_action_kind, action_kinds,
    goal_kinds, default_path,
)


# ── Test harness ─────────────────────────────────────────────────────

_passed = 0
_failed = 0

def ok(label: str):
    global _passed
    _passed += 1
    print(f"  [PASS] {label}")

def fail(label: str, detail: str = ""):
    global _failed
    _failed += 1
    msg = f"  [FAIL] {label}"
    if detail:
        msg += f" — {detail}"
    print(msg)

def check(cond: bool, label: str, detail: str = ""):
    if cond:
        ok(label)
    else:
        fail(label, detail)
    assert cond, f"{label} {detail}".strip()


def _ctx(with_nav: bool = True) -> AgentContext:
    w = World()
    w.set_res(WorldState())
    eid = w.spawn(Position(0.0, 0.0), Velocity(), Facing(), Navigator())
    if not with_nav:
        return AgentContext(eid=eid, rng=random.Random(1), bus=EventBus())
    return AgentContext(eid=eid, nav=NavHandle(w, eid), locator=PoiLocator(w),
                        rng=random.Random(1), bus=EventBus())


# ═══════════════════════════════════════════════════════════════════════
#  1. SHIPPED CATALOG
# ═══════════════════════════════════════════════════════════════════════

def test_shipped_catalog():
    print("\n=== 1: Shipped Catalog ===")
    check(default_path().exists(), "1a: data/catalog.toml ships with the project")

    cat = load_catalog(ctx=_ctx())
    check(not cat.fallback_used, "1b: shipped catalog is usable", f"{cat.diagnostics}")
    check(cat.diagnostics == [], "1c: shipped catalog validates cleanly",
          f"{cat.diagnostics}")
    check(cat.goal_types() == ["eat", "drink", "sleep", "play", "communication", "idle"],
          "1d: goals in file order", f"{cat.goal_types()}")
    expected = {"eat", "drink", "sleep", "play",
                "move_to_food", "move_to_water", "move_to_bed", "move_to_toy",
                "say_random", "investigate", "wander", "bark", "noop"}
    check(set(cat.action_types()) == expected, "1e: every action built",
          f"{cat.action_types()}")

    builtin = standard_catalog(_ctx())
    check(builtin.diagnostics == [] and builtin.goal_types() == cat.goal_types()
          and set(builtin.action_types()) == expected,
          "1f: built-in catalog matches the file")

    bare = load_catalog(ctx=_ctx(with_nav=False))
    check(not bare.fallback_used, "1g: catalog without movement still usable")
    check(any("movement handle" in d for d in bare.diagnostics),
          "1h: movement entries reported", f"{bare.diagnostics}")
    check(any("eat requires at_food" in d for d in bare.diagnostics),
          "1i: unreachable consumption reported")


# ═══════════════════════════════════════════════════════════════════════
#  2. BAD INPUT
# ═══════════════════════════════════════════════════════════════════════

def test_bad_entries():
    print("\n=== 2: Bad Entries ===")
    ctx = _ctx()

    cat = build_catalog({"goals": [{"kind": "nope"}, {"kind": "idle"}],
                         "actions": [{"kind": "noop"}]}, ctx)
    check(not cat.fallback_used and cat.goal_types() == ["idle"],
          "2a: unknown kind skipped, rest kept")
    check(any("unknown kind 'nope'" in d for d in cat.diagnostics),
          "2b: unknown kind reported", f"{cat.diagnostics}")

    bad_goals = [
        ({"kind": "need", "type": "eat", "need": "hunger",
          "activation": 0.1, "completion": 0.5}, "must be above completion"),
        ({"kind": "need", "need": "hunger"}, "missing field 'type'"),
        ({"kind": "need", "type": "bore", "need": "boredom"}, "boredom"),
        ("eat", "expected a table"),
    ]
    for entry, needle in bad_goals:
        cat = build_catalog({"goals": [entry, {"kind": "idle"}],
                             "actions": [{"kind": "noop"}]}, ctx)
        check(any(needle in d for d in cat.diagnostics),
              f"2c: {needle!r} reported", f"{cat.diagnostics}")

    cat = build_catalog({"goals": [{"kind": "idle"}],
                         "actions": [{"kind": "move_to", "goal": "eat",
                                      "location": "idle"}, {"kind": "noop"}]}, ctx)
    check(any("not a location fact" in d for d in cat.diagnostics),
          "2d: move_to to a non-location reported", f"{cat.diagnostics}")

    cat = build_catalog({"goals": [{"kind": "idle"}],
                         "actions": [{"kind": "noop", "cost": -2.0}]}, ctx)
    check(cat.fallback_used and any("cost" in d for d in cat.diagnostics),
          "2e: negative cost rejected, nothing left → fallback", f"{cat.diagnostics}")


def test_fallback():
    print("\n=== 3: Fallback Catalog ===")
    ctx = _ctx()

    cat = build_catalog({}, ctx)
    check(cat.fallback_used, "3a: empty catalog → fallback")
    check(cat.goal_types() == ["idle"] and cat.action_types() == ["noop"],
          "3b: fallback is idle + noop")
    check(any("no usable goals" in d for d in cat.diagnostics), "3c: reason kept")

    cat = load_catalog("/nonexistent/catalog.toml", ctx)
    check(cat.fallback_used and any("not found" in d for d in cat.diagnostics),
          "3d: missing file → fallback")

    with tempfile.TemporaryDirectory() as tmp:
        broken = Path(tmp) / "broken.toml"
        broken.write_text("[[goals]\nkind = \n")
        cat = load_catalog(broken, ctx)
    check(cat.fallback_used and any("not valid TOML" in d for d in cat.diagnostics),
          "3e: broken TOML → fallback", f"{cat.diagnostics}")

    cat = fallback_catalog(["custom reason"])
    check(cat.diagnostics[0] == "custom reason" and cat.fallback_used,
          "3f: fallback keeps caller diagnostics")


# ═══════════════════════════════════════════════════════════════════════
#  4. VALIDATION + REGISTRY
# ═══════════════════════════════════════════════════════════════════════

def test_validation():
    print("\n=== 4: Validation ===")
    ctx = _ctx()

    problems = validate_catalog([EatGoal()], [NoOpAction()])
    check(any("goal 'eat': no action produces need_hunger" in p for p in problems),
          "4a: goal with no producer flagged", f"{problems}")

    problems = validate_catalog([IdleGoal(), IdleGoal()], [NoOpAction(), NoOpAction()])
    check(any("duplicate action type 'noop'" in p for p in problems)
          and any("duplicate goal type 'idle'" in p for p in problems),
          "4b: duplicates flagged", f"{problems}")

    move = MoveToAction(ctx.nav, ctx.locator, "eat", Fact.AT_FOOD)
    problems = validate_catalog([IdleGoal()], [NoOpAction(), move])
    check(any("produces at_food but nothing requires it" in p for p in problems),
          "4c: unused location flagged", f"{problems}")

    cat = build_catalog({"goals": [{"kind": "idle"}],
                         "actions": [{"kind": "noop"}, {"kind": "noop"}]}, ctx)
    check(not cat.fallback_used and any("duplicate" in d for d in cat.diagnostics),
          "4d: duplicates reported but not fatal")


def test_registry():
    print("\n=== 5: Kind Registry ===")
    check({"need", "idle", "communication"} <= set(goal_kinds()), "5a: goal kinds")
    check({"move_to", "noop", "bark", "say_random"} <= set(action_kinds()),
          "5b: action kinds")

    register_action_kind("nap", lambda e, ctx: NeedReductionAction(
        "nap", Need.SLEEP, Fact.AT_BED, duration=e.get("duration", 1.0)))
    check("nap" in action_kinds(), "5c: custom kind registered")

    cat = build_catalog({
        "goals": [{"kind": "sleep"}],
        "actions": [{"kind": "nap", "duration": 4.0},
                    {"kind": "move_to", "goal": "sleep", "location": "at_bed"}],
    }, _ctx())
    check(not cat.fallback_used and cat.diagnostics == [],
          "5d: custom kind builds and validates", f"{cat.diagnostics}")
    nap = cat.actions[0]
    check(nap.action_type == "nap" and nap.duration == 4.0, "5e: fields passed through")

    cat = build_catalog({
        "goals": [{"kind": "need", "type": "snack", "need": "need_hunger",
                   "activation": 0.3, "completion": 0.1}],
        "actions": [{"kind": "need_reduction", "type": "nibble", "need": "hunger",
                     "location": "at_food", "target": 0.05},
                    {"kind": "move_to", "goal": "snack", "location": "at_food"}],
    }, _ctx())
    check(cat.goal_types() == ["snack"] and cat.action_types()[0] == "nibble",
          "5f: generic need kinds accept both need spellings", f"{cat.diagnostics}")


# ═══════════════════════════════════════════════════════════════════════
#  MAIN
# ═══════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    sections = [
        ("Shipped Catalog", test_shipped_catalog),
        ("Bad Entries", test_bad_entries),
        ("Fallback", test_fallback),
        ("Validation", test_validation),
        ("Registry", test_registry),
    ]

    for name, fn in sections:
        try:
            fn()
        except AssertionError:
            print(f"  [ABORT] {name} — stopped at the first failed check")
        except Exception:
            _failed += 1
            print(f"\n  [CRASH] {name} — unhandled exception:")
            traceback.print_exc()

    total = _passed + _failed
    print(f"\n{'=' * 60}")
    print(f"  Catalog Tests: {_passed} passed, {_failed} failed  "
          f"(total {total})")
    print(f"{'=' * 60}")
    sys.exit(1 if _failed else 0)
