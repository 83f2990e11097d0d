"""test_planner.py — Backward-chaining plan search and plan validity.

Run:  python test_planner.py
"""
from __future__ import annotations
import sys, traceback
from dataclasses import FrozenInstanceError

# ── Bootstrap ────────────────────────────────────────────────────────
from core.tuning import load as _load_tuning
_load_tuning()

from core.ecs import World
from components import (
    AgentState, WorldState, Need, Fact, Position, Velocity, Facing,
    Navigator, PointOfInterest,
)
from logic.movement import NavHandle
from logic.perception import PoiLocator
from logic.goap.actions import (
    Action, ActionResult, NeedReductionAction, EatAction, MoveToAction, NoOpAction,
)
from logic.goap.goals import Goal, EatGoal, IdleGoal
from logic.goap.planner import Plan, Planner, is_plan_valid, provides


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


# ── Fixtures ─────────────────────────────────────────────────────────

class _Step(Action):
    """Declarative test action: fixed preconditions and effects."""

    def __init__(self, action_type: str, pre: dict, eff: dict, cost: float = 1.0):
        self.action_type = action_type
        super().__init__(cost)
        self._pre = pre
        self._eff = eff

    @property
    def preconditions(self):
        return self._pre

    @property
    def effects(self):
        return self._eff

    def update_execution(self, agent, world, dt):
        return ActionResult.SUCCESS


class _WantsNothing(Goal):
    goal_type = "nothing"

    def can_satisfy(self, agent, world):
        return True

    def is_completed(self, agent, world):
        return False

    def calculate_priority(self, agent, world):
        return 1.0

    def desired_state(self):
        return {}


def _setup(hunger: float = 0.9, food: bool = True):
    """Agent at the origin, optional food bowl 10 m east.

    Returns ``(world, facts, agent, nav, locator, bowl_eid)``.
    """
    w = World()
    facts = WorldState()
    w.set_res(facts)
    eid = w.spawn(Position(0.0, 0.0), Velocity(), Facing(), Navigator())
    bowl = None
    if food:
        bowl = w.spawn(Position(10.0, 0.0),
                       PointOfInterest(kind="food", supports=["eat"]))
    w.spawn(Position(0.0, 12.0), PointOfInterest(kind="water", supports=["drink"]))
    agent = AgentState(needs={Need.HUNGER: hunger, Need.THIRST: 0.1,
                              Need.SLEEP: 0.1, Need.PLAY: 0.1})
    return w, facts, agent, NavHandle(w, eid), PoiLocator(w), bowl


# ═══════════════════════════════════════════════════════════════════════
#  1. ORDERING
# ═══════════════════════════════════════════════════════════════════════

def test_plan_ordering():
    print("\n=== 1: Plan Ordering ===")
    w, facts, agent, nav, loc, bowl = _setup()
    move = MoveToAction(nav, loc, "eat", Fact.AT_FOOD)
    eat = EatAction()
    planner = Planner()

    plan = planner.create_plan(EatGoal(), agent, facts, [move, eat, NoOpAction()])
    check(plan is not None, "1a: eat goal plans", planner.last_failure)
    check(plan.action_types() == ("move_to_food", "eat"),
          "1b: move comes before eat", f"got {plan.action_types()}")
    check(abs(plan.total_cost - 2.0) < 1e-9, "1c: total cost sums the actions",
          f"cost={plan.total_cost}")
    check(len(plan) == 2 and plan.goal.goal_type == "eat", "1d: plan length and goal")

    again = planner.create_plan(EatGoal(), agent, facts, [eat, NoOpAction(), move])
    check(again.action_types() == ("move_to_food", "eat"),
          "1e: catalog order does not change the plan")

    agent.set_fact(Fact.AT_FOOD, True)
    plan = planner.create_plan(EatGoal(), agent, facts, [move, eat])
    check(plan.action_types() == ("eat",), "1f: already at food → eat only")

    types = plan.action_types()
    check(len(set(types)) == len(types), "1g: no action appears twice")

    first = planner.create_plan(EatGoal(), agent, facts, [move, eat])
    second = planner.create_plan(EatGoal(), agent, facts, [move, eat])
    check(first.action_types() == second.action_types(), "1h: planning is deterministic")

    try:
        plan.actions = ()
        fail("1i: plans are immutable")
    except FrozenInstanceError:
        ok("1i: plans are immutable")

    check("move_to_food" in Plan(EatGoal(), (move, eat)).describe(),
          "1j: describe lists the steps")


# ═══════════════════════════════════════════════════════════════════════
#  2. FAILURE MODES
# ═══════════════════════════════════════════════════════════════════════

def test_unplannable():
    print("\n=== 2: Unplannable Goals ===")
    w, facts, agent, nav, loc, bowl = _setup()
    planner = Planner()

    plan = planner.create_plan(EatGoal(), agent, facts, [EatAction(), NoOpAction()])
    check(plan is None, "2a: no producer of at_food → no plan")
    check("at_food" in planner.last_failure, "2b: reason names the missing fact",
          planner.last_failure)

    plan = planner.create_plan(EatGoal(), agent, facts, [NoOpAction()])
    check(plan is None and "need_hunger" in planner.last_failure,
          "2c: no producer of the goal key", planner.last_failure)

    w, facts, agent, nav, loc, _ = _setup(food=False)
    plan = planner.create_plan(EatGoal(), agent, facts,
                               [MoveToAction(nav, loc, "eat", Fact.AT_FOOD), EatAction()])
    check(plan is None and "no runnable action" in planner.last_failure,
          "2d: move exists but no food POI → no plan", planner.last_failure)

    plan = planner.create_plan(_WantsNothing(), agent, facts, [NoOpAction()])
    check(plan is None and "empty desired state" in planner.last_failure,
          "2e: empty desired state is unplannable")

    ok_plan = Planner().create_plan(IdleGoal(), agent, facts, [NoOpAction()])
    check(ok_plan is not None, "2f: last_failure resets on success")


# ═══════════════════════════════════════════════════════════════════════
#  3. BOUNDS + CYCLES
# ═══════════════════════════════════════════════════════════════════════

def test_bounds_and_cycles():
    print("\n=== 3: Depth, Iteration and Cycle Bounds ===")
    agent = AgentState(needs={need: 0.0 for need in Need})
    facts = WorldState()

    chain = [
        _Step("settle", {Fact.INVESTIGATING: True}, {Fact.IDLE: True}),
        _Step("sniff", {Fact.AT_TOY: True}, {Fact.INVESTIGATING: True}),
        _Step("go_toy", {}, {Fact.AT_TOY: True}),
    ]
    plan = Planner().create_plan(IdleGoal(), agent, facts, chain)
    check(plan is not None and plan.action_types() == ("go_toy", "sniff", "settle"),
          "3a: three-level chain resolves in order",
          f"got {plan.action_types() if plan else None}")

    shallow = Planner(max_depth=2)
    check(shallow.create_plan(IdleGoal(), agent, facts, chain) is None,
          "3b: chain deeper than max_depth fails")
    check("deeper than 2" in shallow.last_failure, "3c: depth failure reported",
          shallow.last_failure)

    hasty = Planner(max_iterations=2)
    check(hasty.create_plan(IdleGoal(), agent, facts, chain) is None
          and "iterations" in hasty.last_failure,
          "3d: iteration bound stops the search", hasty.last_failure)

    loop = [
        _Step("settle", {Fact.INVESTIGATING: True}, {Fact.IDLE: True}),
        _Step("sniff", {Fact.IDLE: True}, {Fact.INVESTIGATING: True}),
    ]
    planner = Planner()
    check(planner.create_plan(IdleGoal(), agent, facts, loop) is None,
          "3e: circular dependency yields no plan")
    check("cycle" in planner.last_failure, "3f: cycle reported", planner.last_failure)

    self_loop = [_Step("spin", {Fact.IDLE: True}, {Fact.IDLE: True})]
    check(Planner().create_plan(IdleGoal(), agent, facts, self_loop) is None,
          "3g: self-dependent action yields no plan")


# ═══════════════════════════════════════════════════════════════════════
#  4. CANDIDATE CHOICE
# ═══════════════════════════════════════════════════════════════════════

def test_candidate_choice():
    print("\n=== 4: Candidate Choice ===")
    w, facts, agent, nav, loc, bowl = _setup()
    move = MoveToAction(nav, loc, "eat", Fact.AT_FOOD)
    planner = Planner()

    gobble = NeedReductionAction("gobble", Need.HUNGER, Fact.AT_FOOD, cost=0.5)
    plan = planner.create_plan(EatGoal(), agent, facts, [EatAction(), gobble, move])
    check(plan.action_types() == ("move_to_food", "gobble"),
          "4a: cheapest producer wins", f"got {plan.action_types()}")

    first, second = NoOpAction(cost=0.7), NoOpAction(cost=0.7)
    plan = planner.create_plan(IdleGoal(), agent, facts, [first, second])
    check(plan.actions[0] is first, "4b: equal cost → catalog order")
    plan = planner.create_plan(IdleGoal(), agent, facts, [second, first])
    check(plan.actions[0] is second, "4c: reversed catalog → other action")

    nowhere = MoveToAction(nav, loc, "feast", Fact.AT_FOOD, cost=0.1)
    plan = planner.create_plan(EatGoal(), agent, facts, [nowhere, move, EatAction()])
    check(plan is not None and plan.actions[0] is move,
          "4d: cheap but unrunnable move skipped",
          f"got {plan.actions if plan else planner.last_failure}")

    check(provides(EatAction(), Need.HUNGER, 0.0), "4e: eat provides hunger=0")
    check(provides(EatAction(), Need.HUNGER, 0.2), "4f: lower need satisfies a looser target")
    check(not provides(EatAction(), Fact.AT_FOOD, True), "4g: eat does not provide at_food")


# ═══════════════════════════════════════════════════════════════════════
#  5. PLAN VALIDITY
# ═══════════════════════════════════════════════════════════════════════

def test_plan_validity():
    print("\n=== 5: Plan Validity ===")
    w, facts, agent, nav, loc, bowl = _setup()
    move = MoveToAction(nav, loc, "eat", Fact.AT_FOOD)
    plan = Planner().create_plan(EatGoal(), agent, facts, [move, EatAction()])

    check(is_plan_valid(plan, agent, facts), "5a: fresh plan is valid")
    check(not is_plan_valid(None, agent, facts), "5b: no plan is never valid")
    check(not is_plan_valid(plan, agent, facts, index=1),
          "5c: eat step invalid before arriving")
    check(is_plan_valid(plan, agent, facts, index=2), "5d: past the end is valid")

    w.get(bowl, PointOfInterest).active = False
    check(not is_plan_valid(plan, agent, facts), "5e: invalid once the food vanished")
    w.get(bowl, PointOfInterest).active = True
    check(is_plan_valid(plan, agent, facts), "5f: valid again when it returns")

    agent.set_need(Need.HUNGER, 0.1)
    check(not is_plan_valid(plan, agent, facts), "5g: invalid once the goal completed")


# ═══════════════════════════════════════════════════════════════════════
#  MAIN
# ═══════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    sections = [
        ("Plan Ordering", test_plan_ordering),
        ("Unplannable", test_unplannable),
        ("Bounds + Cycles", test_bounds_and_cycles),
        ("Candidate Choice", test_candidate_choice),
        ("Plan Validity", test_plan_validity),
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
    print(f"  Planner Tests: {_passed} passed, {_failed} failed  "
          f"(total {total})")
    print(f"{'=' * 60}")
    sys.exit(1 if _failed else 0)
