"""test_executor.py — Plan execution state machine.

Drives real plans (move → eat) through the executor with the
steering/movement systems underneath and checks the lifecycle events,
the no-partial-effects rule on failure, cancellation and replanning.

Run:  python test_executor.py
"""
from __future__ import annotations
import sys, traceback

# ── Bootstrap ────────────────────────────────────────────────────────
from core.tuning import load as _load_tuning
_load_tuning()

from core.ecs import World
from core.events import EventBus
from components import (
    AgentState, WorldState, Need, Fact, Position, Velocity, Facing,
    Navigator, PointOfInterest, DevLog,
)
from logic.movement import NavHandle, steering_system, movement_system
from logic.perception import PoiLocator
from logic.goap.actions import EatAction, MoveToAction, NoOpAction
from logic.goap.goals import EatGoal, IdleGoal
from logic.goap.planner import Plan, Planner
from logic.goap.executor import Executor, ExecState


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

DT = 1.0 / 60.0  # 60 FPS


# ── Fixtures ─────────────────────────────────────────────────────────

class _Rig:
    """Agent at the origin, a food bowl 10 m east, executor wired to a bus."""

    def __init__(self, hunger: float = 0.9):
        self.world = World()
        self.facts = WorldState()
        self.world.set_res(self.facts)
        self.eid = self.world.spawn(Position(0.0, 0.0), Velocity(), Facing(), Navigator())
        self.bowl = self.world.spawn(Position(10.0, 0.0),
                                     PointOfInterest(kind="food", supports=["eat"]))
        self.agent = AgentState(needs={Need.HUNGER: hunger, Need.THIRST: 0.1,
                                       Need.SLEEP: 0.1, Need.PLAY: 0.1})
        self.nav = NavHandle(self.world, self.eid)
        self.move = MoveToAction(self.nav, PoiLocator(self.world), "eat", Fact.AT_FOOD)
        self.eat = EatAction(duration=2.0)
        self.actions = [self.move, self.eat, NoOpAction()]
        self.bus = EventBus()
        self.devlog = DevLog()
        self.executor = Executor(self.eid, self.bus, self.devlog, "rex")
        self.planner = Planner()

    def plan(self, goal=None) -> Plan:
        return self.planner.create_plan(goal or EatGoal(), self.agent, self.facts,
                                        self.actions)

    def frame(self) -> None:
        self.executor.update(self.agent, self.facts, DT)
        steering_system(self.world, DT)
        movement_system(self.world, DT)

    def run(self, frames: int) -> None:
        for _ in range(frames):
            if not self.executor.is_executing:
                return
            self.frame()

    def events(self) -> list[tuple]:
        out = []
        for e in self.bus.pending():
            name = type(e).__name__
            detail = getattr(e, "action_type", None) or getattr(e, "goal_type", None)
            if name == "PlanCompleted":
                detail = (e.goal_type, e.success)
            out.append((name, detail))
        return out


# ═══════════════════════════════════════════════════════════════════════
#  1. HAPPY PATH
# ═══════════════════════════════════════════════════════════════════════

def test_full_plan():
    print("\n=== 1: Full Plan Lifecycle ===")
    rig = _Rig()
    ex = rig.executor
    check(ex.state is ExecState.IDLE and not ex.is_executing, "1a: starts idle")

    ex.set_plan(rig.plan())
    check(ex.is_executing and ex.remaining == 2, "1b: running with two steps")
    check(ex.current_action is rig.move, "1c: first step is the move")

    rig.frame()
    check(rig.move.is_executing, "1d: move started on the first update")
    rig.run(60 * 10)

    check(ex.state is ExecState.SUCCEEDED and ex.is_complete and not ex.has_failed,
          "1e: plan succeeded", f"state={ex.state}")
    check(rig.agent.get_need(Need.HUNGER) == 0.0, "1f: hunger reset")
    check(rig.agent.get_fact(Fact.AT_FOOD) is False, "1g: left the food afterwards")
    check(ex.remaining == 0 and ex.current_action is None, "1h: nothing left to run")
    check(not rig.move.is_executing and not rig.eat.is_executing,
          "1i: no action left executing")

    expected = [
        ("PlanCreated", "eat"),
        ("ActionStarted", "move_to_food"),
        ("ActionSucceeded", "move_to_food"),
        ("ActionStarted", "eat"),
        ("ActionSucceeded", "eat"),
        ("PlanCompleted", ("eat", True)),
    ]
    check(rig.events() == expected, "1j: lifecycle events in order",
          f"got {rig.events()}")
    cats = {e["cat"] for e in rig.devlog.for_eid(rig.eid)}
    check({"plan", "action"} <= cats, "1k: lifecycle mirrored into the dev log",
          f"cats={cats}")

    ex.update(rig.agent, rig.facts, DT)
    check(ex.state is ExecState.SUCCEEDED and len(rig.bus.pending()) == len(expected),
          "1l: updating a finished plan is a no-op")


# ═══════════════════════════════════════════════════════════════════════
#  2. FAILURES
# ═══════════════════════════════════════════════════════════════════════

def test_precondition_broken_at_start():
    print("\n=== 2: Precondition Broken at Start ===")
    rig = _Rig()
    rig.agent.set_fact(Fact.AT_FOOD, True)
    plan = rig.plan()
    check(plan.action_types() == ("eat",), "2a: at food → eat-only plan")

    rig.agent.set_fact(Fact.AT_FOOD, False)
    rig.executor.set_plan(plan)
    rig.frame()
    ex = rig.executor
    check(ex.has_failed, "2b: plan fails when eat cannot start")
    check(not rig.eat.is_executing, "2c: eat never started")
    check(rig.agent.get_need(Need.HUNGER) == 0.9, "2d: hunger untouched")
    names = [name for name, _ in rig.events()]
    check(names == ["PlanCreated", "ActionFailed", "PlanCompleted"],
          "2e: failure events", f"got {names}")
    check("eat" in ex.last_failure, "2f: failure reason kept", ex.last_failure)


def test_action_fails_midway():
    print("\n=== 3: Action Fails Mid-Plan ===")
    rig = _Rig()
    rig.executor.set_plan(rig.plan())
    rig.run(30)
    check(rig.move.is_executing, "3a: walking toward the bowl")

    rig.world.get(rig.bowl, PointOfInterest).supports.clear()
    before = (dict(rig.agent.needs), rig.agent.all_facts(), rig.facts.all_facts())
    rig.frame()

    ex = rig.executor
    check(ex.has_failed, "3b: plan failed")
    check((dict(rig.agent.needs), rig.agent.all_facts(), rig.facts.all_facts()) == before,
          "3c: no partial effects from the failed plan")
    check(not rig.move.is_executing, "3d: move cancelled")
    check(not rig.world.get(rig.eid, Navigator).has_destination,
          "3e: navigation stopped")
    check(("PlanCompleted", ("eat", False)) in rig.events(),
          "3f: plan completion reports failure")
    check("no eat location left" in ex.last_failure, "3g: reason from the action",
          ex.last_failure)


# ═══════════════════════════════════════════════════════════════════════
#  3. CONTROL
# ═══════════════════════════════════════════════════════════════════════

def test_cancel_and_switch():
    print("\n=== 4: Cancel + Plan Switch ===")
    rig = _Rig()
    ex = rig.executor
    ex.cancel_execution()
    ok("4a: cancel with nothing running is safe")

    ex.set_plan(rig.plan())
    rig.run(10)
    ex.cancel_execution()
    ex.cancel_execution()
    check(not rig.move.is_executing, "4b: cancel stops the running action")
    check(rig.agent.get_fact(Fact.AT_FOOD) is False, "4c: cancel applied nothing")

    ex.set_plan(rig.plan())
    rig.run(10)
    idle = rig.planner.create_plan(IdleGoal(), rig.agent, rig.facts, rig.actions)
    ex.set_plan(idle)
    check(not rig.move.is_executing, "4d: new plan cancels the old action")
    check(ex.current_goal.goal_type == "idle" and ex.current_index == 0,
          "4e: new plan starts at its first step")

    ex.set_plan(None)
    check(ex.state is ExecState.IDLE and not ex.is_executing, "4f: clearing the plan")

    ex.set_plan(rig.plan())
    rig.run(10)
    ex.fail("arbitration gave up")
    check(ex.has_failed and ex.last_failure == "arbitration gave up"
          and not rig.move.is_executing, "4g: external fail cancels and records")


def test_replan():
    print("\n=== 5: Replan ===")
    rig = _Rig()
    ex = rig.executor
    check(ex.replan(rig.agent, rig.facts, rig.actions, rig.planner) is None,
          "5a: replan without a goal does nothing")

    ex.set_plan(rig.plan())
    rig.run(30)
    plan = ex.replan(rig.agent, rig.facts, rig.actions, rig.planner)
    check(plan is not None and ex.is_executing and ex.current_index == 0,
          "5b: replan adopts a fresh plan")
    check(plan.action_types() == ("move_to_food", "eat"), "5c: same route re-planned")

    rig.agent.set_need(Need.HUNGER, 0.1)
    check(ex.replan(rig.agent, rig.facts, rig.actions, rig.planner) is None
          and ex.state is ExecState.SUCCEEDED,
          "5d: replan of an already-completed goal succeeds")

    rig = _Rig()
    ex = rig.executor
    ex.set_plan(rig.plan())
    rig.run(30)
    rig.world.get(rig.bowl, PointOfInterest).active = False
    check(ex.replan(rig.agent, rig.facts, rig.actions, rig.planner) is None,
          "5e: replan with no food left yields nothing")
    check(ex.has_failed and ex.current_plan is None, "5f: executor ends failed")
    check("at_food" in ex.last_failure, "5g: planner reason kept", ex.last_failure)
    check(not rig.move.is_executing, "5h: old action cancelled")


# ═══════════════════════════════════════════════════════════════════════
#  MAIN
# ═══════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    sections = [
        ("Full Plan", test_full_plan),
        ("Precondition Broken", test_precondition_broken_at_start),
        ("Action Fails Midway", test_action_fails_midway),
        ("Cancel + Switch", test_cancel_and_switch),
        ("Replan", test_replan),
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
    print(f"  Executor Tests: {_passed} passed, {_failed} failed  "
          f"(total {total})")
    print(f"{'=' * 60}")
    sys.exit(1 if _failed else 0)
