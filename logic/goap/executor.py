"""logic/goap/executor.py — Drives a plan one action at a time.

State machine per plan::

    IDLE ─set_plan→ RUNNING(i) ─success→ RUNNING(i+1) … ─→ SUCCEEDED
                               └─failed / precondition broke─→ FAILED

Lifecycle transitions are published on the ``EventBus`` (ActionStarted,
ActionSucceeded, ActionFailed, PlanCompleted) and mirrored into the
``DevLog``.  The executor never picks goals; that is the arbitration
loop's job.
"""

from __future__ import annotations
from enum import Enum
from typing import TYPE_CHECKING, Callable

from core.events import (
    ActionStarted, ActionSucceeded, ActionFailed, PlanCompleted, PlanCreated,
)
from logic.goap.actions import Action, ActionResult

if TYPE_CHECKING:
    from components.dev_log import DevLog
    from components.state import AgentState, WorldState
    from core.events import EventBus
    from logic.goap.goals import Goal
    from logic.goap.planner import Plan, Planner


class ExecState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Executor:
    def __init__(self, eid: int = 0, bus: EventBus | None = None,
                 devlog: DevLog | None = None, name: str = "",
                 clock: Callable[[], float] | None = None):
        self.eid = eid
        self.bus = bus
        self.devlog = devlog
        self.name = name
        self.clock = clock
        self.state = ExecState.IDLE
        self.last_failure = ""
        self._plan: Plan | None = None
        self._goal: Goal | None = None
        self._index = 0
        self._started = False

    # ── Read-only view ───────────────────────────────────────────────

    @property
    def current_plan(self) -> Plan | None:
        return self._plan

    @property
    def current_goal(self) -> Goal | None:
        return self._goal

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_action(self) -> Action | None:
        if self._plan is None or self.state is not ExecState.RUNNING:
            return None
        if self._index >= len(self._plan.actions):
            return None
        return self._plan.actions[self._index]

    @property
    def remaining(self) -> int:
        if self._plan is None or self.state is not ExecState.RUNNING:
            return 0
        return len(self._plan.actions) - self._index

    @property
    def is_executing(self) -> bool:
        return self.state is ExecState.RUNNING

    @property
    def is_complete(self) -> bool:
        return self.state in (ExecState.SUCCEEDED, ExecState.FAILED)

    @property
    def has_failed(self) -> bool:
        return self.state is ExecState.FAILED

    # ── Control ──────────────────────────────────────────────────────

    def set_plan(self, plan: Plan | None) -> None:
        """Adopt *plan* from its first action, cancelling anything in flight."""
        self.cancel_execution()
        self._plan = plan
        self._index = 0
        self.last_failure = ""
        if plan is None:
            self.state = ExecState.IDLE
            return
        self._goal = plan.goal
        self.state = ExecState.RUNNING
        self._emit(PlanCreated(eid=self.eid, goal_type=plan.goal.goal_type,
                               actions=plan.action_types(),
                               total_cost=plan.total_cost))
        self._record("plan", plan.describe(), details={"cost": plan.total_cost})

    def update(self, agent: AgentState, world: WorldState, dt: float) -> None:
        if self.state is not ExecState.RUNNING:
            return
        action = self.current_action
        if action is None:
            self._complete(True)
            return

        if not self._started:
            if not action.check_preconditions(agent, world):
                self._action_failed(action, "preconditions no longer hold")
                return
            action.start_execution(agent, world)
            self._started = True
            self._emit(ActionStarted(eid=self.eid, action_type=action.action_type))
            self._record("action", f"start {action.describe()}")

        result = action.update_execution(agent, world, dt)

        if result is ActionResult.SUCCESS:
            action.apply_effects(agent, world)
            action.end_execution()
            self._started = False
            self._index += 1
            self._emit(ActionSucceeded(eid=self.eid, action_type=action.action_type))
            self._record("action", f"done {action.action_type}")
            if self._index >= len(self._plan.actions):
                self._complete(True)
        elif result is ActionResult.FAILED:
            self._action_failed(action, action.failure_reason or "failed")

    def replan(self, agent: AgentState, world: WorldState,
               actions: list[Action], planner: Planner) -> Plan | None:
        """Throw the current plan away and plan again for the same goal."""
        goal = self._goal
        if goal is None:
            return None
        self.cancel_execution()
        if goal.is_completed(agent, world):
            self._complete(True)
            return None

        plan = planner.create_plan(goal, agent, world, actions)
        if plan is None:
            self._plan = None
            self._index = 0
            self.last_failure = planner.last_failure or "replanning failed"
            self._record("plan", f"replan failed for {goal.goal_type}: {self.last_failure}")
            self._complete(False)
            return None
        self.set_plan(plan)
        return plan

    def cancel_execution(self) -> None:
        """Stop the running action without applying its effects."""
        action = self.current_action
        if action is not None and action.is_executing:
            action.cancel_execution()
            self._record("action", f"cancel {action.action_type}")
        self._started = False

    def fail(self, reason: str) -> None:
        """Abort the plan from outside (e.g. an arbitration contract check)."""
        if self.state is not ExecState.RUNNING:
            return
        self.cancel_execution()
        self.last_failure = reason
        self._complete(False)

    # ── Internals ────────────────────────────────────────────────────

    def _action_failed(self, action: Action, reason: str) -> None:
        if action.is_executing:
            action.cancel_execution()
        self._started = False
        self.last_failure = f"{action.action_type}: {reason}"
        self._emit(ActionFailed(eid=self.eid, action_type=action.action_type,
                                reason=reason))
        self._record("action", f"FAILED {action.action_type} ({reason})")
        self._complete(False)

    def _complete(self, success: bool) -> None:
        self.state = ExecState.SUCCEEDED if success else ExecState.FAILED
        goal_type = self._goal.goal_type if self._goal else "?"
        self._emit(PlanCompleted(eid=self.eid, goal_type=goal_type, success=success))
        self._record("plan", f"{goal_type} {'completed' if success else 'failed'}")
        if not success:
            print(f"[GOAP] {self.name or self.eid}: plan for '{goal_type}' failed"
                  f" ({self.last_failure or 'no reason'})")

    def _emit(self, event) -> None:
        if self.bus is not None:
            self.bus.emit(event)

    def _record(self, cat: str, msg: str, details: dict | None = None) -> None:
        if self.devlog is None:
            return
        t = self.clock() if self.clock else 0.0
        self.devlog.record(self.eid, cat, msg, name=self.name, t=t, details=details)
