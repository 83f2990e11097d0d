"""logic/goap/agent.py — Arbitration loop and the GOAP system.

``GoapAgent`` ties one agent's fact store, catalog, planner and
executor together.  Every frame it:

    1. drifts needs and ticks status effects    (AgentState.update)
    2. on the arbitration cadence (``agent.tick_rate`` Hz):
         - executor busy  → replan if the plan went stale
         - executor idle  → pick the best satisfiable goal and plan it
    3. advances the executor by ``dt``

``goap_system(world, dt)`` runs that for every entity with an active
``GoapBrain``.  A crashing brain is logged and skipped so the rest of
the frame still runs.

Public API
----------
``GoapAgent``                     — per-agent arbitration loop
``goap_system(world, dt)``        — tick all active brains
``spawn_goap_agent(world, ...)``  — entity + brain + catalog in one call
"""

from __future__ import annotations
import math
import random
import traceback
from pathlib import Path

from core.ecs import World
from core.events import (
    EventBus, GoalSelected, PlanningFailed, PlanInvalidated, CatalogFallback,
)
from core.tuning import get as _tun
from components import (
    AgentState, WorldState, Position, Velocity, Facing, Navigator,
    Identity, Sprite, GoapBrain, DevLog, Need,
)
from components.keys import format_state_map
from logic.movement import NavHandle
from logic.perception import PoiLocator
from logic.goap.catalog import Catalog, AgentContext, load_catalog, standard_catalog
from logic.goap.executor import Executor
from logic.goap.goals import Goal
from logic.goap.planner import Plan, Planner, is_plan_valid


class GoapAgent:
    def __init__(self, eid: int, state: AgentState, world_state: WorldState,
                 catalog: Catalog, *, planner: Planner | None = None,
                 bus: EventBus | None = None, devlog: DevLog | None = None,
                 name: str = "", tick_rate: float | None = None):
        self.eid = eid
        self.name = name or f"agent{eid}"
        self.state = state
        self.world_state = world_state
        self.catalog = catalog
        self.goals: list[Goal] = list(catalog.goals)
        self.actions = list(catalog.actions)
        self.planner = planner or Planner()
        self.bus = bus
        self.devlog = devlog
        self.time = 0.0
        self.executor = Executor(eid, bus, devlog, self.name, clock=lambda: self.time)

        rate = float(_tun("agent", "tick_rate", 10.0) if tick_rate is None else tick_rate)
        self.tick_interval = 1.0 / max(0.01, rate)
        self._since_think = self.tick_interval   # think on the first update
        self.priorities: dict[str, float] = {}
        self.goal_priority = 0.0
        self._unplannable: dict[str, str] = {}

        for line in catalog.diagnostics:
            self._record("catalog", line)
        if catalog.fallback_used:
            self._emit(CatalogFallback(eid=eid, diagnostics=tuple(catalog.diagnostics)))
            print(f"[GOAP] {self.name}: catalog unusable, running on fallback")

    # ── Frame ────────────────────────────────────────────────────────

    def update(self, dt: float) -> None:
        self.time += dt
        self.state.update(dt)
        self._since_think += dt
        if self._since_think >= self.tick_interval:
            self._since_think = min(self._since_think - self.tick_interval,
                                    self.tick_interval)
            self.think()
        self.executor.update(self.state, self.world_state, dt)

    def think(self) -> None:
        """One arbitration pass."""
        ex = self.executor
        if ex.is_executing:
            if not is_plan_valid(ex.current_plan, self.state, self.world_state,
                                 ex.current_index):
                goal_type = ex.current_goal.goal_type
                self._emit(PlanInvalidated(eid=self.eid, goal_type=goal_type))
                self._record("plan", f"{goal_type} plan invalidated, replanning")
                ex.replan(self.state, self.world_state, self.actions, self.planner)
            return
        self.select_goal()

    # ── Arbitration ──────────────────────────────────────────────────

    def rank_goals(self) -> list[tuple[float, Goal]]:
        """Satisfiable, unfinished goals, best first.

        Equal priorities keep catalog order.
        """
        self.priorities = {}
        ranked = []
        for i, goal in enumerate(self.goals):
            priority = goal.calculate_priority(self.state, self.world_state)
            self.priorities[goal.goal_type] = priority
            if not goal.can_satisfy(self.state, self.world_state):
                continue
            if goal.is_completed(self.state, self.world_state):
                continue
            ranked.append((priority, i, goal))
        ranked.sort(key=lambda item: (-item[0], item[1]))
        return [(priority, goal) for priority, _i, goal in ranked]

    def best_goal(self) -> Goal | None:
        ranked = self.rank_goals()
        return ranked[0][1] if ranked else None

    def select_goal(self) -> Goal | None:
        """Plan for the best goal that can be planned; returns it or None."""
        for priority, goal in self.rank_goals():
            plan = self.planner.create_plan(goal, self.state, self.world_state,
                                            self.actions)
            if plan is None:
                self._planning_failed(goal, self.planner.last_failure)
                continue
            if self.run_plan(plan, priority):
                return goal
        return None

    def run_plan(self, plan: Plan, priority: float = 0.0) -> bool:
        """Hand *plan* to the executor after checking it against the catalog."""
        unknown = [a.action_type for a in plan.actions
                   if not any(a is known for known in self.actions)]
        if unknown:
            assert not unknown, f"plan uses actions outside the catalog: {unknown}"
            return self.reject_plan(plan, unknown)

        goal_type = plan.goal.goal_type
        self._unplannable.pop(goal_type, None)
        self.goal_priority = priority
        self._emit(GoalSelected(eid=self.eid, goal_type=goal_type, priority=priority))
        self._record("goal", f"{goal_type} (priority {priority:.2f}) wants "
                             f"{format_state_map(plan.goal.desired_state())}")
        self.executor.set_plan(plan)
        return True

    def reject_plan(self, plan: Plan, unknown: list[str]) -> bool:
        """Refuse *plan* without touching the executor (the ``-O`` path of ``run_plan``)."""
        print(f"[GOAP] {self.name}: plan for '{plan.goal.goal_type}' rejected, "
              f"unknown actions {unknown}")
        self._record("error", f"plan rejected, unknown actions {unknown}")
        self._emit(PlanningFailed(eid=self.eid, goal_type=plan.goal.goal_type,
                                  reason="unknown actions"))
        return False

    def force_replan(self) -> None:
        """Drop whatever is running and arbitrate from scratch."""
        self.executor.set_plan(None)
        self._since_think = 0.0
        self.select_goal()

    def _planning_failed(self, goal: Goal, reason: str) -> None:
        self._emit(PlanningFailed(eid=self.eid, goal_type=goal.goal_type, reason=reason))
        if self._unplannable.get(goal.goal_type) != reason:
            self._unplannable[goal.goal_type] = reason
            print(f"[GOAP] {self.name}: cannot plan '{goal.goal_type}': {reason}")
            self._record("plan", f"cannot plan {goal.goal_type}: {reason}")

    # ── Observer view ────────────────────────────────────────────────

    @property
    def current_goal(self) -> Goal | None:
        return self.executor.current_goal if self.executor.is_executing else None

    def snapshot(self) -> dict:
        """Read-only view for overlays and headless dumps."""
        ex = self.executor
        action = ex.current_action
        plan = ex.current_plan
        return {
            "eid": self.eid,
            "name": self.name,
            "goal": self.current_goal.goal_type if self.current_goal else None,
            "goal_priority": self.goal_priority,
            "action": action.describe() if action else None,
            "plan": list(plan.action_types()) if plan and ex.is_executing else [],
            "plan_cost": plan.total_cost if plan and ex.is_executing else 0.0,
            "remaining": ex.remaining,
            "executor": ex.state.value,
            "last_failure": ex.last_failure,
            "needs": {n.key: v for n, v in self.state.all_needs().items()},
            "facts": {f.key: v for f, v in {**self.world_state.all_facts(),
                                              **self.state.all_facts()}.items()},
            "effects": dict(self.state.effects),
            "priorities": dict(self.priorities),
            "diagnostics": list(self.catalog.diagnostics),
            "fallback_used": self.catalog.fallback_used,
        }

    # ── Helpers ──────────────────────────────────────────────────────

    def _emit(self, event) -> None:
        if self.bus is not None:
            self.bus.emit(event)

    def _record(self, cat: str, msg: str) -> None:
        if self.devlog is not None:
            self.devlog.record(self.eid, cat, msg, name=self.name, t=self.time)


# ── System ───────────────────────────────────────────────────────────

def goap_system(world: World, dt: float) -> None:
    """Tick every active GOAP brain."""
    for eid, brain in world.all_of(GoapBrain):
        if not brain.active or brain.agent is None:
            continue
        try:
            brain.agent.update(dt)
        except Exception as exc:
            traceback.print_exc()
            log = world.res(DevLog)
            if log is not None:
                log.record(eid, "error", f"goap brain crash: {exc}",
                           name=brain.agent.name, t=brain.agent.time)


def crowd_counter(world: World, eid: int, radius: float = 8.0):
    """Callable counting other GOAP agents within *radius* of *eid*."""
    def count() -> int:
        me = world.get(eid, Position)
        if me is None:
            return 0
        n = 0
        for other, pos, _brain in world.query(Position, GoapBrain):
            if other != eid and math.hypot(pos.x - me.x, pos.y - me.y) <= radius:
                n += 1
        return n
    return count


def spawn_goap_agent(world: World, x: float, y: float, *, name: str = "",
                     catalog_path: str | Path | None = None,
                     use_file: bool = True,
                     needs: dict[Need, float] | None = None,
                     seed: int | None = None,
                     sprite: Sprite | None = None) -> int:
    """Spawn an agent entity with movement, a catalog and an active brain.

    ``WorldState``, ``EventBus`` and ``DevLog`` resources are created on
    the world if missing.  With ``use_file=False`` the built-in
    standard catalog is used instead of ``data/catalog.toml``.
    """
    world_state = world.res(WorldState)
    if world_state is None:
        world_state = WorldState()
        world.set_res(world_state)
    bus = world.res(EventBus)
    if bus is None:
        bus = EventBus()
        world.set_res(bus)
    devlog = world.res(DevLog)
    if devlog is None:
        devlog = DevLog()
        world.set_res(devlog)

    eid = world.spawn(
        Position(x, y), Velocity(), Facing(),
        Navigator(speed=float(_tun("movement", "speed", 3.5)),
                  stopping_distance=float(_tun("movement", "stopping_distance", 0.5))),
        Identity(name=name or "agent", kind="agent"),
        sprite or Sprite(char="@", color=(230, 200, 120)),
    )
    state = AgentState()
    if needs:
        for need, value in needs.items():
            state.set_need(need, value)

    ctx = AgentContext(
        eid=eid,
        nav=NavHandle(world, eid),
        locator=PoiLocator(world),
        rng=random.Random(seed),
        bus=bus,
        crowd=crowd_counter(world, eid),
    )
    catalog = load_catalog(catalog_path, ctx) if use_file else standard_catalog(ctx)
    agent = GoapAgent(eid, state, world_state, catalog, bus=bus, devlog=devlog,
                      name=name or f"agent{eid}")
    world.add(eid, GoapBrain(agent=agent))
    return eid
