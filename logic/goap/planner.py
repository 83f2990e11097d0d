"""logic/goap/planner.py — Backward-chaining plan search.

The planner works from the goal backwards.  Each unmet condition is
matched to the cheapest action that declares it as an effect.  When
that action cannot run yet, its unmet preconditions are queued as new
conditions.  Chosen actions are prepended, so a consumption action
that needs ``at_food`` ends up behind the move that produces it::

    planner = Planner()
    plan = planner.create_plan(EatGoal(), agent, world, actions)
    plan.action_types()     # ("move_to_food", "eat")

The search is greedy and single-pass.  It does not look for the
cheapest plan overall.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass

from components.keys import Need, StateKey
from components.state import AgentState, WorldState, value_satisfies
from core.tuning import get as _tun
from logic.goap.actions import Action
from logic.goap.goals import Goal


@dataclass(frozen=True)
class Plan:
    """An ordered, immutable action sequence serving one goal."""
    goal: Goal
    actions: tuple[Action, ...] = ()

    @property
    def total_cost(self) -> float:
        return sum(a.cost for a in self.actions)

    def action_types(self) -> tuple[str, ...]:
        return tuple(a.action_type for a in self.actions)

    def describe(self) -> str:
        steps = " → ".join(self.action_types()) or "(empty)"
        return f"{self.goal.goal_type}: {steps} [cost {self.total_cost:g}]"

    def __len__(self) -> int:
        return len(self.actions)


def provides(action: Action, key: StateKey, target: float | bool) -> bool:
    """Does *action* declare an effect that meets ``key → target``?"""
    effects = action.effects
    if key not in effects:
        return False
    return value_satisfies(key, effects[key], target)


class Planner:
    def __init__(self, max_iterations: int | None = None,
                 max_depth: int | None = None):
        self.max_iterations = int(_tun("planner", "max_iterations", 1000)
                                  if max_iterations is None else max_iterations)
        self.max_depth = int(_tun("planner", "max_depth", 4)
                             if max_depth is None else max_depth)
        self.last_failure = ""

    def create_plan(self, goal: Goal, agent: AgentState, world: WorldState,
                    actions: list[Action]) -> Plan | None:
        """Build a plan for *goal*, or return None (reason in ``last_failure``)."""
        self.last_failure = ""
        desired = goal.desired_state()
        if not desired:
            return self._fail(f"{goal.goal_type} has an empty desired state")

        # (key, target, depth, action types already on this chain)
        queue: deque[tuple[StateKey, float | bool, int, tuple[str, ...]]] = deque(
            (key, target, 1, ()) for key, target in desired.items())
        steps: list[Action] = []
        iterations = 0

        while queue:
            iterations += 1
            if iterations > self.max_iterations:
                return self._fail(f"gave up after {self.max_iterations} iterations")

            key, target, depth, chain = queue.popleft()
            if depth > self.max_depth:
                return self._fail(f"{key.key} needs a chain deeper than {self.max_depth}")

            provider = next((a for a in steps if provides(a, key, target)), None)
            if provider is not None:
                if provider.action_type in chain:
                    return self._fail(f"cycle through {provider.action_type} "
                                      f"resolving {_render(key, target)}")
                continue

            choice = self._choose(key, target, chain, steps, agent, world, actions)
            if choice is None:
                return None
            action, unmet = choice

            steps.insert(0, action)
            for pre_key, pre_target in unmet.items():
                queue.append((pre_key, pre_target, depth + 1,
                              chain + (action.action_type,)))

        return Plan(goal=goal, actions=tuple(steps))

    def _choose(self, key, target, chain, steps, agent, world, actions):
        candidates = sorted(
            (i for i, a in enumerate(actions) if provides(a, key, target)),
            key=lambda i: (actions[i].cost, i),
        )
        if not candidates:
            return self._fail(f"no action produces {_render(key, target)}")

        for i in candidates:
            action = actions[i]
            if action.action_type in chain or action in steps:
                continue
            if not action.can_run(agent, world):
                continue
            return action, action.unmet_preconditions(agent, world)

        return self._fail(f"no runnable action produces {_render(key, target)}")

    def _fail(self, reason: str):
        self.last_failure = reason
        return None


def is_plan_valid(plan: Plan | None, agent: AgentState, world: WorldState,
                  index: int = 0) -> bool:
    """Is the plan still worth running from action *index* onwards?

    False once the goal completed on its own, or when the pending action
    can no longer run against the live state.
    """
    if plan is None:
        return False
    if plan.goal.is_completed(agent, world):
        return False
    if index >= len(plan.actions):
        return True
    return plan.actions[index].check_preconditions(agent, world)


def _render(key: StateKey, target: float | bool) -> str:
    if isinstance(key, Need):
        return f"{key.key}<={target:g}"
    return f"{key.key}={target}"
