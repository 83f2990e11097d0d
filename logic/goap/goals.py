"""logic/goap/goals.py — Desired-state goals and their priority functions.

Each Goal answers four questions every arbitration tick:

    can_satisfy(agent, world)        → bool   worth considering right now?
    is_completed(agent, world)       → bool   already achieved, plan or not?
    calculate_priority(agent, world) → float  arbitration score
    desired_state()                  → dict   what the planner must establish

Goals keep no state between evaluations; the owning agent keeps the
last scores (``GoapAgent.priorities``).

Built-in goals
--------------
NeedReductionGoal   — bring one need down (Eat/Drink/Sleep/Play presets)
IdleGoal            — filler; wins only when nothing is pressing
CommunicationGoal   — bark once when needs pile up
"""

from __future__ import annotations
from abc import ABC, abstractmethod

from components.keys import Need, Fact, StateKey
from components.state import AgentState, WorldState


# ── Goal ABC ─────────────────────────────────────────────────────────

class Goal(ABC):
    """Abstract base for an arbitration candidate."""

    goal_type: str = "goal"

    @abstractmethod
    def can_satisfy(self, agent: AgentState, world: WorldState) -> bool:
        ...

    @abstractmethod
    def is_completed(self, agent: AgentState, world: WorldState) -> bool:
        ...

    @abstractmethod
    def calculate_priority(self, agent: AgentState, world: WorldState) -> float:
        """Must be non-decreasing in the urgency signal it reads."""
        ...

    @abstractmethod
    def desired_state(self) -> dict[StateKey, float | bool]:
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.goal_type}>"


# ── Need reduction ───────────────────────────────────────────────────

class NeedReductionGoal(Goal):
    """Activate above ``activation``, complete at or below ``completion``.

    The gap between the two thresholds is the hysteresis band that keeps
    an agent from flapping between goals.
    """

    def __init__(self, goal_type: str, need: Need, activation: float = 0.5,
                 completion: float = 0.05, scale: float = 10.0,
                 target: float = 0.0):
        if activation <= completion:
            raise ValueError(
                f"{goal_type}: activation ({activation}) must be above "
                f"completion ({completion})")
        if scale <= 0:
            raise ValueError(f"{goal_type}: priority scale must be positive")
        self.goal_type = goal_type
        self.need = need
        self.activation = float(activation)
        self.completion = float(completion)
        self.scale = float(scale)
        self.target = float(target)

    def can_satisfy(self, agent, world):
        return agent.get_need(self.need) > self.activation

    def is_completed(self, agent, world):
        return agent.get_need(self.need) <= self.completion

    def calculate_priority(self, agent, world):
        value = agent.get_need(self.need)
        return value * self.scale if value > self.activation else 0.0

    def desired_state(self):
        return {self.need: self.target}


class EatGoal(NeedReductionGoal):
    def __init__(self):
        super().__init__("eat", Need.HUNGER, activation=0.5, completion=0.2, scale=10.0)


class DrinkGoal(NeedReductionGoal):
    def __init__(self):
        super().__init__("drink", Need.THIRST, activation=0.4, completion=0.1, scale=12.0)


class SleepGoal(NeedReductionGoal):
    def __init__(self):
        super().__init__("sleep", Need.SLEEP, activation=0.5, completion=0.05, scale=10.0)


class PlayGoal(NeedReductionGoal):
    def __init__(self):
        super().__init__("play", Need.PLAY, activation=0.6, completion=0.3, scale=5.0)


# ── Idle ─────────────────────────────────────────────────────────────

class IdleGoal(Goal):
    """Always available; priority rises as the agent's worst need falls.

    Never reports completion, so it can be chosen again and again.
    """

    goal_type = "idle"

    def __init__(self, base: float = 0.3, bonus: float = 0.5, ceiling: float = 0.8):
        self.base = base
        self.bonus = bonus
        self.ceiling = ceiling

    def can_satisfy(self, agent, world):
        return True

    def is_completed(self, agent, world):
        return False

    def calculate_priority(self, agent, world):
        calm = 1.0 - min(1.0, max(0.0, agent.max_need()))
        return min(self.base + calm * self.bonus, self.ceiling)

    def desired_state(self):
        return {Fact.IDLE: True}


# ── Communication ────────────────────────────────────────────────────

class CommunicationGoal(Goal):
    """Bark when needs pile up.  Done for good once the agent has barked."""

    goal_type = "communication"

    def __init__(self, urgent: float = 0.7):
        self.urgent = urgent

    def can_satisfy(self, agent, world):
        return not agent.has_effect("sleeping") and not world.get_fact(Fact.HAS_BARKED)

    def is_completed(self, agent, world):
        return world.get_fact(Fact.COMMUNICATED) or world.get_fact(Fact.HAS_BARKED)

    def calculate_priority(self, agent, world):
        if not self.can_satisfy(agent, world):
            return 0.0
        pressing = sum(1 for v in agent.all_needs().values() if v > self.urgent)
        if pressing >= 2:
            return 5.0
        if pressing == 1:
            return 3.0
        return 1.0

    def desired_state(self):
        return {Fact.COMMUNICATED: True, Fact.HAS_BARKED: True}
