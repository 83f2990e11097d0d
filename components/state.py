"""components.state — Agent-local needs and facts, world-global facts.

``AgentState`` is owned by one agent (needs, location facts, timed
status effects, scratch memory).  ``WorldState`` is an ECS resource
shared by every agent and holds only world-global facts; writes are
last-write-wins and happen only inside the single simulation tick.

Location facts (``at_food`` ...) always live on the agent: one dog
reaching the bowl says nothing about where the others are.  Both
stores raise ``ValueError`` when handed a fact that belongs to the
other one; ``current_value`` and ``write_value`` route by key.

Neither store clamps what callers write.  Callers that want [0, 1]
(``AgentState.update``, the need-reduction actions) clamp at the call
site.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from components.keys import Need, Fact, StateKey
from core.tuning import get as _tun


# Slack for float comparisons on need targets.
NEED_EPSILON = 1e-6


def _default_needs() -> dict[Need, float]:
    return {need: float(_tun("needs.initial", need.value, 0.0)) for need in Need}


def _default_drift() -> dict[Need, float]:
    return {need: float(_tun("needs.drift", need.value, 0.01)) for need in Need}


@dataclass
class AgentState:
    """Needs, status effects and memory for a single agent.

    ``effects`` maps a status name to its remaining seconds; a negative
    value means "until removed".
    """
    needs: dict[Need, float] = field(default_factory=_default_needs)
    drift: dict[Need, float] = field(default_factory=_default_drift)
    facts: dict[Fact, bool] = field(default_factory=dict)
    effects: dict[str, float] = field(default_factory=dict)
    memory: dict[str, Any] = field(default_factory=dict)

    # ── Needs ────────────────────────────────────────────────────────

    def get_need(self, need: Need) -> float:
        return self.needs.get(need, 0.0)

    def set_need(self, need: Need, value: float) -> None:
        self.needs[need] = float(value)

    def all_needs(self) -> dict[Need, float]:
        return dict(self.needs)

    def max_need(self) -> float:
        return max(self.needs.values(), default=0.0)

    # ── Location facts ───────────────────────────────────────────────

    def get_fact(self, fact: Fact) -> bool:
        return self.facts.get(fact, False)

    def set_fact(self, fact: Fact, value: bool) -> None:
        if not fact.is_location:
            raise ValueError(f"{fact.key} is world-global; set it on WorldState")
        self.facts[fact] = bool(value)

    def all_facts(self) -> dict[Fact, bool]:
        return dict(self.facts)

    # ── Status effects ───────────────────────────────────────────────

    def has_effect(self, name: str) -> bool:
        return name in self.effects

    def apply_effect(self, name: str, duration: float = -1.0) -> None:
        self.effects[name] = duration

    def remove_effect(self, name: str) -> None:
        self.effects.pop(name, None)

    # ── Memory ───────────────────────────────────────────────────────

    def remember(self, key: str, value: Any) -> None:
        self.memory[key] = value

    def recall(self, key: str, default: Any = None) -> Any:
        return self.memory.get(key, default)

    def forget(self, key: str) -> None:
        self.memory.pop(key, None)

    # ── Time ─────────────────────────────────────────────────────────

    def update(self, dt: float) -> None:
        """Passive need drift and status-effect countdown."""
        for need, rate in self.drift.items():
            value = self.get_need(need) + rate * dt
            self.set_need(need, min(1.0, max(0.0, value)))

        for name in list(self.effects):
            remaining = self.effects[name]
            if remaining < 0:
                continue
            remaining -= dt
            if remaining <= 0:
                del self.effects[name]
            else:
                self.effects[name] = remaining


@dataclass
class WorldState:
    """World-global boolean facts (ECS resource).

    Unset facts read as False.  Location facts are refused; they belong
    to each agent's ``AgentState``.
    """
    facts: dict[Fact, bool] = field(default_factory=lambda: {
        Fact.DAY_TIME: True,
        Fact.SAFE: True,
    })

    def get_fact(self, fact: Fact) -> bool:
        return self.facts.get(fact, False)

    def set_fact(self, fact: Fact, value: bool) -> None:
        if fact.is_location:
            raise ValueError(f"{fact.key} is per agent; set it on AgentState")
        self.facts[fact] = bool(value)

    def all_facts(self) -> dict[Fact, bool]:
        return dict(self.facts)


# ── Condition helpers (shared by actions, goals, planner) ───────────

def current_value(key: StateKey, agent: AgentState, world: WorldState) -> float | bool:
    if isinstance(key, Need):
        return agent.get_need(key)
    if key.is_location:
        return agent.get_fact(key)
    return world.get_fact(key)


def write_value(key: StateKey, value: float | bool,
                agent: AgentState, world: WorldState) -> None:
    """Store one effect in whichever fact store owns *key* (needs clamp to [0, 1])."""
    if isinstance(key, Need):
        agent.set_need(key, min(1.0, max(0.0, float(value))))
    elif key.is_location:
        agent.set_fact(key, bool(value))
    else:
        world.set_fact(key, bool(value))


def value_satisfies(key: StateKey, value: float | bool, target: float | bool) -> bool:
    """Does *value* meet the condition ``key → target``?

    Needs are satisfied at or below the target; facts need equality.
    """
    if isinstance(key, Need):
        return float(value) <= float(target) + NEED_EPSILON
    return bool(value) == bool(target)


def condition_met(key: StateKey, target: float | bool,
                  agent: AgentState, world: WorldState) -> bool:
    return value_satisfies(key, current_value(key, agent, world), target)


def unmet_conditions(conditions: dict[StateKey, float | bool],
                     agent: AgentState, world: WorldState) -> dict[StateKey, float | bool]:
    """Subset of *conditions* that the live state does not satisfy."""
    return {k: v for k, v in conditions.items()
            if not condition_met(k, v, agent, world)}
