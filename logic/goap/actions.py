"""logic/goap/actions.py — The action contract and the built-in actions.

Every action follows the same two-phase contract:

    check_preconditions(agent, world) → bool      pure, called repeatedly
    get_effects()                     → dict      declaration for the planner
    start_execution(agent, world)                 timers reset, commands issued
    update_execution(agent, world, dt) → ActionResult
    apply_effects(agent, world)                   only after SUCCESS
    cancel_execution()                            safe at any point

Only ``apply_effects`` writes needs or facts.  A failed or cancelled
action leaves the fact stores exactly as it found them.

Built-in actions
----------------
NeedReductionAction   — timed consumption at a location (Eat/Drink/Sleep/Play)
MoveToAction          — walk to the nearest POI supporting a goal type
WanderAction          — stroll to random points around the agent
InvestigateAction     — look around at nearby POIs
SayRandomLineAction   — speak a context-aware line
BarkAction            — communicate (refused while sleeping)
NoOpAction            — wait; always possible
"""

from __future__ import annotations
import math
import random
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Callable

from components.keys import Need, Fact, StateKey
from components.state import AgentState, WorldState, unmet_conditions, write_value
from core.events import AgentSpoke
from core.tuning import get as _tun

if TYPE_CHECKING:
    from core.events import EventBus
    from logic.movement import NavHandle
    from logic.perception import PoiLocator


class ActionResult(Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


# ── Action ABC ───────────────────────────────────────────────────────

class Action(ABC):
    """Abstract base for a plannable, tick-driven behaviour.

    Subclasses declare ``preconditions`` and ``effects`` and implement
    ``update_execution``.  ``_ready`` is the live check for what the
    planner cannot reason about (no POI reachable, no movement handle).

    A positive ``cooldown`` blocks the action for that many seconds
    after each start, tracked as a timed status effect on the agent.
    """

    action_type: str = "action"

    def __init__(self, cost: float = 1.0, cooldown: float = 0.0):
        if cost < 0:
            raise ValueError(f"{self.action_type}: cost must be >= 0, got {cost}")
        self.cost = float(cost)
        self.cooldown = max(0.0, float(cooldown))
        self.is_executing = False
        self.failure_reason = ""

    # ── Declarations ─────────────────────────────────────────────────

    @property
    def preconditions(self) -> dict[StateKey, float | bool]:
        return {}

    @property
    def effects(self) -> dict[StateKey, float | bool]:
        return {}

    def get_effects(self) -> dict[StateKey, float | bool]:
        """Declared effect map (a copy; callers may mutate it)."""
        return dict(self.effects)

    # ── Lifecycle ────────────────────────────────────────────────────

    def check_preconditions(self, agent: AgentState, world: WorldState) -> bool:
        if unmet_conditions(self.preconditions, agent, world):
            return False
        return self.can_run(agent, world)

    def unmet_preconditions(self, agent: AgentState,
                            world: WorldState) -> dict[StateKey, float | bool]:
        return unmet_conditions(self.preconditions, agent, world)

    def can_run(self, agent: AgentState, world: WorldState) -> bool:
        if self.cooldown > 0 and not self.is_executing \
                and agent.has_effect(self.cooldown_tag):
            return False
        return self._ready(agent, world)

    def _ready(self, agent: AgentState, world: WorldState) -> bool:
        return True

    @property
    def cooldown_tag(self) -> str:
        return f"cooldown_{self.action_type}"

    def start_execution(self, agent: AgentState, world: WorldState) -> None:
        self.is_executing = True
        self.failure_reason = ""
        if self.cooldown > 0:
            agent.apply_effect(self.cooldown_tag, self.cooldown)
        self._on_start(agent, world)

    def _on_start(self, agent: AgentState, world: WorldState) -> None:
        pass

    @abstractmethod
    def update_execution(self, agent: AgentState, world: WorldState,
                         dt: float) -> ActionResult:
        ...

    def end_execution(self) -> None:
        """Release per-run resources after SUCCESS or FAILED."""
        if self.is_executing:
            self._on_stop()
        self.is_executing = False

    def cancel_execution(self) -> None:
        """Abort without applying effects.  Idempotent."""
        self.end_execution()

    def _on_stop(self) -> None:
        pass

    def apply_effects(self, agent: AgentState, world: WorldState) -> None:
        """Write the declared effects into the fact stores."""
        for key, value in self.effects.items():
            write_value(key, value, agent, world)
        self._on_applied(agent, world)

    def _on_applied(self, agent: AgentState, world: WorldState) -> None:
        pass

    def _fail(self, reason: str) -> ActionResult:
        self.failure_reason = reason
        return ActionResult.FAILED

    def describe(self) -> str:
        return f"{self.action_type} (cost {self.cost:g})"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.action_type}>"


class TimedAction(Action):
    """Succeeds once ``duration`` seconds of updates have accumulated."""

    def __init__(self, duration: float = 1.0, cost: float = 1.0,
                 cooldown: float = 0.0):
        super().__init__(cost, cooldown)
        self.duration = max(0.1, float(duration))
        self.elapsed = 0.0

    def _on_start(self, agent, world):
        self.elapsed = 0.0

    def update_execution(self, agent, world, dt):
        if not self.is_executing:
            return self._fail("not started")
        self.elapsed += max(0.0, dt)
        if self.elapsed >= self.duration:
            return ActionResult.SUCCESS
        self._tick(agent, world, dt)
        return ActionResult.RUNNING

    def _tick(self, agent: AgentState, world: WorldState, dt: float) -> None:
        pass

    @property
    def progress(self) -> float:
        return min(1.0, self.elapsed / self.duration)


# ══════════════════════════════════════════════════════════════════════
#  CONSUMPTION
# ══════════════════════════════════════════════════════════════════════

class NeedReductionAction(TimedAction):
    """Stand at a location for a while, then drop a need to ``target``.

    Requires the location fact; clears it on success so the next plan
    has to walk there again.
    """

    def __init__(self, action_type: str, need: Need, location: Fact,
                 target: float = 0.0, duration: float = 2.0, cost: float = 1.0,
                 status: str | None = None):
        self.action_type = action_type
        super().__init__(duration, cost)
        if not location.is_location:
            raise ValueError(f"{action_type}: {location.key} is not a location fact")
        self.need = need
        self.location = location
        self.target = min(1.0, max(0.0, float(target)))
        self.status = status
        self._agent: AgentState | None = None

    @property
    def preconditions(self):
        return {self.location: True}

    @property
    def effects(self):
        return {self.need: self.target, self.location: False}

    def _on_start(self, agent, world):
        super()._on_start(agent, world)
        if self.status:
            agent.apply_effect(self.status)
            self._agent = agent

    def _on_stop(self):
        if self.status and self._agent is not None:
            self._agent.remove_effect(self.status)
        self._agent = None

    def describe(self):
        return (f"{self.action_type}: {self.duration:g}s at {self.location.key} "
                f"→ {self.need.key}={self.target:g}")


class EatAction(NeedReductionAction):
    def __init__(self, duration: float | None = None, cost: float | None = None):
        super().__init__(
            "eat", Need.HUNGER, Fact.AT_FOOD,
            duration=_tun("actions.eat", "duration", 2.0) if duration is None else duration,
            cost=_tun("actions.eat", "cost", 1.0) if cost is None else cost,
        )


class DrinkAction(NeedReductionAction):
    def __init__(self, duration: float | None = None, cost: float | None = None):
        super().__init__(
            "drink", Need.THIRST, Fact.AT_WATER,
            duration=_tun("actions.drink", "duration", 2.0) if duration is None else duration,
            cost=_tun("actions.drink", "cost", 1.0) if cost is None else cost,
        )


class SleepAction(NeedReductionAction):
    """Applies the ``sleeping`` status while running."""

    def __init__(self, duration: float | None = None, cost: float | None = None):
        super().__init__(
            "sleep", Need.SLEEP, Fact.AT_BED,
            duration=_tun("actions.sleep", "duration", 3.0) if duration is None else duration,
            cost=_tun("actions.sleep", "cost", 1.0) if cost is None else cost,
            status="sleeping",
        )


class PlayAction(NeedReductionAction):
    def __init__(self, duration: float | None = None, cost: float | None = None):
        super().__init__(
            "play", Need.PLAY, Fact.AT_TOY,
            duration=_tun("actions.play", "duration", 2.0) if duration is None else duration,
            cost=_tun("actions.play", "cost", 1.0) if cost is None else cost,
        )


# ══════════════════════════════════════════════════════════════════════
#  MOVEMENT
# ══════════════════════════════════════════════════════════════════════

class MoveToAction(Action):
    """Walk to the nearest POI that supports ``goal_type``.

    The target is resolved at start and re-resolved whenever the locked
    POI stops supporting the goal.  Fails when no POI is left or when
    the walk takes longer than ``give_up_after`` seconds.
    """

    def __init__(self, nav: NavHandle, locator: PoiLocator, goal_type: str,
                 location: Fact, cost: float = 1.0,
                 stopping_distance: float | None = None,
                 give_up_after: float | None = None):
        self.action_type = f"move_to_{location.value[len('at_'):]}"
        super().__init__(cost)
        if not location.is_location:
            raise ValueError(f"{self.action_type}: {location.key} is not a location fact")
        self.nav = nav
        self.locator = locator
        self.goal_type = goal_type
        self.location = location
        self.stopping_distance = max(0.01, float(
            _tun("movement", "stopping_distance", 0.5)
            if stopping_distance is None else stopping_distance))
        self.give_up_after = float(
            _tun("movement", "give_up_after", 60.0)
            if give_up_after is None else give_up_after)
        self.target: int | None = None
        self.elapsed = 0.0

    @property
    def effects(self):
        return {self.location: True}

    def _ready(self, agent, world):
        if self.nav is None or self.locator is None:
            return False
        x, y = self.nav.position
        return self.locator.find_nearest(self.goal_type, x, y) is not None

    def _on_start(self, agent, world):
        self.elapsed = 0.0
        self.target = None
        self._resolve_target()

    def _resolve_target(self) -> bool:
        x, y = self.nav.position
        self.target = self.locator.find_nearest(self.goal_type, x, y)
        if self.target is None:
            return False
        tx, ty = self.locator.position_of(self.target)
        self.nav.set_destination(tx, ty)
        return True

    def update_execution(self, agent, world, dt):
        if not self.is_executing:
            return self._fail("not started")
        if self.target is None or not self.locator.is_available(self.target, self.goal_type):
            if not self._resolve_target():
                return self._fail(f"no {self.goal_type} location left")

        self.elapsed += max(0.0, dt)
        x, y = self.nav.position
        tx, ty = self.locator.position_of(self.target)
        stop = max(self.stopping_distance, self.nav.stopping_distance)
        if math.hypot(tx - x, ty - y) <= stop:
            return ActionResult.SUCCESS
        if self.give_up_after > 0 and self.elapsed >= self.give_up_after:
            return self._fail(f"could not reach {self.goal_type} location")
        return ActionResult.RUNNING

    def _on_stop(self):
        self.nav.reset_path()

    def _on_applied(self, agent, world):
        agent.remember(f"last_{self.goal_type}_poi", self.target)

    def describe(self):
        target = f"poi #{self.target}" if self.target is not None else "nearest"
        return f"{self.action_type} → {target} for '{self.goal_type}'"


# ══════════════════════════════════════════════════════════════════════
#  IDLE REPERTOIRE
# ══════════════════════════════════════════════════════════════════════

class WanderAction(TimedAction):
    """Walk to random points within ``radius`` of where it started."""

    action_type = "wander"

    def __init__(self, nav: NavHandle, rng: random.Random | None = None,
                 radius: float | None = None, duration: float | None = None,
                 speed: float | None = None, cost: float | None = None,
                 cooldown: float | None = None):
        super().__init__(
            _tun("actions.wander", "duration", 5.0) if duration is None else duration,
            _tun("actions.wander", "cost", 0.5) if cost is None else cost,
            _tun("actions.wander", "cooldown", 0.0) if cooldown is None else cooldown,
        )
        self.nav = nav
        self.rng = rng or random.Random()
        self.radius = max(1.0, float(_tun("actions.wander", "radius", 10.0)
                                     if radius is None else radius))
        self.speed = float(_tun("actions.wander", "speed", 2.0) if speed is None else speed)
        self.origin = (0.0, 0.0)
        self._saved_speed: float | None = None

    @property
    def effects(self):
        return {Fact.IDLE: True}

    def _ready(self, agent, world):
        return self.nav is not None

    def _on_start(self, agent, world):
        super()._on_start(agent, world)
        self.origin = self.nav.position
        self._saved_speed = self.nav.speed
        self.nav.set_speed(self.speed)
        self._pick_point()

    def _pick_point(self) -> None:
        angle = self.rng.uniform(0.0, 2.0 * math.pi)
        dist = self.rng.uniform(0.3, 1.0) * self.radius
        ox, oy = self.origin
        self.nav.set_destination(ox + math.cos(angle) * dist,
                                 oy + math.sin(angle) * dist)

    def _tick(self, agent, world, dt):
        if self.nav.has_arrived():
            self._pick_point()

    def _on_stop(self):
        self.nav.reset_path()
        if self._saved_speed is not None:
            self.nav.set_speed(self._saved_speed)
            self._saved_speed = None

    def describe(self):
        return f"wander within {self.radius:g}m for {self.duration:g}s"


class InvestigateAction(TimedAction):
    """Stand still and turn toward nearby POIs, or glance around."""

    action_type = "investigate"

    def __init__(self, nav: NavHandle, locator: PoiLocator,
                 rng: random.Random | None = None, radius: float | None = None,
                 duration: float | None = None, cost: float | None = None,
                 cooldown: float | None = None):
        super().__init__(
            _tun("actions.investigate", "duration", 5.0) if duration is None else duration,
            _tun("actions.investigate", "cost", 0.3) if cost is None else cost,
            _tun("actions.investigate", "cooldown", 0.0) if cooldown is None else cooldown,
        )
        self.nav = nav
        self.locator = locator
        self.rng = rng or random.Random()
        self.radius = max(1.0, float(_tun("actions.investigate", "radius", 5.0)
                                     if radius is None else radius))
        self.look_timer = 0.0
        self.looking_at: int | None = None

    @property
    def effects(self):
        return {Fact.IDLE: True}

    def _ready(self, agent, world):
        return self.nav is not None

    def _on_start(self, agent, world):
        super()._on_start(agent, world)
        self.nav.reset_path()
        self._look()

    def _look(self) -> None:
        self.look_timer = self.rng.uniform(1.0, 3.0)
        self.looking_at = None
        x, y = self.nav.position
        nearby = self.locator.nearby(x, y, self.radius) if self.locator else []
        if nearby and self.rng.random() < 0.4:
            self.looking_at = nearby[0][0]
            tx, ty = self.locator.position_of(self.looking_at)
            self.nav.look_at(math.atan2(ty - y, tx - x))
        else:
            self.nav.look_at(self.nav.heading() + self.rng.uniform(-1.5, 1.5))

    def _tick(self, agent, world, dt):
        self.look_timer -= dt
        if self.look_timer <= 0:
            self._look()

    def _on_stop(self):
        self.looking_at = None

    def describe(self):
        return f"investigate within {self.radius:g}m for {self.duration:g}s"


LINE_POOLS: dict[str, list[str]] = {
    "general": [
        "What are we doing today?",
        "Anyone else around?",
        "Nice weather, isn't it?",
        "I wonder what's happening over there...",
        "Just taking a moment to think...",
        "Everything seems quiet today.",
    ],
    "morning": [
        "Good morning!",
        "Time to start the day.",
        "Morning already? Time flies.",
    ],
    "evening": [
        "Getting late...",
        "Long day today.",
        "The day is winding down.",
    ],
    "safe": [
        "All seems peaceful.",
        "Nice and quiet here.",
        "No worries here.",
    ],
    "crowded": [
        "Busy place, this.",
        "So many faces to see.",
    ],
    "alone": [
        "Enjoying the solitude.",
        "Just me and my thoughts.",
    ],
    "tired": [
        "Feeling a bit tired...",
        "Could use a rest soon.",
    ],
    "energetic": [
        "Feeling good today!",
        "Ready for anything!",
        "What shall we do next?",
    ],
}


def line_pool(agent: AgentState, world: WorldState,
              crowd: int | None = None) -> list[str]:
    """All lines that fit the current context."""
    lines = list(LINE_POOLS["general"])
    lines += LINE_POOLS["morning" if world.get_fact(Fact.DAY_TIME) else "evening"]
    if world.get_fact(Fact.SAFE):
        lines += LINE_POOLS["safe"]
    sleep = agent.get_need(Need.SLEEP)
    if sleep > 0.7:
        lines += LINE_POOLS["tired"]
    elif sleep < 0.3:
        lines += LINE_POOLS["energetic"]
    if crowd is not None:
        lines += LINE_POOLS["crowded" if crowd >= 3 else "alone"]
    return lines


class SayRandomLineAction(TimedAction):
    """Say one line at start, then linger for the rest of ``duration``."""

    action_type = "say_random"

    def __init__(self, eid: int = 0, bus: EventBus | None = None,
                 rng: random.Random | None = None,
                 crowd: Callable[[], int] | None = None,
                 duration: float | None = None, display: float | None = None,
                 cost: float | None = None, cooldown: float | None = None):
        super().__init__(
            _tun("actions.say_random", "duration", 3.0) if duration is None else duration,
            _tun("actions.say_random", "cost", 0.1) if cost is None else cost,
            _tun("actions.say_random", "cooldown", 0.0) if cooldown is None else cooldown,
        )
        self.eid = eid
        self.bus = bus
        self.rng = rng or random.Random()
        self.crowd = crowd
        self.display = float(_tun("actions.say_random", "display", 2.0)
                             if display is None else display)
        self.last_line = ""

    @property
    def effects(self):
        return {Fact.IDLE: True}

    def _on_start(self, agent, world):
        super()._on_start(agent, world)
        lines = line_pool(agent, world, self.crowd() if self.crowd else None)
        self.last_line = self.rng.choice(lines) if lines else "..."
        if self.bus is not None:
            self.bus.emit(AgentSpoke(eid=self.eid, text=self.last_line,
                                     duration=self.display))

    def describe(self):
        if self.last_line:
            return f'say "{self.last_line}"'
        return "say a random line"


class BarkAction(TimedAction):
    action_type = "bark"

    def __init__(self, eid: int = 0, bus: EventBus | None = None,
                 duration: float | None = None, cost: float | None = None):
        super().__init__(
            _tun("actions.bark", "duration", 1.0) if duration is None else duration,
            _tun("actions.bark", "cost", 0.5) if cost is None else cost,
        )
        self.eid = eid
        self.bus = bus

    @property
    def effects(self):
        return {Fact.HAS_BARKED: True, Fact.COMMUNICATED: True}

    def _ready(self, agent, world):
        return not agent.has_effect("sleeping")

    def _on_start(self, agent, world):
        super()._on_start(agent, world)
        if self.bus is not None:
            self.bus.emit(AgentSpoke(eid=self.eid, text="Woof! Woof!",
                                     duration=self.duration))

    def describe(self):
        return "bark to communicate"


class NoOpAction(TimedAction):
    """Do nothing for a moment.  The fallback catalog's only action."""

    action_type = "noop"

    def __init__(self, duration: float | None = None, cost: float | None = None):
        super().__init__(
            _tun("actions.noop", "duration", 1.0) if duration is None else duration,
            _tun("actions.noop", "cost", 1.0) if cost is None else cost,
        )

    @property
    def effects(self):
        return {Fact.IDLE: True}

    def describe(self):
        return f"wait {self.duration:g}s"
