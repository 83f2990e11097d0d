"""logic/goap/catalog.py — Goal/action catalogs from TOML.

``data/catalog.toml`` lists goals and actions as arrays of tables, each
with a ``kind`` looked up in a registry::

    [[goals]]
    kind = "need"
    type = "eat"
    need = "hunger"
    activation = 0.5
    completion = 0.2
    scale = 10.0

    [[actions]]
    kind = "move_to"
    goal = "eat"
    location = "at_food"

Each agent builds its own catalog, because actions carry per-agent
state and collaborators (movement handle, POI locator, rng).  Those
are handed in through an ``AgentContext``.

Bad entries become diagnostics.  If nothing usable remains, the agent
gets the fallback catalog (``IdleGoal`` + ``NoOpAction``) instead of
crashing.
"""

from __future__ import annotations
import random
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from components.keys import Need, Fact, parse_key, location_fact
from logic.goap.actions import (
    Action, NeedReductionAction, MoveToAction,
    EatAction, DrinkAction, SleepAction, PlayAction,
    WanderAction, InvestigateAction, SayRandomLineAction, BarkAction, NoOpAction,
)
from logic.goap.goals import (
    Goal, NeedReductionGoal, EatGoal, DrinkGoal, SleepGoal, PlayGoal,
    IdleGoal, CommunicationGoal,
)
from logic.goap.planner import provides

if TYPE_CHECKING:
    from core.events import EventBus
    from logic.movement import NavHandle
    from logic.perception import PoiLocator


@dataclass
class AgentContext:
    """Per-agent collaborators injected into actions at build time."""
    eid: int = 0
    nav: NavHandle | None = None
    locator: PoiLocator | None = None
    rng: random.Random = field(default_factory=random.Random)
    bus: EventBus | None = None
    crowd: Callable[[], int] | None = None


@dataclass
class Catalog:
    goals: list[Goal] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)
    fallback_used: bool = False
    source: str = "builtin"

    def action_types(self) -> list[str]:
        return [a.action_type for a in self.actions]

    def goal_types(self) -> list[str]:
        return [g.goal_type for g in self.goals]


# ── Kind registry ────────────────────────────────────────────────────

GoalFactory = Callable[[dict, AgentContext], Goal]
ActionFactory = Callable[[dict, AgentContext], Action]

_goal_kinds: dict[str, GoalFactory] = {}
_action_kinds: dict[str, ActionFactory] = {}


def register_goal_kind(kind: str, factory: GoalFactory) -> None:
    """Register *factory* for ``[[goals]]`` entries with ``kind = <kind>``."""
    _goal_kinds[kind] = factory


def register_action_kind(kind: str, factory: ActionFactory) -> None:
    """Register *factory* for ``[[actions]]`` entries with ``kind = <kind>``."""
    _action_kinds[kind] = factory


def goal_kinds() -> list[str]:
    return sorted(_goal_kinds)


def action_kinds() -> list[str]:
    return sorted(_action_kinds)


def _need(name: str) -> Need:
    return Need(name.removeprefix("need_"))


def _location(entry: dict) -> Fact:
    fact = parse_key(entry["location"])
    if not isinstance(fact, Fact) or not fact.is_location:
        raise ValueError(f"{entry['location']!r} is not a location fact")
    return fact


def _need_goal(e: dict, ctx: AgentContext) -> Goal:
    return NeedReductionGoal(
        e["type"], _need(e["need"]),
        activation=e.get("activation", 0.5),
        completion=e.get("completion", 0.05),
        scale=e.get("scale", 10.0),
        target=e.get("target", 0.0),
    )


def _need_action(e: dict, ctx: AgentContext) -> Action:
    return NeedReductionAction(
        e["type"], _need(e["need"]), _location(e),
        target=e.get("target", 0.0),
        duration=e.get("duration", 2.0),
        cost=e.get("cost", 1.0),
        status=e.get("status"),
    )


def _move_to(e: dict, ctx: AgentContext) -> Action:
    if ctx.nav is None or ctx.locator is None:
        raise ValueError("move_to needs a movement handle and a locator")
    return MoveToAction(
        ctx.nav, ctx.locator, e["goal"], _location(e),
        cost=e.get("cost", 1.0),
        stopping_distance=e.get("stopping_distance"),
        give_up_after=e.get("give_up_after"),
    )


def _wander(e: dict, ctx: AgentContext) -> Action:
    if ctx.nav is None:
        raise ValueError("wander needs a movement handle")
    return WanderAction(ctx.nav, ctx.rng, radius=e.get("radius"),
                        duration=e.get("duration"), speed=e.get("speed"),
                        cost=e.get("cost"), cooldown=e.get("cooldown"))


def _investigate(e: dict, ctx: AgentContext) -> Action:
    if ctx.nav is None:
        raise ValueError("investigate needs a movement handle")
    return InvestigateAction(ctx.nav, ctx.locator, ctx.rng, radius=e.get("radius"),
                             duration=e.get("duration"), cost=e.get("cost"),
                             cooldown=e.get("cooldown"))


register_goal_kind("need", _need_goal)
register_goal_kind("eat", lambda e, ctx: EatGoal())
register_goal_kind("drink", lambda e, ctx: DrinkGoal())
register_goal_kind("sleep", lambda e, ctx: SleepGoal())
register_goal_kind("play", lambda e, ctx: PlayGoal())
register_goal_kind("idle", lambda e, ctx: IdleGoal(
    base=e.get("base", 0.3), bonus=e.get("bonus", 0.5), ceiling=e.get("ceiling", 0.8)))
register_goal_kind("communication", lambda e, ctx: CommunicationGoal(
    urgent=e.get("urgent", 0.7)))

register_action_kind("need_reduction", _need_action)
register_action_kind("eat", lambda e, ctx: EatAction(e.get("duration"), e.get("cost")))
register_action_kind("drink", lambda e, ctx: DrinkAction(e.get("duration"), e.get("cost")))
register_action_kind("sleep", lambda e, ctx: SleepAction(e.get("duration"), e.get("cost")))
register_action_kind("play", lambda e, ctx: PlayAction(e.get("duration"), e.get("cost")))
register_action_kind("move_to", _move_to)
register_action_kind("wander", _wander)
register_action_kind("investigate", _investigate)
register_action_kind("say_random", lambda e, ctx: SayRandomLineAction(
    ctx.eid, ctx.bus, ctx.rng, ctx.crowd, duration=e.get("duration"),
    display=e.get("display"), cost=e.get("cost"),
    cooldown=e.get("cooldown")))
register_action_kind("bark", lambda e, ctx: BarkAction(
    ctx.eid, ctx.bus, duration=e.get("duration"), cost=e.get("cost")))
register_action_kind("noop", lambda e, ctx: NoOpAction(e.get("duration"), e.get("cost")))


# ── Building ─────────────────────────────────────────────────────────

def default_path() -> Path:
    root = Path(__file__).resolve().parent.parent.parent
    return root / "data" / "catalog.toml"


def load_catalog(path: str | Path | None = None,
                 ctx: AgentContext | None = None) -> Catalog:
    """Read a catalog file.  Never raises for bad content."""
    path = default_path() if path is None else Path(path)
    ctx = ctx or AgentContext()

    if not path.exists():
        return fallback_catalog([f"{path} not found"], ctx, source=str(path))
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        return fallback_catalog([f"{path} is not valid TOML ({exc})"], ctx,
                                source=str(path))
    return build_catalog(raw, ctx, source=str(path))


def build_catalog(raw: dict, ctx: AgentContext | None = None,
                  source: str = "inline") -> Catalog:
    """Instantiate goals and actions from a parsed catalog table."""
    ctx = ctx or AgentContext()
    diagnostics: list[str] = []
    goals: list[Goal] = []
    actions: list[Action] = []

    for i, entry in enumerate(raw.get("goals", [])):
        goal = _build(entry, _goal_kinds, ctx, f"goals[{i}]", diagnostics)
        if goal is not None:
            goals.append(goal)
    for i, entry in enumerate(raw.get("actions", [])):
        action = _build(entry, _action_kinds, ctx, f"actions[{i}]", diagnostics)
        if action is not None:
            actions.append(action)

    if not goals or not actions:
        missing = "goals" if not goals else "actions"
        diagnostics.append(f"no usable {missing}")
        return fallback_catalog(diagnostics, ctx, source=source)

    diagnostics += validate_catalog(goals, actions)
    for line in diagnostics:
        print(f"[CATALOG] {source}: {line}")
    return Catalog(goals, actions, diagnostics, fallback_used=False, source=source)


def _build(entry, registry: dict, ctx: AgentContext, where: str,
           diagnostics: list[str]):
    if not isinstance(entry, dict):
        diagnostics.append(f"{where}: expected a table")
        return None
    kind = entry.get("kind")
    factory = registry.get(kind)
    if factory is None:
        diagnostics.append(f"{where}: unknown kind {kind!r}")
        return None
    fields_ = {k: v for k, v in entry.items() if k != "kind"}
    try:
        return factory(fields_, ctx)
    except KeyError as exc:
        diagnostics.append(f"{where} ({kind}): missing field {exc}")
    except (TypeError, ValueError) as exc:
        diagnostics.append(f"{where} ({kind}): {exc}")
    return None


def fallback_catalog(diagnostics: list[str] | None = None,
                     ctx: AgentContext | None = None,
                     source: str = "builtin") -> Catalog:
    """Minimal always-plannable catalog."""
    diagnostics = list(diagnostics or [])
    diagnostics.append("using fallback catalog (idle + noop)")
    for line in diagnostics:
        print(f"[CATALOG] {source}: {line}")
    return Catalog([IdleGoal()], [NoOpAction()], diagnostics,
                   fallback_used=True, source=source)


RESOURCES: dict[str, str] = {
    "food": "eat",
    "water": "drink",
    "bed": "sleep",
    "toy": "play",
}


def standard_catalog(ctx: AgentContext) -> Catalog:
    """The full built-in set, equivalent to the shipped ``catalog.toml``."""
    goals: list[Goal] = [EatGoal(), DrinkGoal(), SleepGoal(), PlayGoal(),
                         CommunicationGoal(), IdleGoal()]
    actions: list[Action] = [EatAction(), DrinkAction(), SleepAction(), PlayAction()]
    if ctx.nav is not None and ctx.locator is not None:
        for resource, goal_type in RESOURCES.items():
            actions.append(MoveToAction(ctx.nav, ctx.locator, goal_type,
                                        location_fact(resource)))
        actions.append(WanderAction(ctx.nav, ctx.rng))
        actions.append(InvestigateAction(ctx.nav, ctx.locator, ctx.rng))
    actions += [SayRandomLineAction(ctx.eid, ctx.bus, ctx.rng, ctx.crowd),
                BarkAction(ctx.eid, ctx.bus), NoOpAction()]
    diagnostics = validate_catalog(goals, actions)
    return Catalog(goals, actions, diagnostics, source="builtin")


# ── Validation ───────────────────────────────────────────────────────

def validate_catalog(goals: list[Goal], actions: list[Action]) -> list[str]:
    """Static sanity checks.  Problems are reported, never fatal."""
    problems: list[str] = []

    seen: set[str] = set()
    for action in actions:
        if action.action_type in seen:
            problems.append(f"duplicate action type {action.action_type!r}")
        seen.add(action.action_type)
    seen = set()
    for goal in goals:
        if goal.goal_type in seen:
            problems.append(f"duplicate goal type {goal.goal_type!r}")
        seen.add(goal.goal_type)

    produced = {key for a in actions for key in a.effects}
    for goal in goals:
        for key in goal.desired_state():
            if key not in produced:
                problems.append(f"goal {goal.goal_type!r}: no action produces {key.key}")

    consumed = {key for a in actions for key in a.preconditions}
    for action in actions:
        for key, value in action.effects.items():
            if isinstance(key, Fact) and key.is_location and value is True \
                    and key not in consumed:
                problems.append(f"{action.action_type} produces {key.key} "
                                f"but nothing requires it")
    for action in actions:
        for key, value in action.preconditions.items():
            if not any(provides(other, key, value) for other in actions):
                problems.append(f"{action.action_type} requires {key.key} "
                                f"but no action produces it")
    return problems
