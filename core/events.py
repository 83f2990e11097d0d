"""core/events.py — Lightweight event bus.

Decouples the GOAP executor (which *signals* lifecycle transitions)
from observers that *react* to them (the arbitration loop's logging,
the debug overlay, speech bubbles).  The bus lives as an ECS
resource::

    from core.events import EventBus
    bus = world.res(EventBus)
    bus.emit(ActionStarted(eid=42, action_type="eat"))

Consumers subscribe with a callable::

    bus.subscribe("PlanCompleted", my_handler)

And the tick pipeline drains once per frame::

    bus.drain()          # calls all handlers for pending events

Events are plain dataclasses.  Subscriptions are keyed by class name,
so ``subscribe(PlanCompleted, ...)`` and ``subscribe("PlanCompleted", ...)``
are the same.  A handler that raises is reported and skipped; the
remaining handlers still run.
"""

from __future__ import annotations
import traceback
from collections import Counter, defaultdict, deque
from dataclasses import dataclass
from typing import Any, Callable

from core.tuning import get as _tun


# ═══════════════════════════════════════════════════════════════════
#  Event definitions
# ═══════════════════════════════════════════════════════════════════

@dataclass
class GoalSelected:
    """Arbitration picked a goal for an agent."""
    eid: int
    goal_type: str
    priority: float = 0.0


@dataclass
class PlanCreated:
    """The planner produced a plan and the executor adopted it."""
    eid: int
    goal_type: str
    actions: tuple[str, ...] = ()
    total_cost: float = 0.0


@dataclass
class PlanningFailed:
    """No plan could be found for a goal (recovered locally)."""
    eid: int
    goal_type: str
    reason: str = ""


@dataclass
class ActionStarted:
    eid: int
    action_type: str


@dataclass
class ActionSucceeded:
    eid: int
    action_type: str


@dataclass
class ActionFailed:
    """An action reported ``FAILED`` or its preconditions broke at start."""
    eid: int
    action_type: str
    reason: str = ""


@dataclass
class PlanCompleted:
    """A plan reached a terminal state."""
    eid: int
    goal_type: str
    success: bool


@dataclass
class PlanInvalidated:
    """Arbitration noticed the running plan is no longer valid."""
    eid: int
    goal_type: str


@dataclass
class AgentSpoke:
    """Presentation-only: an agent said a line (speech bubble)."""
    eid: int
    text: str
    duration: float = 2.0


@dataclass
class CatalogFallback:
    """The external catalog was unusable; the built-in one is in use."""
    eid: int
    diagnostics: tuple[str, ...] = ()


# ═══════════════════════════════════════════════════════════════════
#  Event Bus
# ═══════════════════════════════════════════════════════════════════

def _type_name(event_type: str | type) -> str:
    return event_type if isinstance(event_type, str) else event_type.__name__


class EventBus:
    """Queued lifecycle events, delivered by ``drain()`` once per frame."""

    def __init__(self, max_passes: int | None = None):
        self._queue: deque[Any] = deque()
        self._subs: dict[str, list[Callable]] = defaultdict(list)
        self._counts: Counter[str] = Counter()
        self.max_passes = int(_tun("events", "max_passes", 32)
                              if max_passes is None else max_passes)

    def emit(self, event) -> None:
        self._queue.append(event)

    def subscribe(self, event_type: str | type, handler: Callable) -> None:
        """*event_type* is the event class or its name (``"PlanCompleted"``)."""
        self._subs[_type_name(event_type)].append(handler)

    def unsubscribe(self, event_type: str | type, handler: Callable) -> None:
        handlers = self._subs.get(_type_name(event_type), [])
        if handler in handlers:
            handlers.remove(handler)

    def drain(self) -> int:
        """Deliver queued events in FIFO order; returns how many were handled.

        Events emitted by handlers are delivered in a further pass of the
        same drain, up to ``max_passes`` passes.  Anything still queued
        after that waits for the next frame.
        """
        handled = 0
        for _ in range(self.max_passes):
            if not self._queue:
                break
            batch, self._queue = self._queue, deque()
            for event in batch:
                self._deliver(event)
            handled += len(batch)
        else:
            if self._queue:
                print(f"[EVENT] {len(self._queue)} events deferred after "
                      f"{self.max_passes} passes")
        return handled

    def _deliver(self, event) -> None:
        name = type(event).__name__
        self._counts[name] += 1
        for handler in list(self._subs.get(name, ())):
            try:
                handler(event)
            except Exception as exc:
                print(f"[EVENT] {name} handler {getattr(handler, '__qualname__', handler)} "
                      f"failed: {exc}")
                traceback.print_exc()

    # ── Introspection (tests, overlay) ───────────────────────────────

    def pending(self, event_type: str | type | None = None) -> list[Any]:
        """Queued events, optionally of one type, without delivering them."""
        if event_type is None:
            return list(self._queue)
        name = _type_name(event_type)
        return [e for e in self._queue if type(e).__name__ == name]

    def pending_count(self) -> int:
        return len(self._queue)

    def clear(self) -> None:
        self._queue.clear()

    def stats(self) -> dict[str, int]:
        """Delivered-event totals by type."""
        return dict(self._counts)
