"""components.resources — World-level singletons (not per-entity)."""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class GameClock:
    """Monotonic game time — accumulated ``dt`` since session start.

    Advanced once per frame by ``tick_systems``.  DevLog timestamps and
    the overlay read it.
    """
    time: float = 0.0
    paused: bool = False
    time_scale: float = 1.0
