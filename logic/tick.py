"""logic/tick.py — System tick orchestration.

One call per frame runs the whole simulation in a fixed order::

    from logic.tick import tick_systems
    tick_systems(world, dt)

Order matters: brains decide first (arbitration + executor), steering
turns their destinations into velocity, movement integrates, and the
event bus is drained last so observers see the whole frame's events.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from components import GameClock
from core.events import EventBus
from logic.movement import steering_system, movement_system
from logic.goap.agent import goap_system

if TYPE_CHECKING:
    from core.ecs import World


def tick_systems(world: "World", dt: float, *,
                 skip_brains: bool = False) -> float:
    """Run all simulation systems for one frame.

    Parameters
    ----------
    world : World
        The ECS world.
    dt : float
        Real frame delta; scaled by ``GameClock.time_scale`` here.
    skip_brains : bool
        Skip GOAP brain ticks (movement still runs).

    Returns the scaled delta actually simulated (0 while paused).
    """
    clock = world.res(GameClock)
    if clock:
        if clock.paused:
            return 0.0
        dt *= clock.time_scale
        clock.time += dt

    # GOAP brains
    if not skip_brains:
        goap_system(world, dt)

    # Physics
    steering_system(world, dt)
    movement_system(world, dt)

    # Event bus drain
    bus = world.res(EventBus)
    if bus:
        bus.drain()

    world.purge()
    return dt
