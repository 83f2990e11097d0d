"""components.spatial — Position, motion and navigation state.

All coordinates and distances are in metres.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class Position:
    x: float = 0.0        # m
    y: float = 0.0        # m


@dataclass
class Velocity:
    x: float = 0.0        # m/s
    y: float = 0.0        # m/s


@dataclass
class Facing:
    """Heading in radians (0 = +x, π/2 = +y).

    Written by steering while moving and by look-around actions
    while standing still.
    """
    angle: float = 0.0


@dataclass
class Navigator:
    """Destination the steering system drives this entity toward.

    ``has_destination`` is False when idle.  ``stopping_distance`` is the
    arrival tolerance; ``speed`` the cruise speed.
    """
    dest_x: float = 0.0              # m
    dest_y: float = 0.0              # m
    has_destination: bool = False
    speed: float = 3.5               # m/s
    stopping_distance: float = 0.5   # m
