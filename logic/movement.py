"""logic/movement.py — Steering, integration and the movement handle.

``steering_system`` turns a ``Navigator`` destination into velocity,
``movement_system`` integrates velocity into position.  Movement-type
GOAP actions never touch those components directly; they drive a
``NavHandle``, which is the whole movement contract the planner core
relies on: set a destination, ask whether we arrived, reset.
"""

from __future__ import annotations
import math

from core.ecs import World
from components import Position, Velocity, Facing, Navigator


def move_toward(pos, vel, tx: float, ty: float, speed: float):
    """Set velocity to move directly toward (tx, ty)."""
    dx = tx - pos.x
    dy = ty - pos.y
    d = math.hypot(dx, dy)
    if d < 0.05:
        vel.x, vel.y = 0.0, 0.0
        return
    vel.x = (dx / d) * speed
    vel.y = (dy / d) * speed


def steering_system(world: World, dt: float) -> None:
    """Point every navigating entity at its destination.

    Speed is capped so a single step never overshoots the target, which
    keeps arrival detection stable at large ``dt`` (headless runs).
    """
    for eid, pos, vel, nav in world.query(Position, Velocity, Navigator):
        if not nav.has_destination:
            continue
        dist = math.hypot(nav.dest_x - pos.x, nav.dest_y - pos.y)
        if dist <= nav.stopping_distance:
            vel.x, vel.y = 0.0, 0.0
            continue
        speed = nav.speed
        if dt > 0:
            speed = min(speed, dist / dt)
        move_toward(pos, vel, nav.dest_x, nav.dest_y, speed)
        facing = world.get(eid, Facing)
        if facing is not None and (vel.x or vel.y):
            facing.angle = math.atan2(vel.y, vel.x)


def movement_system(world: World, dt: float) -> None:
    """Integrate velocity into position."""
    for _eid, pos, vel in world.query(Position, Velocity):
        pos.x += vel.x * dt
        pos.y += vel.y * dt


class NavHandle:
    """Movement collaborator bound to one entity.

    Injected into movement/wander actions at catalog build time.
    """

    def __init__(self, world: World, eid: int):
        self.world = world
        self.eid = eid
        if not world.has(eid, Navigator):
            world.add(eid, Navigator())
        if not world.has(eid, Velocity):
            world.add(eid, Velocity())

    @property
    def _nav(self) -> Navigator:
        return self.world.get(self.eid, Navigator)

    @property
    def position(self) -> tuple[float, float]:
        pos = self.world.get(self.eid, Position)
        if pos is None:
            return 0.0, 0.0
        return pos.x, pos.y

    @property
    def stopping_distance(self) -> float:
        return self._nav.stopping_distance

    @property
    def speed(self) -> float:
        return self._nav.speed

    def set_destination(self, x: float, y: float) -> None:
        nav = self._nav
        nav.dest_x, nav.dest_y = x, y
        nav.has_destination = True

    def set_speed(self, speed: float) -> None:
        self._nav.speed = max(0.01, speed)

    def remaining_distance(self) -> float:
        nav = self._nav
        if not nav.has_destination:
            return math.inf
        x, y = self.position
        return math.hypot(nav.dest_x - x, nav.dest_y - y)

    def has_arrived(self) -> bool:
        return self.remaining_distance() <= self._nav.stopping_distance

    def reset_path(self) -> None:
        self._nav.has_destination = False
        vel = self.world.get(self.eid, Velocity)
        if vel is not None:
            vel.x, vel.y = 0.0, 0.0

    def look_at(self, angle: float) -> None:
        facing = self.world.get(self.eid, Facing)
        if facing is None:
            facing = Facing()
            self.world.add(self.eid, facing)
        facing.angle = angle

    def heading(self) -> float:
        facing = self.world.get(self.eid, Facing)
        return facing.angle if facing else 0.0
