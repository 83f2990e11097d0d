"""logic/perception.py — Point-of-interest lookup for GOAP actions.

``PoiLocator`` answers "where is the nearest place that supports goal
X?".  It re-reads the ECS every call, so a POI that is deactivated or
stops supporting a goal disappears from the very next query; movement
actions rely on that to notice a vanished target.
"""

from __future__ import annotations
import math

from core.ecs import World
from components import Position, PointOfInterest


class PoiLocator:
    def __init__(self, world: World):
        self.world = world

    def find_nearest(self, goal_type: str, x: float, y: float) -> int | None:
        """Entity id of the closest active POI supporting *goal_type*."""
        hit = self.world.nearest(
            x, y, Position, PointOfInterest,
            where=lambda r: r[2].supports_goal(goal_type),
        )
        return hit[0] if hit else None

    def is_available(self, eid: int, goal_type: str) -> bool:
        if not self.world.alive(eid):
            return False
        poi = self.world.get(eid, PointOfInterest)
        return poi is not None and poi.supports_goal(goal_type)

    def position_of(self, eid: int) -> tuple[float, float] | None:
        pos = self.world.get(eid, Position)
        if pos is None or not self.world.alive(eid):
            return None
        return pos.x, pos.y

    def nearby(self, x: float, y: float, radius: float) -> list[tuple[int, float]]:
        """Active POIs within *radius*, nearest first."""
        found = []
        for eid, pos, poi in self.world.query(Position, PointOfInterest):
            if not poi.active:
                continue
            d = math.hypot(pos.x - x, pos.y - y)
            if d <= radius:
                found.append((eid, d))
        found.sort(key=lambda item: (item[1], item[0]))
        return found
