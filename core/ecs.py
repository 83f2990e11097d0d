"""
core/ecs.py — Entity-Component-System

Entities are ints. Components are any object, stored by type.
Agents, points of interest and props are all entities; shared
singletons (world facts, clock, event bus, dev log) are resources.

    w = World()
    dog = w.spawn(Position(5.0, 3.0), Identity(name="Rex"))
    bowl = w.spawn(Position(12.0, 3.0), PointOfInterest(supports=["eat"]))

    for eid, pos, poi in w.query(Position, PointOfInterest):
        ...
"""

from __future__ import annotations
import math
from typing import Any, Callable, Iterator


class World:
    def __init__(self):
        self._next_id = 0
        self._stores: dict[type, dict[int, Any]] = {}
        self._dead: set[int] = set()

    # -- Entities --

    def spawn(self, *components: Any) -> int:
        """Create an entity, optionally attaching *components* right away."""
        self._next_id += 1
        eid = self._next_id
        for comp in components:
            self.add(eid, comp)
        return eid

    def kill(self, eid: int):
        self._dead.add(eid)

    def alive(self, eid: int) -> bool:
        return eid not in self._dead

    def purge(self):
        """Remove dead entities from all stores. Call once per frame."""
        for store in self._stores.values():
            for eid in self._dead:
                store.pop(eid, None)
        self._dead.clear()

    # -- Components --

    def add(self, eid: int, comp: Any):
        self._stores.setdefault(type(comp), {})[eid] = comp

    def get(self, eid: int, comp_type: type) -> Any | None:
        return self._stores.get(comp_type, {}).get(eid)

    def has(self, eid: int, comp_type: type) -> bool:
        return eid in self._stores.get(comp_type, {})

    # -- Queries --

    def query(self, *types: type) -> Iterator[tuple]:
        """Yield (eid, comp1, comp2, ...) for entities that have ALL types.

        Iterates in spawn order so callers that break ties on "first
        seen" stay deterministic.
        """
        if not types:
            return
        buckets = [self._stores.get(t, {}) for t in types]
        smallest = min(buckets, key=len)
        for eid in sorted(smallest):
            if eid in self._dead:
                continue
            if all(eid in b for b in buckets):
                yield (eid, *(b[eid] for b in buckets))

    def all_of(self, comp_type: type) -> Iterator[tuple[int, Any]]:
        """Yield (eid, component) for every living entity with this type."""
        for eid, comp in list(self._stores.get(comp_type, {}).items()):
            if eid >= 0 and eid not in self._dead:
                yield eid, comp

    def count(self, comp_type: type) -> int:
        return sum(1 for _ in self.all_of(comp_type))

    def nearest(self, x: float, y: float, *types: type,
                where: Callable[[tuple], bool] | None = None) -> tuple | None:
        """Return ``(eid, comp1, ..., dist)`` of the closest match, or None.

        The first type must be the position component (anything with
        ``.x`` / ``.y``).  *where* receives the query tuple and can veto
        candidates.  Ties go to the lowest entity id.
        """
        best = None
        best_dsq = math.inf
        for result in self.query(*types):
            if where is not None and not where(result):
                continue
            pos = result[1]
            dsq = (pos.x - x) ** 2 + (pos.y - y) ** 2
            if dsq < best_dsq:
                best_dsq = dsq
                best = result
        if best is None:
            return None
        return (*best, math.sqrt(best_dsq))

    # -- Resources (singletons, not tied to entities) --

    def set_res(self, resource: Any):
        self._stores.setdefault(type(resource), {})[-1] = resource

    def res(self, res_type: type) -> Any | None:
        return self._stores.get(res_type, {}).get(-1)

