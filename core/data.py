"""
core/data.py — Scene files → entities

A scene file is TOML.  Every top-level *table* is one entity whose
sub-tables name components; every top-level *array of tables* is a
list of records the caller interprets itself (agents are spawned
through ``spawn_goap_agent``, not through components).

    loader = DataLoader(world)
    loader.register("position", Position)
    loader.register("poi", PointOfInterest)
    ids = loader.load("data/sandbox.toml")      # {"food_bowl": 3, ...}
    for entry in loader.records("agents"):
        ...

Unknown component names are reported once per entity and skipped;
unknown fields inside a known component are dropped silently.
"""

from __future__ import annotations
import tomllib
from dataclasses import fields, is_dataclass
from pathlib import Path
from core.ecs import World


class DataLoader:
    def __init__(self, world: World):
        self.world = world
        self._components: dict[str, type] = {}
        self._records: dict[str, list[dict]] = {}

    def register(self, key: str, comp_type: type) -> None:
        """``[food_bowl] position = {x = 12.0, y = 3.0}`` → ``Position(12.0, 3.0)``."""
        self._components[key] = comp_type

    def load(self, path: str | Path) -> dict[str, int]:
        with open(Path(path), "rb") as f:
            return self.spawn(tomllib.load(f))

    def records(self, name: str) -> list[dict]:
        """Entries of the ``[[name]]`` array from the last load (may be empty)."""
        return self._records.get(name, [])

    def spawn(self, data: dict) -> dict[str, int]:
        """Spawn one entity per table in *data*; returns ``{name: eid}``."""
        self._records = {k: v for k, v in data.items()
                         if isinstance(v, list) and all(isinstance(e, dict) for e in v)}
        ids: dict[str, int] = {}
        for name, table in data.items():
            if isinstance(table, dict):
                ids[name] = self._spawn_entity(name, table)
        return ids

    def _spawn_entity(self, name: str, table: dict) -> int:
        eid = self.world.spawn()
        unknown = [key for key in table if key not in self._components]
        if unknown:
            print(f"[DATA] {name}: no component registered for {', '.join(unknown)}")
        for key, value in table.items():
            comp_type = self._components.get(key)
            if comp_type is None:
                continue
            if isinstance(value, dict):
                self.world.add(eid, _build_component(comp_type, value))
            else:
                self.world.add(eid, comp_type(value))
        return eid


def _build_component(comp_type: type, kwargs: dict):
    if not is_dataclass(comp_type):
        return comp_type(**kwargs)
    known = {f.name: f for f in fields(comp_type)}
    built = {}
    for key, value in kwargs.items():
        f = known.get(key)
        if f is None:
            continue
        # TOML has no tuples; colour-style fields default to one.
        if isinstance(f.default, tuple) and isinstance(value, list):
            value = tuple(value)
        built[key] = value
    return comp_type(**built)
