"""components.rendering — Identity and sprite data for the sandbox view."""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class Identity:
    name: str = ""
    kind: str = ""        # "agent", "poi", "prop"


@dataclass
class Sprite:
    char: str = "?"
    color: tuple[int, int, int] = (200, 200, 200)
    radius: float = 0.4   # m
