"""components.goap — GOAP-facing components.

``PointOfInterest`` marks an entity as a place that satisfies one or
more goal types (a food bowl supports ``"eat"``).  ``GoapBrain`` wraps
the per-agent arbitration loop so the tick pipeline can find agents
with a plain component query.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any


@dataclass
class PointOfInterest:
    """A location that supports the listed goal types.

    Clearing ``supports`` or setting ``active = False`` makes the POI
    invisible to perception, which is how a resource "vanishes".
    """
    kind: str = "generic"
    supports: list[str] = field(default_factory=list)
    active: bool = True

    def supports_goal(self, goal_type: str) -> bool:
        return self.active and goal_type in self.supports


@dataclass
class GoapBrain:
    """Holds a ``logic.goap.agent.GoapAgent``.

    ``active`` must be True for ``goap_system`` to tick it.
    """
    agent: Any = None
    active: bool = True
