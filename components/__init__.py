"""components — ECS component dataclasses, organised by domain.

Submodules
----------
keys        Need, Fact (closed state-key vocabulary)
state       AgentState, WorldState (fact stores)
spatial     Position, Velocity, Facing, Navigator
rendering   Identity, Sprite
goap        PointOfInterest, GoapBrain
resources   GameClock
dev_log     DevLog

All public names are re-exported here so callers can write
``from components import Position``.
"""

# ── Keys / fact stores ───────────────────────────────────────────────
from components.keys import Need, Fact, StateKey, parse_key, location_fact
from components.state import AgentState, WorldState

# ── Spatial ──────────────────────────────────────────────────────────
from components.spatial import Position, Velocity, Facing, Navigator

# ── Rendering ────────────────────────────────────────────────────────
from components.rendering import Identity, Sprite

# ── GOAP ─────────────────────────────────────────────────────────────
from components.goap import PointOfInterest, GoapBrain

# ── World resources / singletons ─────────────────────────────────────
from components.resources import GameClock
from components.dev_log import DevLog

__all__ = [
    # keys / state
    "Need", "Fact", "StateKey", "parse_key", "location_fact",
    "AgentState", "WorldState",
    # spatial
    "Position", "Velocity", "Facing", "Navigator",
    # rendering
    "Identity", "Sprite",
    # goap
    "PointOfInterest", "GoapBrain",
    # resources
    "GameClock", "DevLog",
]
