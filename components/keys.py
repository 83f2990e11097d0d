"""components.keys — Closed vocabulary of need and fact names.

Desired states, preconditions and effects are maps keyed by these
enums instead of free-form strings, so a typo is an import-time error
rather than a goal that silently never plans.

Textual forms (used by ``data/catalog.toml`` and the overlay):

    need_hunger   → Need.HUNGER      (float, lower is better)
    at_food       → Fact.AT_FOOD     (bool)
    fact_idle     → Fact.IDLE        (optional ``fact_`` prefix)
"""

from __future__ import annotations
from enum import Enum
from typing import Union


class Need(Enum):
    """Agent-local continuous drive in [0, 1] (0 = satisfied)."""
    HUNGER = "hunger"
    THIRST = "thirst"
    SLEEP = "sleep"
    PLAY = "play"

    @property
    def key(self) -> str:
        return f"need_{self.value}"


class Fact(Enum):
    """Boolean flag.  ``at_*`` location facts are per agent, the rest world-global."""
    AT_FOOD = "at_food"
    AT_WATER = "at_water"
    AT_BED = "at_bed"
    AT_TOY = "at_toy"
    IDLE = "idle"
    INVESTIGATING = "investigating"
    HAS_BARKED = "has_barked"
    COMMUNICATED = "communicated"
    DAY_TIME = "day_time"
    SAFE = "safe"

    @property
    def key(self) -> str:
        return self.value

    @property
    def is_location(self) -> bool:
        return self.value.startswith("at_")


StateKey = Union[Need, Fact]


def parse_key(text: str) -> StateKey:
    """Turn ``"need_hunger"`` / ``"at_food"`` / ``"fact_idle"`` into a key.

    Raises ``ValueError`` for anything outside the vocabulary.
    """
    name = text.strip()
    if name.startswith("need_"):
        return Need(name[len("need_"):])
    if name.startswith("fact_"):
        name = name[len("fact_"):]
    return Fact(name)


def parse_state_map(raw: dict) -> dict[StateKey, float | bool]:
    """Parse a ``{"need_hunger": 0.0, "at_food": false}`` table.

    Need values are coerced to float, fact values must be booleans.
    """
    out: dict[StateKey, float | bool] = {}
    for name, value in raw.items():
        key = parse_key(name)
        if isinstance(key, Need):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} expects a number, got {value!r}")
            out[key] = float(value)
        else:
            if not isinstance(value, bool):
                raise ValueError(f"{name} expects true/false, got {value!r}")
            out[key] = value
    return out


def location_fact(resource: str) -> Fact:
    """``"food"`` → ``Fact.AT_FOOD``."""
    return Fact(f"at_{resource}")


def format_state_map(state: dict) -> str:
    """Compact ``need_hunger=0.00, at_food=False`` rendering for logs."""
    parts = []
    for key, value in state.items():
        if isinstance(value, float):
            parts.append(f"{key.key}={value:.2f}")
        else:
            parts.append(f"{key.key}={value}")
    return ", ".join(parts)
