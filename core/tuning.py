"""core/tuning.py — Data-driven tuning constants.

Every GOAP number (arbitration tick rate, planner bounds, need drift,
action durations, movement speeds) lives in ``data/goap_tuning.toml``
and is loaded once at startup.  Any system can read a value with::

    from core.tuning import get
    rate = get("agent", "tick_rate", 10.0)

Call sites always pass a default, so a missing or broken file just
means "built-in values".  ``override()`` pins a value in memory on top
of the file (tests, sandbox hotkeys); ``reload()`` re-reads the file
and drops every override.
"""

from __future__ import annotations
import tomllib
from pathlib import Path
from typing import Any


_file: dict = {}
_overrides: dict[tuple[str, str], Any] = {}
_path: Path | None = None


def default_path() -> Path:
    return Path(__file__).resolve().parent.parent / "data" / "goap_tuning.toml"


def load(path: str | Path | None = None) -> bool:
    """Load tuning from *path* (default ``data/goap_tuning.toml``).

    Returns False when the file is missing or not valid TOML; the
    previous values are discarded either way.
    """
    global _file, _path
    _path = default_path() if path is None else Path(path)
    _file = {}
    _overrides.clear()

    try:
        with open(_path, "rb") as f:
            _file = tomllib.load(f)
    except FileNotFoundError:
        print(f"[TUNING] {_path} not found — using defaults")
        return False
    except tomllib.TOMLDecodeError as exc:
        print(f"[TUNING] {_path} is not valid TOML ({exc}) — using defaults")
        return False

    print(f"[TUNING] Loaded {_count_leaves(_file)} values from {_path}")
    return True


def reload() -> bool:
    return load(_path)


def get(section: str, key: str, default=None):
    """Read ``key`` from the dotted *section* (``"actions.eat"`` → ``[actions.eat]``)."""
    if (section, key) in _overrides:
        return _overrides[section, key]
    return section_of(section).get(key, default)


def section(section_path: str) -> dict:
    """A copy of a whole section with overrides applied ({} if absent)."""
    out = dict(section_of(section_path))
    out.update({k: v for (s, k), v in _overrides.items() if s == section_path})
    return out


def override(section_path: str, key: str, value: Any) -> None:
    _overrides[section_path, key] = value


def section_of(section_path: str) -> dict:
    node: Any = _file
    for part in section_path.split("."):
        node = node.get(part) if isinstance(node, dict) else None
    return node if isinstance(node, dict) else {}


def _count_leaves(node: dict) -> int:
    return sum(_count_leaves(v) if isinstance(v, dict) else 1 for v in node.values())
