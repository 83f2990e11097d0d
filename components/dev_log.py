"""components.dev_log — Per-agent GOAP history.

World resource holding the most recent lifecycle transitions of every
agent.  The executor and the arbitration loop write to it; the overlay
and tests read it back by agent or by category.

    log = world.res(DevLog)
    log.record(eid, "plan", "move_to_food → eat", t=clock.time,
               details={"cost": 2.0})

Entries are dicts ``{"t", "eid", "name", "cat", "msg", "details"}``.
Categories written by the GOAP core are listed in ``CATEGORIES``.
"""

from __future__ import annotations
from collections import deque

CATEGORIES = ("goal", "plan", "action", "catalog", "error")


class DevLog:
    def __init__(self, max_entries: int = 500):
        self._entries: deque[dict] = deque(maxlen=max_entries)
        self._paused = False
        # Empty means "keep everything".
        self.cat_filter: set[str] = set()
        self.eid_filter: set[int] = set()

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, eid: int, cat: str, msg: str, *, name: str = "",
               t: float = 0.0, details: dict | None = None) -> None:
        if self._paused or not self._wanted(eid, cat):
            return
        self._entries.append({"t": t, "eid": eid, "name": name, "cat": cat,
                              "msg": msg, "details": details})

    def _wanted(self, eid: int, cat: str) -> bool:
        if self.cat_filter and cat not in self.cat_filter:
            return False
        return not self.eid_filter or eid in self.eid_filter

    def pause(self):
        self._paused = True

    def resume(self):
        self._paused = False

    def clear(self):
        self._entries.clear()

    # ── Queries (oldest first) ───────────────────────────────────────

    def recent(self, n: int = 50) -> list[dict]:
        return self._last(self._entries, n)

    def for_eid(self, eid: int, n: int = 30) -> list[dict]:
        """Last *n* entries recorded for agent *eid*."""
        return self._last((e for e in self._entries if e["eid"] == eid), n)

    def for_cat(self, cat: str, n: int = 50) -> list[dict]:
        return self._last((e for e in self._entries if e["cat"] == cat), n)

    @staticmethod
    def _last(entries, n: int) -> list[dict]:
        return list(deque(entries, maxlen=n)) if n > 0 else []
