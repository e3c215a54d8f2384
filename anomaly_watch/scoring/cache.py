"""Time-bounded cache of anomaly scores fetched from the scoring service."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict


@dataclass(frozen=True, slots=True)
class ScoreEntry:
    """Score for ``entity_id`` stamped with the clock value at fetch time."""

    entity_id: str
    score: float
    fetched_at: float


class ScoreCache:
    """Per-entity score cache with a fixed time-to-live.

    Expired entries are evicted lazily, either when read through
    :meth:`get` or when :meth:`snapshot` is taken for rendering.
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, ScoreEntry] = {}

    # ------------------------------------------------------------------
    # Basic operations
    # ------------------------------------------------------------------
    def get(self, entity_id: str) -> ScoreEntry | None:
        """Return the live entry for ``entity_id`` or ``None``."""

        now = self._clock()
        with self._lock:
            entry = self._entries.get(entity_id)
            if entry is None:
                return None
            if self._expired(entry, now):
                del self._entries[entity_id]
                return None
            return entry

    def put(self, entity_id: str, score: float) -> ScoreEntry:
        """Insert or overwrite ``entity_id`` with ``score`` stamped now."""

        entry = ScoreEntry(entity_id, float(score), self._clock())
        with self._lock:
            self._entries[entity_id] = entry
        return entry

    def is_stale(self, entity_id: str) -> bool:
        """``True`` when ``entity_id`` has no entry or its entry expired."""

        return self.get(entity_id) is None

    def snapshot(self) -> Dict[str, float]:
        """Evict expired entries and return ``entity_id -> score`` for the rest."""

        now = self._clock()
        with self._lock:
            expired = [eid for eid, e in self._entries.items() if self._expired(e, now)]
            for eid in expired:
                del self._entries[eid]
            return {eid: e.score for eid, e in self._entries.items()}

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _expired(self, entry: ScoreEntry, now: float) -> bool:
        return now - entry.fetched_at > self.ttl_seconds

    def __len__(self) -> int:  # pragma: no cover - trivial
        with self._lock:
            return len(self._entries)


__all__ = ["ScoreCache", "ScoreEntry"]
