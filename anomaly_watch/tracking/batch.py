"""Pending sightings between flushes and the session's reported-player set."""

from __future__ import annotations

import threading
from typing import Dict, FrozenSet, Iterable, List

from .sighting import Sighting


class SightingBatch:
    """Deduplicating ``name -> Sighting`` map shared with async completions.

    The first sighting recorded for a name is kept until the batch is
    drained; later sightings of the same name are ignored.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: Dict[str, Sighting] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def record_if_new(self, entity_id: str, sighting: Sighting) -> bool:
        """Store ``sighting`` unless ``entity_id`` is already pending."""

        with self._lock:
            if entity_id in self._pending:
                return False
            self._pending[entity_id] = sighting
            return True

    def drain(self) -> Dict[str, Sighting]:
        """Return every pending sighting and reset the batch to empty."""

        with self._lock:
            drained = self._pending
            self._pending = {}
        return drained

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._pending)

    def clear(self) -> None:
        with self._lock:
            self._pending.clear()

    def __contains__(self, entity_id: object) -> bool:
        with self._lock:
            return entity_id in self._pending

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def __bool__(self) -> bool:
        return len(self) > 0


class ReportedSet:
    """Names successfully submitted during this session."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids: set[str] = set()

    def add_all(self, entity_ids: Iterable[str]) -> None:
        with self._lock:
            self._ids.update(entity_ids)

    def snapshot(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._ids)

    def clear(self) -> None:
        with self._lock:
            self._ids.clear()

    def __contains__(self, entity_id: object) -> bool:
        with self._lock:
            return entity_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)


__all__ = ["SightingBatch", "ReportedSet"]
