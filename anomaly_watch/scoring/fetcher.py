"""Best-effort asynchronous refresh of stale anomaly scores."""

from __future__ import annotations

import json
import logging
import math
import threading
from typing import Any, Iterable, Protocol

import httpx

from ..transport.api_client import ScoringApiClient
from .cache import ScoreCache

logger = logging.getLogger(__name__)

SCORE_FIELD = "anomalyScore"


class Spawner(Protocol):
    def spawn(self, coro: Any) -> Any:
        ...


class MalformedScoreResponse(ValueError):
    """Response body did not carry a numeric ``anomalyScore``."""


def parse_score(response: httpx.Response) -> float:
    """Extract the anomaly score from a successful lookup ``response``."""

    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedScoreResponse(f"body is not JSON: {exc}") from exc

    if not isinstance(data, dict) or SCORE_FIELD not in data:
        raise MalformedScoreResponse(f"missing '{SCORE_FIELD}' field")
    value = data[SCORE_FIELD]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedScoreResponse(f"'{SCORE_FIELD}' is not numeric: {value!r}")
    if not math.isfinite(value):
        raise MalformedScoreResponse(f"'{SCORE_FIELD}' is not finite: {value!r}")
    return float(value)


class ScoreFetcher:
    """Issue at most one outstanding lookup per entity and cache the result.

    Failures are logged and dropped; the entity stays stale in the cache and
    is picked up again on a later tick.
    """

    def __init__(self, api: ScoringApiClient, cache: ScoreCache, runner: Spawner) -> None:
        self.api = api
        self.cache = cache
        self.runner = runner
        self._lock = threading.Lock()
        self._in_flight: set[str] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def fetch(self, entity_id: str) -> bool:
        """Schedule a lookup for ``entity_id`` unless one is already running."""

        with self._lock:
            if entity_id in self._in_flight:
                return False
            self._in_flight.add(entity_id)

        if self.runner.spawn(self._fetch(entity_id)) is None:
            self._finish(entity_id)
            return False
        return True

    def refresh(self, entity_ids: Iterable[str]) -> int:
        """Fetch every id in ``entity_ids`` whose cached score is stale."""

        issued = 0
        for entity_id in entity_ids:
            if self.cache.is_stale(entity_id) and self.fetch(entity_id):
                issued += 1
        return issued

    def in_flight(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._in_flight)

    def clear(self) -> None:
        with self._lock:
            self._in_flight.clear()

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------
    async def _fetch(self, entity_id: str) -> None:
        try:
            response = await self.api.get_score(entity_id)
            if not response.is_success:
                logger.debug(
                    "[ScoreFetcher] Failed to fetch anomaly score for %s: %s",
                    entity_id,
                    response.status_code,
                )
                return
            score = parse_score(response)
            self.cache.put(entity_id, score)
            logger.debug("[ScoreFetcher] Cached anomaly score %.2f for %s", score, entity_id)
        except httpx.RequestError as exc:
            logger.debug("[ScoreFetcher] Failed to fetch anomaly score for %s: %s", entity_id, exc)
        except MalformedScoreResponse as exc:
            logger.debug("[ScoreFetcher] Error processing anomaly score for %s: %s", entity_id, exc)
        except Exception as exc:
            logger.debug(
                "[ScoreFetcher] Unexpected error (%s) fetching score for %s: %s",
                type(exc).__name__,
                entity_id,
                exc,
            )
        finally:
            self._finish(entity_id)

    def _finish(self, entity_id: str) -> None:
        with self._lock:
            self._in_flight.discard(entity_id)


__all__ = ["ScoreFetcher", "MalformedScoreResponse", "parse_score", "SCORE_FIELD"]
