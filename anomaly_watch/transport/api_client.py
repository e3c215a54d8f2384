"""HTTP access to the remote scoring service."""

from __future__ import annotations

import hashlib
import logging
import os
from typing import Any, Dict

import httpx

from ..config import CONFIG, ApiConfig

logger = logging.getLogger(__name__)


class ScoringApiClient:
    """Issue score lookups and batch submissions against the scoring endpoint.

    In ``live`` mode every call opens an :class:`httpx.AsyncClient` with the
    configured timeout. ``echo`` mode never touches the network: lookups get a
    deterministic score derived from the player name and submissions are
    accepted with ``202``.
    """

    MODES = ("echo", "live")

    def __init__(
        self,
        endpoint: str | None = None,
        *,
        timeout: float | None = None,
        mode: str | None = None,
        api_config: ApiConfig | None = None,
    ) -> None:
        cfg = api_config or CONFIG.api
        self.endpoint = endpoint or cfg.endpoint
        self.timeout = timeout if timeout is not None else cfg.timeout_seconds
        self.mode = mode if mode in self.MODES else self.current_mode(cfg)
        logger.info("[ScoringApiClient] Endpoint %s (mode: %s)", self.endpoint, self.mode)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    async def get_score(self, entity_id: str) -> httpx.Response:
        """GET the anomaly score for ``entity_id``."""

        if self.mode == "echo":
            request = httpx.Request("GET", self.endpoint, params={"player": entity_id})
            return httpx.Response(
                200, json={"anomalyScore": self._echo_score(entity_id)}, request=request
            )

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(self.endpoint, params={"player": entity_id})

    async def post_batch(self, payload: Dict[str, Any]) -> httpx.Response:
        """POST a sightings ``payload``."""

        if self.mode == "echo":
            request = httpx.Request("POST", self.endpoint, json=payload)
            return httpx.Response(202, json={"accepted": len(payload.get("players", []))}, request=request)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.endpoint, json=payload)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _echo_score(entity_id: str) -> float:
        digest = hashlib.sha1(entity_id.encode("utf-8")).digest()
        return round(int.from_bytes(digest[:4], "big") / 0xFFFFFFFF, 2)

    @classmethod
    def current_mode(cls, api_config: ApiConfig | None = None) -> str:
        """Return the configured API mode."""

        env_mode = os.getenv("AW_API_MODE")
        if env_mode and env_mode.lower() in cls.MODES:
            return env_mode.lower()

        cfg = api_config or CONFIG.api
        mode_from_cfg = str(cfg.mode).lower()
        if mode_from_cfg in cls.MODES:
            return mode_from_cfg

        logger.warning("[ScoringApiClient] Unknown API mode '%s'; using echo.", cfg.mode)
        return "echo"


__all__ = ["ScoringApiClient"]
