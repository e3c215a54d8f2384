"""Tracker session: shared state, lifecycle and the per-tick driver."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Iterable, List

from ..config import CONFIG, Config, TrackingConfig
from ..overlay.score_overlay import ScoreLabel, ScoreOverlay
from ..scoring.cache import ScoreCache
from ..scoring.fetcher import ScoreFetcher
from ..submission.worker import ReportContext, Submission, SubmissionWorker
from ..tracking.batch import ReportedSet, SightingBatch
from ..tracking.sighting import WorldPoint, sighting_from_player
from ..transport.api_client import ScoringApiClient
from ..transport.runner import AsyncRunner
from .game_state import GameState
from .host import HostClient, HostPlayer, other_players

logger = logging.getLogger(__name__)


class TickDriver:
    """Per-tick orchestration: record sightings, refresh scores, flush batches."""

    def __init__(
        self,
        host: HostClient,
        batch: SightingBatch,
        fetcher: ScoreFetcher,
        worker: SubmissionWorker,
        tracking: TrackingConfig,
        flush_interval_ticks: int = 100,
    ) -> None:
        self.host = host
        self.batch = batch
        self.fetcher = fetcher
        self.worker = worker
        self.tracking = tracking
        self.flush_interval_ticks = flush_interval_ticks
        # Only reset by an actual flush, so it keeps growing while the batch is empty.
        self.tick_counter = 0

    @property
    def active(self) -> bool:
        return self.tracking.enable_tracking and self.host.game_state is GameState.LOGGED_IN

    def update(self, tick: int | None = None) -> None:
        """Run one tick; no-op unless logged in with tracking enabled."""

        if not self.active:
            return

        players = list(other_players(self.host))
        self.record_new(players)
        self.fetcher.refresh(p.name for p in players)

        self.tick_counter += 1
        if self.tick_counter >= self.flush_interval_ticks and self.batch:
            logger.debug(
                "[TickDriver] Tick counter reached %d - submitting %d new player sightings",
                self.flush_interval_ticks,
                len(self.batch),
            )
            self.flush()

    def record_new(self, players: Iterable[HostPlayer]) -> int:
        added = 0
        for player in players:
            if player.name in self.batch:
                continue
            if self.batch.record_if_new(player.name, sighting_from_player(player)):
                added += 1
                logger.debug("[TickDriver] New player sighted: %s", player.name)
        return added

    def flush(self) -> Submission | None:
        """Hand the drained batch to the worker and reset the tick counter."""

        sightings = self.batch.drain()
        self.tick_counter = 0
        return self.worker.submit(sightings, self._report_context())

    def _report_context(self) -> ReportContext:
        local = self.host.local_player
        return ReportContext(
            reporter=(local.name if local is not None and local.name else "unknown"),
            world=self.host.world,
            location=WorldPoint.from_host(local.world_location) if local is not None else None,
            api_key=self.tracking.api_key,
        )


class TrackerSession:
    """Own every piece of tracker state and its start/stop/logout lifecycle."""

    def __init__(
        self,
        host: HostClient,
        config: Config | None = None,
        *,
        runner: Any | None = None,
        api: ScoringApiClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        cfg = config or CONFIG
        self.config = cfg
        self.host = host
        self.runner = runner if runner is not None else AsyncRunner()
        self.api = api or ScoringApiClient(api_config=cfg.api)

        self.batch = SightingBatch()
        self.reported = ReportedSet()
        self.cache = ScoreCache(cfg.cache.score_ttl_seconds, clock=clock)
        self.fetcher = ScoreFetcher(self.api, self.cache, self.runner)
        self.worker = SubmissionWorker(
            self.api,
            self.runner,
            self.reported,
            max_retries=cfg.submission.max_retries,
            retry_delay=cfg.submission.retry_delay_seconds,
        )
        self.driver = TickDriver(
            host,
            self.batch,
            self.fetcher,
            self.worker,
            cfg.tracking,
            flush_interval_ticks=cfg.submission.flush_interval_ticks,
        )
        self.overlay = ScoreOverlay(self.cache.snapshot, cfg.tracking)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start_up(self) -> None:
        logger.info("[TrackerSession] Anomaly watch started.")
        logger.info(
            "[TrackerSession] Config status - Tracking enabled: %s",
            self.config.tracking.enable_tracking,
        )
        logger.info("[TrackerSession] API endpoint configured: %s", self.api.endpoint)
        self.runner.start()
        self.worker.drop_in_flight()
        self.driver.tick_counter = 0
        self.clear()

    def shut_down(self) -> None:
        self.worker.cancel_pending()
        self.runner.stop()
        dropped = self.worker.drop_in_flight()
        if dropped:
            logger.info("[TrackerSession] Abandoned %d unfinished submissions.", dropped)
        stats = self.worker.stats_snapshot()
        logger.info(
            "[TrackerSession] Anomaly watch stopped! Statistics - Total submissions: %d, Failed: %d, Unique players: %d",
            stats.total_submissions,
            stats.failed_submissions,
            len(self.reported),
        )
        self.clear()

    def on_game_state_changed(self, state: GameState) -> None:
        logger.debug("[TrackerSession] Game state changed to: %s", state)
        if state is GameState.LOGGED_IN:
            local = self.host.local_player
            name = local.name if local is not None and local.name else "unknown"
            logger.info("[TrackerSession] Anomaly watch activated for player: %s", name)
        elif state is GameState.LOGIN_SCREEN:
            self.clear()

    def clear(self) -> None:
        self.batch.clear()
        self.reported.clear()
        self.cache.clear()
        self.fetcher.clear()

    # ------------------------------------------------------------------
    # Tick / rendering
    # ------------------------------------------------------------------
    def update(self, tick: int | None = None) -> None:
        self.driver.update(tick)

    def anomaly_scores(self) -> Dict[str, float]:
        """Live ``name -> score`` pairs; expired scores are evicted."""

        return self.cache.snapshot()

    def render_overlay(self) -> List[ScoreLabel]:
        return self.overlay.render(self.host)


__all__ = ["TickDriver", "TrackerSession"]
