"""Batch submission with bounded retry and clear-on-terminal-outcome semantics."""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

import httpx

from ..tracking.batch import ReportedSet
from ..tracking.sighting import Sighting, WorldPoint
from ..transport.api_client import ScoringApiClient
from .retry import is_retryable

logger = logging.getLogger(__name__)


class Runner(Protocol):
    def spawn(self, coro: Any) -> Any:
        ...

    def call_later(self, delay: float, callback: Callable[[], Any]) -> Any:
        ...


class SubmissionState(Enum):
    IDLE = "idle"
    SENDING = "sending"
    RETRY_SCHEDULED = "retry_scheduled"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


TERMINAL_STATES = (SubmissionState.SUCCEEDED, SubmissionState.EXHAUSTED)


@dataclass(frozen=True)
class ReportContext:
    """Who is reporting, and from where."""

    reporter: str
    world: int
    location: Optional[WorldPoint]
    api_key: str = ""


@dataclass
class Submission:
    """One drained batch and the state of its attempt chain."""

    submission_id: int
    entity_ids: Tuple[str, ...]
    payload: Dict[str, Any]
    state: SubmissionState = SubmissionState.IDLE
    attempts: int = 0
    retries: int = 0
    retry_task: Any = None


@dataclass
class SubmissionStats:
    total_submissions: int = 0
    failed_submissions: int = 0
    attempts: int = 0
    last_submission_time: float = field(default_factory=time.time)


def build_payload(
    sightings: Mapping[str, Sighting],
    context: ReportContext,
    timestamp_ms: int | None = None,
) -> Dict[str, Any]:
    """Return the POST body for ``sightings`` reported under ``context``."""

    return {
        "reporter": context.reporter,
        "world": context.world,
        "location": context.location.to_dict() if context.location else None,
        "players": [s.to_dict() for s in sightings.values()],
        "timestamp": int(time.time() * 1000) if timestamp_ms is None else timestamp_ms,
        "apiKey": context.api_key,
    }


class SubmissionWorker:
    """Own the submit / retry / give-up protocol for drained batches.

    Each drained batch gets its own :class:`Submission` and a single attempt
    chain: a 2xx marks every id as reported; a non-2xx or non-retryable
    transport error drops the batch at once; timeouts and name-resolution
    failures are re-sent after ``retry_delay`` seconds up to ``max_retries``
    times before the batch is dropped.
    """

    def __init__(
        self,
        api: ScoringApiClient,
        runner: Runner,
        reported: ReportedSet,
        *,
        max_retries: int = 3,
        retry_delay: float = 5.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.api = api
        self.runner = runner
        self.reported = reported
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._clock = clock
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._in_flight: Dict[int, Submission] = {}
        self.stats = SubmissionStats(last_submission_time=clock())

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def submit(self, sightings: Mapping[str, Sighting], context: ReportContext) -> Submission | None:
        """Start submitting a drained batch; ``None`` if it is empty."""

        if not sightings:
            return None

        payload = build_payload(sightings, context, int(self._clock() * 1000))
        submission = Submission(
            submission_id=next(self._ids),
            entity_ids=tuple(sightings),
            payload=payload,
        )
        with self._lock:
            since_last = self._clock() - self.stats.last_submission_time
            self._in_flight[submission.submission_id] = submission

        logger.info(
            "[SubmissionWorker] Preparing submission #%d - New players: %d, World: %s, Time since last: %.0fms",
            submission.submission_id,
            len(submission.entity_ids),
            context.world,
            since_last * 1000,
        )
        logger.debug("[SubmissionWorker] Payload: %s", payload)
        self._start_attempt(submission)
        return submission

    @property
    def state(self) -> SubmissionState:
        """``IDLE`` when nothing is in flight, else the latest batch's state."""

        with self._lock:
            if not self._in_flight:
                return SubmissionState.IDLE
            latest = max(self._in_flight)
            return self._in_flight[latest].state

    def in_flight(self) -> List[Submission]:
        with self._lock:
            return list(self._in_flight.values())

    def stats_snapshot(self) -> SubmissionStats:
        with self._lock:
            return replace(self.stats)

    def cancel_pending(self) -> int:
        """Cancel scheduled retries; their batches are dropped."""

        cancelled = 0
        for submission in self.in_flight():
            with self._lock:
                task = submission.retry_task
                if submission.state is not SubmissionState.RETRY_SCHEDULED or task is None:
                    continue
            if task.cancel():
                cancelled += 1
            self._finish(submission, SubmissionState.EXHAUSTED, {"error": "cancelled"})
        if cancelled:
            logger.info("[SubmissionWorker] Cancelled %d scheduled retries.", cancelled)
        return cancelled

    def drop_in_flight(self) -> int:
        """Give up on every batch still in flight, whatever its state."""

        dropped = 0
        for submission in self.in_flight():
            if self._finish(submission, SubmissionState.EXHAUSTED, {"error": "abandoned"}):
                dropped += 1
        return dropped

    # ------------------------------------------------------------------
    # Attempt chain
    # ------------------------------------------------------------------
    def _start_attempt(self, submission: Submission) -> None:
        with self._lock:
            if submission.state in TERMINAL_STATES:
                return
            submission.state = SubmissionState.SENDING
            submission.retry_task = None
            submission.attempts += 1
            self.stats.attempts += 1
        logger.debug(
            "[SubmissionWorker] Sending submission #%d (attempt %d, %d players)",
            submission.submission_id,
            submission.attempts,
            len(submission.entity_ids),
        )
        if self.runner.spawn(self._send(submission)) is None:
            logger.error(
                "[SubmissionWorker] Runner unavailable; dropping submission #%d.",
                submission.submission_id,
            )
            self._finish(submission, SubmissionState.EXHAUSTED, {"error": "runner_unavailable"})

    async def _send(self, submission: Submission) -> None:
        try:
            response = await self.api.post_batch(submission.payload)
        except asyncio.CancelledError:
            self._finish(submission, SubmissionState.EXHAUSTED, {"error": "cancelled"})
            raise
        except Exception as exc:
            self._on_transport_error(submission, exc)
            return
        self._on_response(submission, response)

    def _on_response(self, submission: Submission, response: httpx.Response) -> None:
        with self._lock:
            self.stats.total_submissions += 1
            self.stats.last_submission_time = self._clock()
            total = self.stats.total_submissions
            already_finished = submission.state in TERMINAL_STATES

        if already_finished:
            logger.debug(
                "[SubmissionWorker] Ignoring late response %d for finished submission #%d",
                response.status_code,
                submission.submission_id,
            )
            return

        if response.is_success:
            self.reported.add_all(submission.entity_ids)
            logger.info(
                "[SubmissionWorker] Successfully submitted %d new player sightings - Response code: %d, Submission #%d",
                len(submission.entity_ids),
                response.status_code,
                total,
            )
            self._finish(submission, SubmissionState.SUCCEEDED)
            return

        logger.error(
            "[SubmissionWorker] Unexpected API response: %d %s",
            response.status_code,
            response.reason_phrase,
        )
        logger.debug("[SubmissionWorker] Error response body: %s", response.text[:500])
        self._finish(submission, SubmissionState.EXHAUSTED, {"status": response.status_code})

    def _on_transport_error(self, submission: Submission, exc: BaseException) -> None:
        logger.error(
            "[SubmissionWorker] Failed to submit player data (submission #%d, attempt %d): %s",
            submission.submission_id,
            submission.attempts,
            str(exc) or type(exc).__name__,
        )
        if is_retryable(exc) and submission.retries < self.max_retries:
            self._schedule_retry(submission)
            return

        logger.debug(
            "[SubmissionWorker] Failed request details - URL: %s, Players: %d",
            self.api.endpoint,
            len(submission.entity_ids),
        )
        self._finish(submission, SubmissionState.EXHAUSTED, {"error": type(exc).__name__})

    def _schedule_retry(self, submission: Submission) -> None:
        with self._lock:
            if submission.state in TERMINAL_STATES:
                return
            submission.state = SubmissionState.RETRY_SCHEDULED
            submission.retries += 1
        logger.info(
            "[SubmissionWorker] Retrying submission in %s seconds (retry %d/%d)",
            self.retry_delay,
            submission.retries,
            self.max_retries,
        )
        task = self.runner.call_later(self.retry_delay, lambda: self._start_attempt(submission))
        if task is None:
            self._finish(submission, SubmissionState.EXHAUSTED, {"error": "retry_not_scheduled"})
            return
        submission.retry_task = task

    def _finish(
        self,
        submission: Submission,
        state: SubmissionState,
        details: Dict[str, Any] | None = None,
    ) -> bool:
        """Move ``submission`` to a terminal ``state``; ``False`` if it already was."""

        with self._lock:
            if submission.state in TERMINAL_STATES:
                return False
            submission.state = state
            self._in_flight.pop(submission.submission_id, None)
            if state is SubmissionState.EXHAUSTED:
                self.stats.failed_submissions += 1

        if state is SubmissionState.EXHAUSTED:
            logger.warning(
                "[SubmissionWorker] Dropping submission #%d (%d players) after %d attempt(s): %s",
                submission.submission_id,
                len(submission.entity_ids),
                submission.attempts,
                details or {},
            )
        return True


__all__ = [
    "SubmissionWorker",
    "SubmissionState",
    "SubmissionStats",
    "Submission",
    "ReportContext",
    "build_payload",
]
