# tests/conftest.py
import asyncio
from typing import Any, Callable, Dict, List, Tuple

import httpx
import pytest

from anomaly_watch.transport.api_client import ScoringApiClient

ENDPOINT = "https://scores.test/api"


class MockAsyncClient:
    def __init__(self, api: "MockScoringAPI"):
        self.api = api

    async def get(self, url: str, params: Dict[str, Any] | None = None, **kwargs):
        self.api.calls.append(("GET", url, params))
        return self._respond("GET", url, self.api.get_script, self.api.default_get)

    async def post(self, url: str, json: Dict[str, Any] | None = None, **kwargs):
        self.api.calls.append(("POST", url, json))
        return self._respond("POST", url, self.api.post_script, self.api.default_post)

    def _respond(self, method, url, script, default):
        outcome = script.pop(0) if script else default
        if isinstance(outcome, BaseException):
            raise outcome
        status_code, body = outcome
        request = httpx.Request(method, url)
        if isinstance(body, (dict, list)):
            return httpx.Response(status_code, json=body, request=request)
        return httpx.Response(status_code, text=body, request=request)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass


class MockScoringAPI:
    """Scripted stand-in for the scoring service.

    Each scripted outcome is either ``(status_code, body)`` or an exception
    instance to raise from the request.
    """

    def __init__(self):
        self.get_script: List[Any] = []
        self.post_script: List[Any] = []
        self.default_get: Tuple[int, Any] = (404, {"error": "unknown player"})
        self.default_post: Tuple[int, Any] = (200, {"ok": True})
        self.calls: List[Tuple[str, str, Any]] = []
        self.client_kwargs: List[Dict[str, Any]] = []

    def queue_get(self, *outcomes):
        self.get_script.extend(outcomes)

    def queue_post(self, *outcomes):
        self.post_script.extend(outcomes)

    def requests(self, method: str) -> List[Tuple[str, str, Any]]:
        return [c for c in self.calls if c[0] == method]

    def __call__(self, monkeypatch):
        outer_self = self

        def mock_async_client_constructor(*args, **kwargs):
            outer_self.client_kwargs.append(kwargs)
            return MockAsyncClient(outer_self)

        monkeypatch.setattr(httpx, "AsyncClient", mock_async_client_constructor)
        return self


class ManualTimer:
    def __init__(self, due: float, callback: Callable[[], Any]):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> bool:
        if self.fired or self.cancelled:
            return False
        self.cancelled = True
        return True


class ManualRunner:
    """Synchronous runner with a hand-driven clock.

    ``spawn`` only queues coroutines; ``run_pending`` executes them and
    ``advance`` moves the clock forward, firing due timers.
    """

    def __init__(self):
        self.now = 0.0
        self.pending: List[Any] = []
        self.timers: List[ManualTimer] = []
        self.spawned = 0
        self.started = False
        self.stopped = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def spawn(self, coro):
        self.spawned += 1
        self.pending.append(coro)
        return coro

    def call_later(self, delay: float, callback: Callable[[], Any]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def active_timers(self) -> List[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def run_pending(self) -> None:
        while self.pending:
            asyncio.run(self.pending.pop(0))

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for timer in sorted(self.active_timers(), key=lambda t: t.due):
            if timer.due <= self.now:
                timer.fired = True
                timer.callback()
        self.run_pending()

    def settle(self) -> None:
        """Run everything, including every scheduled timer, until idle."""

        self.run_pending()
        while self.active_timers():
            next_due = min(t.due for t in self.active_timers())
            self.advance(max(0.0, next_due - self.now))


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def mock_scoring_api(monkeypatch):
    monkeypatch.delenv("AW_API_MODE", raising=False)
    mock_api_instance = MockScoringAPI()
    return mock_api_instance(monkeypatch)


@pytest.fixture
def live_api(mock_scoring_api):
    return ScoringApiClient(ENDPOINT, timeout=1.0, mode="live")


@pytest.fixture
def runner():
    return ManualRunner()


@pytest.fixture
def clock():
    return FakeClock()
