"""Background asyncio loop that carries all outbound I/O off the tick thread."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)


class DeferredTask:
    """Handle for a callback scheduled with :meth:`AsyncRunner.call_later`."""

    def __init__(self, future: concurrent.futures.Future[Any], delay: float) -> None:
        self._future = future
        self.delay = delay

    def cancel(self) -> bool:
        return self._future.cancel()

    @property
    def cancelled(self) -> bool:
        return self._future.cancelled()

    @property
    def done(self) -> bool:
        return self._future.done()


class AsyncRunner:
    """Run coroutines and timers on an event loop owned by a daemon thread.

    Callers on the tick thread never wait on the returned futures; results
    are applied by the coroutines themselves when they complete.
    """

    def __init__(self, name: str = "AnomalyWatchIO") -> None:
        self.name = name
        self.loop: asyncio.AbstractEventLoop | None = None
        self._ready = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self, timeout: float = 5.0) -> None:
        """Start the worker thread and wait until its loop is running."""

        if self._thread is not None and self._thread.is_alive():
            return

        def _run() -> None:
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            self.loop = loop
            loop.call_soon(self._ready.set)
            logger.info("[AsyncRunner] %s event loop started.", self.name)
            try:
                loop.run_forever()
            finally:
                self._ready.clear()
                pending = asyncio.all_tasks(loop)
                for task in pending:
                    task.cancel()
                if pending:
                    loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
                loop.close()
                self.loop = None
                logger.info("[AsyncRunner] %s event loop stopped.", self.name)

        self._thread = threading.Thread(target=_run, daemon=True, name=self.name)
        self._thread.start()
        if not self._ready.wait(timeout):
            logger.error("[AsyncRunner] %s did not become ready within %ss.", self.name, timeout)

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop; outstanding requests and timers are cancelled."""

        loop = self.loop
        if loop is not None and self._ready.is_set():
            loop.call_soon_threadsafe(loop.stop)
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def spawn(
        self, coro: Coroutine[Any, Any, Any]
    ) -> concurrent.futures.Future[Any] | None:
        """Schedule ``coro`` on the runner loop without waiting for it."""

        loop = self.loop
        if loop is None or not self._ready.is_set():
            logger.warning("[AsyncRunner] %s not running; dropping %s.", self.name, coro)
            coro.close()
            return None
        future = asyncio.run_coroutine_threadsafe(coro, loop)
        future.add_done_callback(self._log_failure)
        return future

    def call_later(self, delay: float, callback: Callable[[], Any]) -> DeferredTask | None:
        """Invoke ``callback`` on the runner thread after ``delay`` seconds."""

        async def _deferred() -> None:
            await asyncio.sleep(delay)
            callback()

        future = self.spawn(_deferred())
        if future is None:
            return None
        return DeferredTask(future, delay)

    @staticmethod
    def _log_failure(future: concurrent.futures.Future[Any]) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("[AsyncRunner] Background task failed: %s", exc)


__all__ = ["AsyncRunner", "DeferredTask"]
