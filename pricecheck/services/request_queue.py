"""
Global rate-limited request queue for Scryfall.

Every Scryfall call in the process goes through one RequestQueue so the
provider's rate limit holds no matter how many lookups are in flight.

INVARIANTS:
- Dispatches start at least `min_interval` seconds apart (retries included)
- Requests are dispatched strictly FIFO by enqueue time
- Concurrent enqueues of the same URL share one network call and one result
- Results are parsed JSON or None; errors never propagate to callers
- flush_pending() drops queued requests only; in-flight requests finish
"""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)
diagnostics_logger = logging.getLogger("pricecheck.diagnostics")

DEFAULT_MIN_INTERVAL = 0.1
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_BACKOFF = 0.5


@dataclass(slots=True)
class _QueuedRequest:
    url: str
    future: "asyncio.Future[Any]"


def _is_transient(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class RequestQueue:
    """
    FIFO request queue with a global minimum interval between dispatches.

    Args:
        client: Shared HTTP client
        min_interval: Minimum seconds between the start of two dispatches
        max_retries: Additional attempts after a transient failure
        retry_backoff: Backoff unit; attempt n waits n * retry_backoff
        report_failures: Log exhausted retries on the diagnostics logger
        clock: Monotonic clock (injectable for tests)
        sleep: Async sleep (injectable for tests)
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
        report_failures: bool = False,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self.min_interval = min_interval
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.report_failures = report_failures
        self._clock = clock
        self._sleep = sleep

        self._pending: deque[_QueuedRequest] = deque()
        self._in_flight: dict[str, asyncio.Future[Any]] = {}
        self._worker: asyncio.Task[None] | None = None
        self._last_dispatch: float | None = None
        self.dispatch_count = 0

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def enqueue(self, url: str) -> Any | None:
        """
        Queue a GET request and wait for its parsed JSON body.

        Returns:
            Parsed JSON, or None on 4xx, exhausted retries, bad JSON, or flush
        """
        future = self._in_flight.get(url)
        if future is None:
            future = asyncio.get_running_loop().create_future()
            self._in_flight[url] = future
            future.add_done_callback(lambda done, url=url: self._forget(url, done))
            self._pending.append(_QueuedRequest(url=url, future=future))
            self._ensure_worker()

        # Shield so one cancelled caller does not cancel the shared result
        return await asyncio.shield(future)

    def flush_pending(self) -> int:
        """
        Resolve every queued, not yet dispatched request to None.

        Returns:
            Number of requests dropped
        """
        dropped = 0
        while self._pending:
            request = self._pending.popleft()
            if not request.future.done():
                request.future.set_result(None)
                dropped += 1
        if dropped:
            logger.debug("Flushed %d pending requests", dropped)
        return dropped

    async def close(self) -> None:
        """Stop the worker and drop anything still queued."""
        self.flush_pending()
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None

    def _forget(self, url: str, future: "asyncio.Future[Any]") -> None:
        if self._in_flight.get(url) is future:
            del self._in_flight[url]

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while self._pending:
            request = self._pending.popleft()
            if request.future.done():
                continue
            try:
                result = await self._fetch(request.url)
            except asyncio.CancelledError:
                if not request.future.done():
                    request.future.set_result(None)
                raise
            if not request.future.done():
                request.future.set_result(result)

    async def _wait_for_slot(self) -> None:
        if self._last_dispatch is not None:
            wait = self.min_interval - (self._clock() - self._last_dispatch)
            if wait > 0:
                await self._sleep(wait)
        self._last_dispatch = self._clock()
        self.dispatch_count += 1

    async def _fetch(self, url: str) -> Any | None:
        """Dispatch one request with retries for 429/5xx and network errors."""
        attempts = self.max_retries + 1
        failure = ""

        for attempt in range(1, attempts + 1):
            await self._wait_for_slot()
            try:
                response = await self._client.get(url)
            except httpx.TransportError as e:
                failure = f"{type(e).__name__}: {e}"
                logger.debug("Request error (attempt %d/%d) %s: %s", attempt, attempts, url, e)
            else:
                if response.is_success:
                    try:
                        return response.json()
                    except ValueError:
                        logger.warning("Invalid JSON from %s", url[:80])
                        return None
                if not _is_transient(response.status_code):
                    if response.status_code != 404:
                        logger.info("API %d %s", response.status_code, url[:80])
                    return None
                failure = f"HTTP {response.status_code}"
                logger.debug("Transient %s (attempt %d/%d) %s", failure, attempt, attempts, url)

            if attempt < attempts:
                await self._sleep(self.retry_backoff * attempt)

        logger.info("Giving up on %s after %d attempts (%s)", url[:80], attempts, failure)
        if self.report_failures:
            diagnostics_logger.warning("Provider failure: %s (%s)", url, failure)
        return None
