"""Tests for the rate-limited request queue."""

import asyncio
import logging

import httpx
import pytest
import respx
from conftest import SCRYFALL, FakeClock

from pricecheck.services.request_queue import RequestQueue


@pytest.fixture
def queue(http_client: httpx.AsyncClient, clock: FakeClock) -> RequestQueue:
    return RequestQueue(
        http_client,
        min_interval=0.1,
        max_retries=2,
        retry_backoff=0.5,
        clock=clock,
        sleep=clock.sleep,
    )


class TestDispatch:
    @respx.mock
    async def test_returns_parsed_json(self, queue: RequestQueue) -> None:
        """A successful response resolves to its JSON body."""
        respx.get(f"{SCRYFALL}/cards/abc").mock(return_value=httpx.Response(200, json={"name": "Sol Ring"}))

        result = await queue.enqueue(f"{SCRYFALL}/cards/abc")

        assert result == {"name": "Sol Ring"}
        assert queue.dispatch_count == 1

    @respx.mock
    async def test_not_found_is_none_without_retry(self, queue: RequestQueue) -> None:
        """404 resolves to None after a single attempt."""
        route = respx.get(f"{SCRYFALL}/cards/missing").mock(return_value=httpx.Response(404, json={}))

        assert await queue.enqueue(f"{SCRYFALL}/cards/missing") is None
        assert route.call_count == 1

    @respx.mock
    async def test_invalid_json_is_none(self, queue: RequestQueue) -> None:
        """A non-JSON body resolves to None."""
        respx.get(f"{SCRYFALL}/cards/html").mock(return_value=httpx.Response(200, text="<html>"))

        assert await queue.enqueue(f"{SCRYFALL}/cards/html") is None

    @respx.mock
    async def test_dispatches_in_fifo_order(self, queue: RequestQueue) -> None:
        """Requests hit the network in the order they were queued."""
        seen: list[str] = []

        def record(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json={})

        respx.get(url__startswith=f"{SCRYFALL}/cards/").mock(side_effect=record)

        await asyncio.gather(*(queue.enqueue(f"{SCRYFALL}/cards/{n}") for n in ("a", "b", "c")))

        assert seen == ["/cards/a", "/cards/b", "/cards/c"]


class TestRateLimit:
    @respx.mock
    async def test_dispatches_are_spaced_by_min_interval(
        self, queue: RequestQueue, clock: FakeClock
    ) -> None:
        """Consecutive dispatch start times differ by at least the interval."""
        starts: list[float] = []

        def record(request: httpx.Request) -> httpx.Response:
            starts.append(clock.now)
            return httpx.Response(200, json={})

        respx.get(url__startswith=f"{SCRYFALL}/cards/").mock(side_effect=record)

        await asyncio.gather(*(queue.enqueue(f"{SCRYFALL}/cards/{i}") for i in range(5)))

        assert len(starts) == 5
        for earlier, later in zip(starts, starts[1:], strict=False):
            assert later - earlier >= 0.1 - 1e-9

    @respx.mock
    async def test_retries_share_the_rate_limit(self, queue: RequestQueue, clock: FakeClock) -> None:
        """A retry waits for its backoff and counts as a dispatch."""
        route = respx.get(f"{SCRYFALL}/cards/busy").mock(
            side_effect=[httpx.Response(429), httpx.Response(200, json={"ok": True})]
        )

        result = await queue.enqueue(f"{SCRYFALL}/cards/busy")

        assert result == {"ok": True}
        assert route.call_count == 2
        assert queue.dispatch_count == 2
        assert clock.sleeps == [0.5]


class TestRetries:
    @respx.mock
    async def test_server_errors_retried_then_none(self, queue: RequestQueue, clock: FakeClock) -> None:
        """5xx is retried max_retries times with linear backoff, then None."""
        route = respx.get(f"{SCRYFALL}/cards/down").mock(return_value=httpx.Response(503))

        assert await queue.enqueue(f"{SCRYFALL}/cards/down") is None
        assert route.call_count == 3
        assert clock.sleeps == [0.5, 1.0]

    @respx.mock
    async def test_network_errors_retried(self, queue: RequestQueue) -> None:
        """Transport errors are retried like 5xx."""
        route = respx.get(f"{SCRYFALL}/cards/flaky").mock(
            side_effect=[httpx.ConnectError("reset"), httpx.Response(200, json={"ok": 1})]
        )

        assert await queue.enqueue(f"{SCRYFALL}/cards/flaky") == {"ok": 1}
        assert route.call_count == 2

    @respx.mock
    async def test_exhausted_retries_reported_when_enabled(
        self, queue: RequestQueue, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Opted-in failure reporting logs once on the diagnostics logger."""
        queue.report_failures = True
        respx.get(f"{SCRYFALL}/cards/down").mock(return_value=httpx.Response(500))

        with caplog.at_level(logging.WARNING, logger="pricecheck.diagnostics"):
            await queue.enqueue(f"{SCRYFALL}/cards/down")

        reports = [r for r in caplog.records if r.name == "pricecheck.diagnostics"]
        assert len(reports) == 1

    @respx.mock
    async def test_no_report_by_default(self, queue: RequestQueue, caplog: pytest.LogCaptureFixture) -> None:
        """Failure reporting is off unless enabled."""
        respx.get(f"{SCRYFALL}/cards/down").mock(return_value=httpx.Response(500))

        with caplog.at_level(logging.WARNING, logger="pricecheck.diagnostics"):
            await queue.enqueue(f"{SCRYFALL}/cards/down")

        assert not [r for r in caplog.records if r.name == "pricecheck.diagnostics"]


class TestDeduplication:
    @respx.mock
    async def test_concurrent_identical_urls_share_one_call(self, queue: RequestQueue) -> None:
        """Concurrent enqueues of one URL make exactly one network call."""
        route = respx.get(f"{SCRYFALL}/cards/named").mock(
            return_value=httpx.Response(200, json={"name": "Sol Ring"})
        )
        url = f"{SCRYFALL}/cards/named?fuzzy=sol%20ring"

        results = await asyncio.gather(*(queue.enqueue(url) for _ in range(4)))

        assert route.call_count == 1
        assert results == [{"name": "Sol Ring"}] * 4

    @respx.mock
    async def test_sequential_requests_fetch_again(self, queue: RequestQueue) -> None:
        """Deduplication covers in-flight requests only."""
        route = respx.get(f"{SCRYFALL}/cards/abc").mock(return_value=httpx.Response(200, json={}))

        await queue.enqueue(f"{SCRYFALL}/cards/abc")
        await queue.enqueue(f"{SCRYFALL}/cards/abc")

        assert route.call_count == 2


class TestFlush:
    @respx.mock(assert_all_called=False)
    async def test_flush_resolves_queued_requests_to_none(self, queue: RequestQueue) -> None:
        """Queued, undispatched requests resolve to None without a network call."""
        route = respx.get(url__startswith=f"{SCRYFALL}/cards/").mock(
            return_value=httpx.Response(200, json={})
        )
        tasks = [asyncio.create_task(queue.enqueue(f"{SCRYFALL}/cards/{i}")) for i in range(3)]
        await asyncio.sleep(0)

        assert queue.pending_count == 3
        dropped = queue.flush_pending()

        assert dropped == 3
        assert await asyncio.gather(*tasks) == [None, None, None]
        assert route.call_count == 0

    async def test_flush_with_nothing_queued(self, queue: RequestQueue) -> None:
        """Flushing an idle queue drops nothing."""
        assert queue.flush_pending() == 0
