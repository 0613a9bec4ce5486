"""Unit tests for identity forwarding."""

from __future__ import annotations

import asyncio
import datetime as dt
import json

import httpx
import pytest

from ghfeed.feed.channel import BatchChannel
from ghfeed.identity.config import IdentityConfig
from ghfeed.identity.dispatch import IdentityDispatcher, release_interval
from ghfeed.identity.extract import hash_email
from ghfeed.identity.sink import IdentitySink
from tests.unit.feed_test_helpers import make_event, make_push_event

_ENDPOINT = "https://identify.example.test/identify"


def _make_sink(
    statuses: dict[str, int] | None = None,
) -> tuple[IdentitySink, list[httpx.Request]]:
    requests: list[httpx.Request] = []
    status_by_user = statuses or {}

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        ids = json.loads(request.content)
        user = ids[0].removeprefix("c:")
        return httpx.Response(
            status_by_user.get(user, 200),
            headers={"Set-Cookie": f"session={user}; Path=/"},
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    return IdentitySink(IdentityConfig(endpoint=_ENDPOINT), http_client=client), requests


class _RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def test_release_interval_spreads_events_over_window() -> None:
    """Events are released evenly over the window."""
    assert release_interval(dt.timedelta(seconds=60), 4) == 15.0
    assert release_interval(dt.timedelta(seconds=60), 0) == 0.0


class TestIdentitySink:
    """Tests for per-user sessions in IdentitySink."""

    @pytest.mark.asyncio
    async def test_sessions_are_kept_per_user(self) -> None:
        """Cookies set for one user are replayed only for that user."""
        sink, requests = _make_sink()

        assert await sink.send("alice", ["c:alice"])
        assert await sink.send("bob", ["c:bob"])
        assert await sink.send("alice", ["c:alice"])

        assert "Cookie" not in requests[0].headers
        assert "Cookie" not in requests[1].headers
        assert requests[2].headers["Cookie"] == "session=alice"
        assert len(sink.sessions) == 2
        assert requests[0].headers["User-Agent"] == "ghfeed-identify"

    @pytest.mark.asyncio
    async def test_client_jar_holds_no_sessions(self) -> None:
        """Session cookies live only in the per-user jars."""

        def _handler(request: httpx.Request) -> httpx.Response:
            user = json.loads(request.content)[0].removeprefix("c:")
            return httpx.Response(200, headers={"Set-Cookie": f"session={user}"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
        sink = IdentitySink(IdentityConfig(endpoint=_ENDPOINT), http_client=client)

        assert await sink.send("alice", ["c:alice"])
        assert await sink.send("bob", ["c:bob"])

        assert len(client.cookies) == 0
        assert sink.sessions.jar_for("alice").get("session") == "alice"
        assert sink.sessions.jar_for("bob").get("session") == "bob"

    @pytest.mark.asyncio
    async def test_rejected_request_returns_false(self) -> None:
        """Non-200 responses are reported, not raised."""
        sink, _ = _make_sink({"mallory": 400})
        assert await sink.send("mallory", ["c:mallory"]) is False

    @pytest.mark.asyncio
    async def test_transport_error_returns_false(self) -> None:
        """Transport failures are reported, not raised."""

        def _handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        sink = IdentitySink(
            IdentityConfig(endpoint=_ENDPOINT),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
        )
        assert await sink.send("alice", ["c:alice"]) is False


class TestIdentityDispatcher:
    """Tests for batch pacing and forwarding."""

    @pytest.mark.asyncio
    async def test_dispatch_skips_bots_and_paces_releases(self) -> None:
        """Bots are skipped and remaining events are released at a fixed rate."""
        sink, requests = _make_sink({"carol": 500})
        sleep = _RecordingSleep()
        dispatcher = IdentityDispatcher(
            sink, window=dt.timedelta(seconds=60), max_concurrency=2, sleep=sleep
        )
        batch = (
            make_push_event("1", "alice", ["alice@example.com"]),
            make_event("2", login="dependabot[bot]"),
            make_event("3", login="Bob"),
            make_event("4", login="carol"),
        )

        result = await dispatcher.dispatch_batch(batch)

        assert result.received == 4
        assert result.skipped == 1
        assert result.sent == 2
        assert result.failed == 1
        assert sleep.calls == [20.0, 20.0, 20.0]
        bodies = sorted(json.loads(request.content) for request in requests)
        assert bodies == [
            ["c:alice", "e:" + hash_email("alice@example.com")],
            ["c:bob"],
            ["c:carol"],
        ]

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self) -> None:
        """No more than max_concurrency posts are in flight at once."""
        in_flight = 0
        peak = 0

        class _SlowSink:
            async def send(self, user: str, ids: list[str]) -> bool:
                nonlocal in_flight, peak
                del user, ids
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                return True

        dispatcher = IdentityDispatcher(
            _SlowSink(),  # type: ignore[arg-type]
            window=dt.timedelta(0),
            max_concurrency=2,
        )
        batch = tuple(make_event(str(index), login=f"u{index}") for index in range(6))

        result = await dispatcher.dispatch_batch(batch)

        assert result.sent == 6
        assert peak == 2

    @pytest.mark.asyncio
    async def test_run_consumes_until_channel_closes(self) -> None:
        """run() forwards every batch and returns once the channel closes."""
        sink, requests = _make_sink()
        dispatcher = IdentityDispatcher(sink, sleep=_RecordingSleep())
        channel = BatchChannel(2)
        await channel.send((make_event("1", login="alice"),))
        await channel.send((make_event("2", login="bob"),))
        channel.close()

        sent = await asyncio.wait_for(dispatcher.run(channel), 1.0)

        assert sent == 2
        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_empty_batch_sends_nothing(self) -> None:
        """An empty batch is a no-op."""
        sink, requests = _make_sink()
        result = await IdentityDispatcher(sink).dispatch_batch(())
        assert result.received == 0
        assert requests == []
