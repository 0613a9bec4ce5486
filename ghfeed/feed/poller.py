"""Poll loop republishing the public event feed as ordered batches.

Each poll cycle walks the feed from page 1 along the server's next-page chain,
up to ``max_pages_per_cycle`` fetches, and stops early when GitHub rate limits
the client or serves a page from cache. The accumulated batch is sent on a
bounded :class:`~ghfeed.feed.channel.BatchChannel`, then the loop sleeps for
the delay chosen by the :class:`~ghfeed.feed.pacing.PacingPolicy`.

Cancellation is observed only while sleeping between cycles. A fetch that is
in flight, or a send blocked on a full channel, completes before a
cancellation request takes effect.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import typing as typ

from .channel import BatchChannel
from .models import END_OF_FEED, FIRST_PAGE, Event, PageFetched, RateLimited
from .observability import FeedEventLogger
from .pacing import PacingPolicy, StopReason

if typ.TYPE_CHECKING:
    import datetime as dt

    from .config import FeedConfig
    from .models import Batch, FetchOutcome
    from .pacing import PacingDecision
    from .source import EventSource


class ServeOutcome(enum.StrEnum):
    """How :meth:`PollLoop.serve` ended when it did not raise."""

    CANCELLED = "cancelled"


@dataclasses.dataclass(frozen=True, slots=True)
class CycleResult:
    """Summary of a single poll cycle."""

    batch: Batch
    delay: dt.timedelta
    pages_fetched: int
    reason: StopReason


class PollLoop:
    """Repeatedly poll an event source and emit one batch per cycle."""

    def __init__(
        self,
        config: FeedConfig,
        source: EventSource,
        *,
        policy: PacingPolicy | None = None,
        channel: BatchChannel | None = None,
        event_logger: FeedEventLogger | None = None,
    ) -> None:
        """Create a loop bound to a configuration and an event source."""
        self._config = config
        self._source = source
        self._policy = policy or PacingPolicy(
            config.default_poll_delay,
            stop_on_cache_hit=config.stop_on_cache_hit,
        )
        self._channel = channel or BatchChannel(config.queue_capacity)
        self._event_logger = event_logger or FeedEventLogger()
        self._cancelled = asyncio.Event()
        self._started = False
        self._cycles = 0

    @property
    def batches(self) -> BatchChannel:
        """Return the channel the loop emits batches on."""
        return self._channel

    @property
    def cycles(self) -> int:
        """Return the number of completed poll cycles."""
        return self._cycles

    def cancel(self) -> None:
        """Request termination at the next sleep boundary."""
        self._cancelled.set()

    async def poll(self) -> CycleResult:
        """Run a single poll cycle and return its batch and next delay.

        Raises
        ------
        BaseException
            The original error of a fatal fetch failure.

        """
        events: list[Event] = []
        cursor = FIRST_PAGE
        decision: PacingDecision | None = None
        reason = StopReason.PAGE_LIMIT
        pages_fetched = 0

        for _ in range(self._config.max_pages_per_cycle):
            outcome = await self._source.fetch_page(cursor)
            pages_fetched += 1
            decision = self._policy.decide(outcome)
            if decision.fatal_error is not None:
                raise decision.fatal_error

            self._log_page(cursor, outcome, decision)
            if decision.stop_early:
                reason = decision.reason or StopReason.RATE_LIMITED
                break

            # Non-fatal, non-stopping decisions only come from fetched pages.
            page = typ.cast("PageFetched", outcome).page
            events.extend(page.events)
            if page.next_cursor == END_OF_FEED or page.next_cursor <= cursor:
                reason = StopReason.FEED_EXHAUSTED
                break
            cursor = page.next_cursor

        delay = decision.delay if decision is not None else self._policy.default_delay
        self._cycles += 1
        self._event_logger.log_cycle_completed(
            pages_fetched=pages_fetched,
            events=len(events),
            reason=reason,
            delay=delay,
        )
        return CycleResult(
            batch=tuple(events),
            delay=delay,
            pages_fetched=pages_fetched,
            reason=reason,
        )

    async def serve(self) -> ServeOutcome:
        """Poll until cancelled, emitting one batch per cycle.

        The output channel is closed exactly once however the loop ends.

        Returns
        -------
        ServeOutcome
            ``ServeOutcome.CANCELLED`` after :meth:`cancel` was observed.

        Raises
        ------
        RuntimeError
            If the loop has already been served.
        BaseException
            The original error of a fatal fetch failure.

        """
        if self._started:
            msg = "PollLoop.serve() may only be called once"
            raise RuntimeError(msg)
        self._started = True

        try:
            while True:
                try:
                    result = await self.poll()
                except Exception as exc:
                    self._event_logger.log_failed(exc, self._cycles)
                    raise

                await self._channel.send(result.batch)

                if await self._wait_for_cancel(result.delay):
                    self._event_logger.log_cancelled(self._cycles)
                    return ServeOutcome.CANCELLED
                self._event_logger.log_resuming(result.delay)
        finally:
            # A caller-supplied channel may already be closed.
            if not self._channel.closed:
                self._channel.close()

    async def _wait_for_cancel(self, delay: dt.timedelta) -> bool:
        """Sleep for ``delay``; return True if cancellation arrived first.

        A cancellation requested before the sleep wins even when ``delay`` is
        zero.
        """
        if self._cancelled.is_set():
            return True
        try:
            async with asyncio.timeout(delay.total_seconds()):
                await self._cancelled.wait()
        except TimeoutError:
            return False
        return True

    def _log_page(
        self, cursor: int, outcome: FetchOutcome, decision: PacingDecision
    ) -> None:
        match outcome:
            case RateLimited():
                self._event_logger.log_rate_limited(cursor, decision.delay)
            case PageFetched() if decision.stop_early:
                self._event_logger.log_cache_hit(cursor)
            case PageFetched(page=page):
                self._event_logger.log_page_fetched(
                    cursor, len(page.events), page.next_cursor
                )
