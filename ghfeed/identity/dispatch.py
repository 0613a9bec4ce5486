"""Pace identity forwarding for feed batches.

Events of one batch are released at a fixed rate across a time window so the
receiving endpoint sees a steady stream rather than a burst every poll cycle.
Released events are posted concurrently, bounded by a semaphore.
"""

from __future__ import annotations

import asyncio
import dataclasses
import datetime as dt
import typing as typ

from ghfeed.logging import get_logger, log_info

from .extract import gather_identifiers, is_bot_login

if typ.TYPE_CHECKING:
    from ghfeed.feed.channel import BatchChannel
    from ghfeed.feed.models import Batch, Event

    from .sink import IdentitySink

logger = get_logger(__name__)

type Sleep = typ.Callable[[float], typ.Awaitable[None]]


@dataclasses.dataclass(frozen=True, slots=True)
class DispatchResult:
    """Counts for one dispatched batch."""

    received: int
    skipped: int = 0
    sent: int = 0
    failed: int = 0


def release_interval(window: dt.timedelta, count: int) -> float:
    """Return the seconds between releases spreading ``count`` events over ``window``."""
    if count < 1:
        return 0.0
    return window.total_seconds() / count


class IdentityDispatcher:
    """Forward actor and commit-author identifiers for each feed batch."""

    def __init__(
        self,
        sink: IdentitySink,
        *,
        window: dt.timedelta = dt.timedelta(seconds=60),
        max_concurrency: int = 8,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Create a dispatcher posting through ``sink``."""
        if max_concurrency < 1:
            msg = f"max_concurrency must be positive, got: {max_concurrency}"
            raise ValueError(msg)
        self._sink = sink
        self._window = window
        self._sleep = sleep
        self._slots = asyncio.Semaphore(max_concurrency)

    async def dispatch_batch(self, batch: Batch) -> DispatchResult:
        """Release the non-bot events of ``batch`` at a fixed rate and post them."""
        events = [event for event in batch if not is_bot_login(event.actor.login)]
        skipped = len(batch) - len(events)
        log_info(logger, "Consuming %d events (%d skipped)", len(events), skipped)
        if not events:
            return DispatchResult(received=len(batch), skipped=skipped)

        interval = release_interval(self._window, len(events))
        outcomes: list[bool] = []
        async with asyncio.TaskGroup() as group:
            for event in events:
                await self._sleep(interval)
                await self._slots.acquire()
                group.create_task(self._forward(event, outcomes))

        sent = sum(outcomes)
        return DispatchResult(
            received=len(batch),
            skipped=skipped,
            sent=sent,
            failed=len(outcomes) - sent,
        )

    async def run(self, channel: BatchChannel) -> int:
        """Dispatch every batch received until ``channel`` closes."""
        sent = 0
        async for batch in channel:
            sent += (await self.dispatch_batch(batch)).sent
        return sent

    async def _forward(self, event: Event, outcomes: list[bool]) -> None:
        try:
            user = event.actor.login.lower()
            accepted = await self._sink.send(user, gather_identifiers(event))
            outcomes.append(accepted)
        finally:
            self._slots.release()
