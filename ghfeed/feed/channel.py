"""Bounded output channel carrying batches from the poll loop to its consumer."""

from __future__ import annotations

import asyncio
import typing as typ

from .errors import ChannelClosedError

if typ.TYPE_CHECKING:
    from .models import Batch


class BatchChannel:
    """Single-producer, single-consumer bounded queue of batches.

    ``send`` blocks while the channel is full, so a slow consumer holds the
    producer back instead of losing batches. ``close`` may be called exactly
    once; batches already queued are still delivered, after which iteration
    ends.
    """

    def __init__(self, capacity: int) -> None:
        """Create a channel holding at most ``capacity`` batches."""
        if capacity < 1:
            msg = f"capacity must be positive, got: {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._queue: asyncio.Queue[Batch] = asyncio.Queue(maxsize=capacity)
        self._closed = False

    @property
    def capacity(self) -> int:
        """Return the fixed channel capacity."""
        return self._capacity

    @property
    def closed(self) -> bool:
        """Return whether the producer has closed the channel."""
        return self._closed

    def qsize(self) -> int:
        """Return the number of batches waiting to be received."""
        return self._queue.qsize()

    async def send(self, batch: Batch) -> None:
        """Queue ``batch``, waiting for free capacity if necessary."""
        if self._closed:
            raise ChannelClosedError("cannot send on a closed batch channel")
        await self._queue.put(batch)

    def close(self) -> None:
        """Close the channel; pending batches remain readable."""
        if self._closed:
            raise ChannelClosedError("batch channel already closed")
        self._closed = True
        self._queue.shutdown()

    async def receive(self) -> Batch | None:
        """Return the next batch, or ``None`` once closed and drained."""
        try:
            return await self._queue.get()
        except asyncio.QueueShutDown:
            return None

    async def __aiter__(self) -> typ.AsyncIterator[Batch]:
        """Yield batches until the channel is closed and drained."""
        while (batch := await self.receive()) is not None:
            yield batch
