"""Write feed batches to a binary stream as JSON lines."""

from __future__ import annotations

import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    from ghfeed.feed.channel import BatchChannel
    from ghfeed.feed.models import Batch, Event

DEFAULT_SKIPPED_ACTORS = frozenset({"dependabot[bot]"})


class _BinaryWriter(typ.Protocol):
    def write(self, data: bytes, /) -> int: ...

    def flush(self) -> None: ...


class EventStreamWriter:
    """Encode events one per line, skipping events from selected actors."""

    def __init__(
        self,
        stream: _BinaryWriter,
        *,
        skipped_actors: typ.Collection[str] = DEFAULT_SKIPPED_ACTORS,
    ) -> None:
        """Bind the writer to an output stream."""
        self._stream = stream
        self._skipped = frozenset(skipped_actors)
        self._encoder = msgspec.json.Encoder()

    def accepts(self, event: Event) -> bool:
        """Return whether ``event`` should be written."""
        return event.actor.login not in self._skipped

    def write_batch(self, batch: Batch) -> int:
        """Write accepted events of ``batch`` and return how many were written."""
        written = 0
        for event in batch:
            if not self.accepts(event):
                continue
            self._stream.write(self._encoder.encode(event) + b"\n")
            written += 1
        self._stream.flush()
        return written

    async def run(self, channel: BatchChannel) -> int:
        """Write every batch received until ``channel`` closes."""
        total = 0
        async for batch in channel:
            total += self.write_batch(batch)
        return total
