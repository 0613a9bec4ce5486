"""Common time utilities."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp."""
    return dt.datetime.now(dt.UTC)


def from_epoch_seconds(value: str | None) -> dt.datetime | None:
    """Parse an epoch-seconds header value into an aware UTC timestamp.

    Returns ``None`` when the value is missing, not an integer, or outside the
    range a datetime can represent.
    """
    if value is None:
        return None
    try:
        return dt.datetime.fromtimestamp(int(value.strip()), dt.UTC)
    except (ValueError, OverflowError, OSError):
        return None
