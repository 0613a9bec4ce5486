"""Unit tests for the shared time helpers."""

from __future__ import annotations

import datetime as dt

import pytest

from ghfeed.common.time import from_epoch_seconds, utcnow


def test_utcnow_is_timezone_aware() -> None:
    """utcnow() returns an aware UTC timestamp."""
    assert utcnow().tzinfo is dt.UTC


def test_from_epoch_seconds_parses_header_values() -> None:
    """Epoch seconds become aware UTC datetimes."""
    assert from_epoch_seconds("1740830400") == dt.datetime(
        2025, 3, 1, 12, 0, tzinfo=dt.UTC
    )


@pytest.mark.parametrize("value", [None, "", "soon", "12.5"])
def test_from_epoch_seconds_rejects_non_integers(value: str | None) -> None:
    """Missing or malformed values yield None."""
    assert from_epoch_seconds(value) is None


@pytest.mark.parametrize("value", ["99999999999999", "-99999999999999"])
def test_from_epoch_seconds_rejects_out_of_range_values(value: str) -> None:
    """Timestamps outside the datetime range yield None instead of raising."""
    assert from_epoch_seconds(value) is None
