"""Unit tests for femtologging integration helpers."""

from __future__ import annotations

import pytest

from ghfeed.logging import (
    log_debug,
    log_error,
    log_exception,
    log_info,
    log_warning,
    normalize_log_level,
)


class _FakeLogger:
    """Collects log calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, object | None, bool]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        self.calls.append((level, message, exc_info, stack_info))
        return message


@pytest.mark.parametrize(
    ("input_level", "expected_level", "expected_invalid"),
    [
        ("warning", "WARNING", False),
        (" debug ", "DEBUG", False),
        (None, "INFO", True),
        ("", "INFO", True),
        ("verbose", "INFO", True),
    ],
)
def test_normalize_log_level(
    input_level: str | None, expected_level: str, *, expected_invalid: bool
) -> None:
    """Log levels are normalised and invalid inputs flagged."""
    level, invalid = normalize_log_level(input_level)
    assert level == expected_level
    assert invalid is expected_invalid


@pytest.mark.parametrize(
    ("helper", "level"),
    [(log_info, "INFO"), (log_warning, "WARNING"), (log_error, "ERROR")],
)
def test_helpers_format_and_pass_level(
    helper: object, level: str
) -> None:
    """Helpers interpolate percent-style arguments before logging."""
    logger = _FakeLogger()

    helper(logger, "page %d of %s", 3, "feed")  # type: ignore[operator]

    assert logger.calls == [(level, "page 3 of feed", None, False)]


def test_log_debug_uses_debug_level() -> None:
    """log_debug emits DEBUG records."""
    logger = _FakeLogger()
    log_debug(logger, "Polling for page %d", 2)
    assert logger.calls == [("DEBUG", "Polling for page 2", None, False)]


def test_log_exception_attaches_exc_info() -> None:
    """log_exception wires the exception into exc_info."""
    logger = _FakeLogger()
    exc = RuntimeError("boom")

    log_exception(logger, "stopped: boom", exc)

    assert logger.calls == [("ERROR", "stopped: boom", exc, False)]
