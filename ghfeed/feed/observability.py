"""Observability primitives for the event feed poll loop.

Provides structured logging and error categorization for page fetches, poll
cycles and loop termination. Events are emitted as ``[event.type] key=value``
log lines suitable for parsing by log aggregators.
"""

from __future__ import annotations

import enum
import typing as typ

import httpx

from ghfeed.logging import get_logger, log_error, log_info, log_warning

from .errors import FeedAPIError, FeedConfigError, FeedResponseShapeError

if typ.TYPE_CHECKING:
    import datetime as dt

    from .pacing import StopReason

logger = get_logger(__name__)

# HTTP status code threshold for server errors (5xx)
_HTTP_SERVER_ERROR_THRESHOLD = 500


class FeedEventType(enum.StrEnum):
    """Structured log event types for the poll loop."""

    PAGE_FETCHED = "feed.page.fetched"
    PAGE_RATE_LIMITED = "feed.page.rate_limited"
    PAGE_CACHE_HIT = "feed.page.cache_hit"
    CYCLE_COMPLETED = "feed.cycle.completed"
    SERVE_RESUMING = "feed.serve.resuming"
    SERVE_CANCELLED = "feed.serve.cancelled"
    SERVE_FAILED = "feed.serve.failed"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (FeedResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (FeedConfigError, ErrorCategory.CONFIGURATION),
    (httpx.TransportError, ErrorCategory.TRANSIENT),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alerting purposes.

    Returns:
        ErrorCategory indicating the type of failure for alert routing.

    """
    if isinstance(exc, FeedAPIError):
        if (
            exc.status_code is not None
            and exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD
        ):
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class FeedEventLogger:
    """Emit structured poll loop events via femtologging.

    Successful fetches and cycles log at INFO, rate limiting at WARNING and
    loop failures at ERROR.
    """

    def log_page_fetched(self, cursor: int, events: int, next_cursor: int) -> None:
        """Log a page that contributed events to the batch."""
        log_info(
            logger,
            "[%s] page=%d events=%d next_page=%d",
            FeedEventType.PAGE_FETCHED,
            cursor,
            events,
            next_cursor,
        )

    def log_rate_limited(self, cursor: int, delay: dt.timedelta) -> None:
        """Log a rate-limited fetch and the time left until the quota resets."""
        log_warning(
            logger,
            "[%s] page=%d resets_in_seconds=%d",
            FeedEventType.PAGE_RATE_LIMITED,
            cursor,
            int(delay.total_seconds()),
        )

    def log_cache_hit(self, cursor: int) -> None:
        """Log a page served from cache."""
        log_info(logger, "[%s] page=%d", FeedEventType.PAGE_CACHE_HIT, cursor)

    def log_cycle_completed(
        self,
        *,
        pages_fetched: int,
        events: int,
        reason: StopReason,
        delay: dt.timedelta,
    ) -> None:
        """Log the end of a poll cycle with its batch size and next delay."""
        log_info(
            logger,
            "[%s] pages_fetched=%d events=%d stop_reason=%s delay_seconds=%d",
            FeedEventType.CYCLE_COMPLETED,
            pages_fetched,
            events,
            reason,
            int(delay.total_seconds()),
        )

    def log_resuming(self, delay: dt.timedelta) -> None:
        """Log the start of a new cycle after sleeping."""
        log_info(
            logger,
            "[%s] slept_seconds=%d",
            FeedEventType.SERVE_RESUMING,
            int(delay.total_seconds()),
        )

    def log_cancelled(self, cycles: int) -> None:
        """Log loop termination requested by the caller."""
        log_info(logger, "[%s] cycles=%d", FeedEventType.SERVE_CANCELLED, cycles)

    def log_failed(self, error: BaseException, cycles: int) -> None:
        """Log loop termination caused by a fatal fetch error."""
        log_error(
            logger,
            "[%s] cycles=%d error_type=%s error_category=%s error_message=%s",
            FeedEventType.SERVE_FAILED,
            cycles,
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )
