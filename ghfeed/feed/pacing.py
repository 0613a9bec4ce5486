"""Pacing decisions taken after every page fetch.

GitHub is authoritative about how often the event feed may be polled: every
successful response carries an ``X-Poll-Interval`` hint and a rate-limited
response carries the time the quota resets. The policy follows those hints and
never polls more aggressively than instructed. Missing or malformed hints fall
back to the configured default delay rather than raising.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import enum
import typing as typ

from ghfeed.common.time import utcnow

from .models import FetchFailed, PageFetched, RateLimited

if typ.TYPE_CHECKING:
    from .models import FetchOutcome

type Clock = typ.Callable[[], dt.datetime]

_ZERO = dt.timedelta(0)


class StopReason(enum.StrEnum):
    """Why pagination ended for a poll cycle."""

    FEED_EXHAUSTED = "feed_exhausted"
    PAGE_LIMIT = "page_limit"
    RATE_LIMITED = "rate_limited"
    CACHE_HIT = "cache_hit"


@dataclasses.dataclass(frozen=True, slots=True)
class PacingDecision:
    """Outcome of :meth:`PacingPolicy.decide` for one fetch.

    ``reason`` is set only when ``stop_early`` is true. When ``fatal_error`` is
    set the delay and stop flag carry no meaning: the poll loop terminates.
    """

    delay: dt.timedelta
    stop_early: bool = False
    fatal_error: BaseException | None = None
    reason: StopReason | None = None


def parse_poll_interval(
    header: str | None, default: dt.timedelta
) -> dt.timedelta:
    """Return the delay hinted by an ``X-Poll-Interval`` header value.

    Parameters
    ----------
    header
        Raw header value in whole seconds, or ``None`` when absent.
    default
        Delay returned when the header is absent, blank, negative or not an
        integer.

    Examples
    --------
    >>> parse_poll_interval("45", dt.timedelta(seconds=60))
    datetime.timedelta(seconds=45)
    >>> parse_poll_interval("abc", dt.timedelta(seconds=60))
    datetime.timedelta(seconds=60)

    """
    if header is None or not header.strip():
        return default
    try:
        seconds = int(header.strip())
    except ValueError:
        return default
    if seconds < 0:
        return default
    return dt.timedelta(seconds=seconds)


class PacingPolicy:
    """Decide the next poll delay and whether pagination stops early."""

    def __init__(
        self,
        default_delay: dt.timedelta,
        *,
        stop_on_cache_hit: bool = True,
        clock: Clock = utcnow,
    ) -> None:
        """Create a policy with a fallback delay and cache-hit behaviour."""
        self._default_delay = default_delay
        self._stop_on_cache_hit = stop_on_cache_hit
        self._clock = clock

    @property
    def default_delay(self) -> dt.timedelta:
        """Return the delay used when the server sends no usable hint."""
        return self._default_delay

    def decide(self, outcome: FetchOutcome) -> PacingDecision:
        """Return the pacing decision for a single fetch outcome."""
        match outcome:
            case RateLimited(reset_at=reset_at):
                # A rate-limit response is pacing information, not a failure.
                delay = max(_ZERO, reset_at - self._clock())
                return PacingDecision(
                    delay=delay, stop_early=True, reason=StopReason.RATE_LIMITED
                )
            case FetchFailed(error=error):
                return PacingDecision(delay=self._default_delay, fatal_error=error)
            case PageFetched(page=page):
                delay = parse_poll_interval(
                    page.metadata.poll_interval, self._default_delay
                )
                if page.metadata.cache_hit and self._stop_on_cache_hit:
                    return PacingDecision(
                        delay=delay, stop_early=True, reason=StopReason.CACHE_HIT
                    )
                return PacingDecision(delay=delay)
        typ.assert_never(outcome)
