"""Configuration for the event feed poll loop.

Usage
-----
Create a configuration with defaults:

>>> config = FeedConfig(auth_token="ghp_example")
>>> config.max_pages_per_cycle
10

Or load it from environment variables:

>>> import os
>>> os.environ["GHFEED_GITHUB_TOKEN"] = "ghp_example"
>>> os.environ["GHFEED_DEFAULT_POLL_SECONDS"] = "90"
>>> FeedConfig.from_env().default_poll_delay.total_seconds()
90.0

"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import os

from .errors import FeedConfigError

# Limits below come from the GitHub "list public events" documentation: the
# feed is served in pages of 30 events by default, at most 100 per page, and
# only the first 10 pages hold events worth polling for.
DEFAULT_QUEUE_CAPACITY = 16
DEFAULT_MAX_PAGES = 10
DEFAULT_EVENTS_PER_PAGE = 30
MAX_EVENTS_PER_PAGE = 100
DEFAULT_POLL_SECONDS = 60

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _read_env(env_var: str) -> str | None:
    raw = os.environ.get(env_var, "")
    return raw.strip() or None


def _parse_int(env_var: str, default: int) -> int:
    """Read an integer env var, falling back to a default when unset."""
    raw = _read_env(env_var)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise FeedConfigError.invalid(env_var, raw, "an integer") from exc


def _parse_bool(env_var: str, *, default: bool) -> bool:
    raw = _read_env(env_var)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise FeedConfigError.invalid(env_var, raw, "a boolean")


@dc.dataclass(frozen=True, slots=True)
class FeedConfig:
    """Immutable settings for a single poll loop.

    Attributes
    ----------
    auth_token
        GitHub token sent as a bearer credential. Never logged and excluded
        from ``repr``.
    queue_capacity
        Number of batches the output channel holds before the poll loop
        blocks.
    max_pages_per_cycle
        Ceiling on page fetches within one poll cycle.
    max_events_per_page
        ``per_page`` value requested from GitHub.
    default_poll_delay
        Delay used when the server sends no usable ``X-Poll-Interval`` hint.
    stop_on_cache_hit
        Whether a page served from cache ends pagination for the cycle.
    api_url
        Base URL of the GitHub REST API.
    timeout_s
        Per-request HTTP timeout in seconds.
    user_agent
        ``User-Agent`` header sent with every request.

    """

    auth_token: str = dc.field(repr=False)
    queue_capacity: int = DEFAULT_QUEUE_CAPACITY
    max_pages_per_cycle: int = DEFAULT_MAX_PAGES
    max_events_per_page: int = DEFAULT_EVENTS_PER_PAGE
    default_poll_delay: dt.timedelta = dt.timedelta(seconds=DEFAULT_POLL_SECONDS)
    stop_on_cache_hit: bool = True
    api_url: str = "https://api.github.com"
    timeout_s: float = 10.0
    user_agent: str = "ghfeed/0.1"

    def __post_init__(self) -> None:
        """Validate settings; the poll loop relies on these bounds."""
        if not self.auth_token.strip():
            raise FeedConfigError.empty_token()
        if self.queue_capacity < 1:
            raise FeedConfigError.invalid(
                "queue_capacity", self.queue_capacity, "positive"
            )
        if self.max_pages_per_cycle < 1:
            raise FeedConfigError.invalid(
                "max_pages_per_cycle", self.max_pages_per_cycle, "positive"
            )
        if not 1 <= self.max_events_per_page <= MAX_EVENTS_PER_PAGE:
            raise FeedConfigError.invalid(
                "max_events_per_page",
                self.max_events_per_page,
                f"between 1 and {MAX_EVENTS_PER_PAGE}",
            )
        if self.default_poll_delay < dt.timedelta(0):
            raise FeedConfigError.invalid(
                "default_poll_delay", self.default_poll_delay, "non-negative"
            )
        if self.timeout_s <= 0:
            raise FeedConfigError.invalid("timeout_s", self.timeout_s, "positive")

    @classmethod
    def from_env(cls) -> FeedConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``GHFEED_GITHUB_TOKEN``: GitHub token (required).
        - ``GHFEED_QUEUE_CAPACITY``: Output channel capacity.
        - ``GHFEED_MAX_PAGES``: Page ceiling per poll cycle.
        - ``GHFEED_EVENTS_PER_PAGE``: Events requested per page.
        - ``GHFEED_DEFAULT_POLL_SECONDS``: Fallback poll delay in seconds.
        - ``GHFEED_STOP_ON_CACHE_HIT``: ``true``/``false``.
        - ``GHFEED_API_URL``: GitHub REST API base URL.

        Raises
        ------
        FeedConfigError
            If the token is missing or any value is malformed or out of range.

        """
        token = _read_env("GHFEED_GITHUB_TOKEN")
        if token is None:
            raise FeedConfigError.missing_token()

        return cls(
            auth_token=token,
            queue_capacity=_parse_int("GHFEED_QUEUE_CAPACITY", DEFAULT_QUEUE_CAPACITY),
            max_pages_per_cycle=_parse_int("GHFEED_MAX_PAGES", DEFAULT_MAX_PAGES),
            max_events_per_page=_parse_int(
                "GHFEED_EVENTS_PER_PAGE", DEFAULT_EVENTS_PER_PAGE
            ),
            default_poll_delay=dt.timedelta(
                seconds=_parse_int("GHFEED_DEFAULT_POLL_SECONDS", DEFAULT_POLL_SECONDS)
            ),
            stop_on_cache_hit=_parse_bool("GHFEED_STOP_ON_CACHE_HIT", default=True),
            api_url=_read_env("GHFEED_API_URL") or "https://api.github.com",
        )
