"""Event sources that fetch one page of the public event feed at a time."""

from __future__ import annotations

import dataclasses
import datetime as dt
import typing as typ

import httpx
import msgspec

from ghfeed.common.time import from_epoch_seconds, utcnow
from ghfeed.logging import get_logger, log_debug

from .errors import FeedAPIError, FeedConfigError, FeedResponseShapeError
from .models import (
    END_OF_FEED,
    FetchFailed,
    Page,
    PageFetched,
    PageMetadata,
    RateLimited,
    decode_events,
)

if typ.TYPE_CHECKING:
    from .config import FeedConfig
    from .models import Event, FetchOutcome

logger = get_logger(__name__)

POLL_INTERVAL_HEADER = "X-Poll-Interval"
RATE_LIMIT_REMAINING_HEADER = "X-RateLimit-Remaining"
RATE_LIMIT_RESET_HEADER = "X-RateLimit-Reset"
RETRY_AFTER_HEADER = "Retry-After"
# Set by caching transports on responses replayed from their store.
FROM_CACHE_HEADER = "X-From-Cache"

_API_VERSION = "2022-11-28"
_HTTP_OK = 200
_HTTP_NOT_MODIFIED = 304
_HTTP_ERROR_STATUS_THRESHOLD = 400
_RATE_LIMIT_STATUSES = frozenset({403, 429})


class EventSource(typ.Protocol):
    """Interface for fetching one page of the event feed.

    Implementations never retry: a rate-limited response is reported as
    :class:`~ghfeed.feed.models.RateLimited` and any other failure as
    :class:`~ghfeed.feed.models.FetchFailed` carrying the original exception.
    """

    async def fetch_page(self, cursor: int) -> FetchOutcome:
        """Fetch the page identified by ``cursor``."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class _CachedPage:
    etag: str
    events: tuple[Event, ...]
    next_cursor: int


def _parse_int_header(headers: httpx.Headers, name: str) -> int | None:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def _metadata_from_response(
    response: httpx.Response, *, cache_hit: bool = False
) -> PageMetadata:
    headers = response.headers
    return PageMetadata(
        poll_interval=headers.get(POLL_INTERVAL_HEADER),
        rate_limit_remaining=_parse_int_header(headers, RATE_LIMIT_REMAINING_HEADER),
        rate_limit_reset=from_epoch_seconds(headers.get(RATE_LIMIT_RESET_HEADER)),
        cache_hit=cache_hit or FROM_CACHE_HEADER in headers,
    )


def next_cursor_from_links(response: httpx.Response) -> int:
    """Return the ``page`` parameter of the ``rel="next"`` link.

    Returns :data:`~ghfeed.feed.models.END_OF_FEED` when there is no next link
    or its page parameter is not a positive integer.
    """
    link = response.links.get("next")
    if not link or "url" not in link:
        return END_OF_FEED
    raw_page = httpx.URL(link["url"]).params.get("page")
    if raw_page is None:
        return END_OF_FEED
    try:
        page = int(raw_page)
    except ValueError:
        return END_OF_FEED
    return page if page > END_OF_FEED else END_OF_FEED


def _rate_limit_reset(
    response: httpx.Response, now: dt.datetime
) -> dt.datetime | None:
    """Return the quota reset time when ``response`` is a rate-limit refusal."""
    if response.status_code not in _RATE_LIMIT_STATUSES:
        return None

    reset_at = from_epoch_seconds(response.headers.get(RATE_LIMIT_RESET_HEADER))
    retry_after = _parse_int_header(response.headers, RETRY_AFTER_HEADER)
    if retry_after is not None:
        # Secondary rate limits announce a relative wait instead of a reset.
        try:
            return now + dt.timedelta(seconds=max(retry_after, 0))
        except OverflowError:
            return reset_at or now

    remaining = _parse_int_header(response.headers, RATE_LIMIT_REMAINING_HEADER)
    if remaining != 0:
        return None
    return reset_at or now


class GitHubEventSource:
    """Fetch pages of ``GET /events`` from the GitHub REST API.

    Pages seen before are requested conditionally with ``If-None-Match``; a
    ``304 Not Modified`` reply is served from the page cache and flagged as a
    cache hit. Conditional requests answered with 304 do not count against
    the rate limit.
    """

    def __init__(
        self,
        config: FeedConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        clock: typ.Callable[[], dt.datetime] = utcnow,
    ) -> None:
        """Initialise the source with the feed configuration."""
        if not config.auth_token.strip():
            raise FeedConfigError.empty_token()

        self._config = config
        self._clock = clock
        self._events_url = f"{config.api_url.rstrip('/')}/events"
        self._cache: dict[int, _CachedPage] = {}
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            headers={
                "Authorization": f"Bearer {config.auth_token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": config.user_agent,
                "X-GitHub-Api-Version": _API_VERSION,
            },
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def fetch_page(self, cursor: int) -> FetchOutcome:
        """Fetch one page of public events."""
        log_debug(logger, "Polling for page %d", cursor)
        cached = self._cache.get(cursor)
        headers = {"If-None-Match": cached.etag} if cached else {}
        try:
            response = await self._client.get(
                self._events_url,
                params={"page": cursor, "per_page": self._config.max_events_per_page},
                headers=headers,
            )
        except httpx.HTTPError as exc:
            return FetchFailed(error=exc)

        reset_at = _rate_limit_reset(response, self._clock())
        if reset_at is not None:
            return RateLimited(
                reset_at=reset_at, metadata=_metadata_from_response(response)
            )

        if response.status_code == _HTTP_NOT_MODIFIED and cached is not None:
            page = Page(
                events=cached.events,
                next_cursor=cached.next_cursor,
                metadata=_metadata_from_response(response, cache_hit=True),
            )
            return PageFetched(page=page)

        if (
            response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD
            or response.status_code == _HTTP_NOT_MODIFIED
        ):
            return FetchFailed(error=FeedAPIError.http_error(response.status_code))

        try:
            events = tuple(decode_events(response.content))
        except msgspec.DecodeError as exc:
            return FetchFailed(error=FeedResponseShapeError.undecodable(exc))

        next_cursor = next_cursor_from_links(response)
        self._remember(cursor, response, events, next_cursor)
        return PageFetched(
            page=Page(
                events=events,
                next_cursor=next_cursor,
                metadata=_metadata_from_response(response),
            )
        )

    def _remember(
        self,
        cursor: int,
        response: httpx.Response,
        events: tuple[Event, ...],
        next_cursor: int,
    ) -> None:
        etag = response.headers.get("ETag")
        if response.status_code != _HTTP_OK or not etag:
            self._cache.pop(cursor, None)
            return
        self._cache[cursor] = _CachedPage(
            etag=etag, events=events, next_cursor=next_cursor
        )
