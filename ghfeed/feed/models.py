"""Typed models for the GitHub public event feed.

Events are decoded with msgspec straight from the ``/events`` response body.
Fields not modelled here are ignored; ``payload`` keeps the type-specific body
untouched so downstream consumers can pick what they need from it.
"""

from __future__ import annotations

import dataclasses
import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    import datetime as dt

#: Cursor value signalling that the feed has no further pages this cycle.
END_OF_FEED = 0

#: Cursor of the first page of every poll cycle.
FIRST_PAGE = 1


class Actor(msgspec.Struct, kw_only=True, frozen=True):
    """User or organisation attached to an event.

    Attributes
    ----------
    login : str
        GitHub login of the actor.
    id : int | None
        Numeric GitHub account identifier.
    display_login : str | None
        Login as rendered by GitHub, when it differs from ``login``.
    url : str | None
        API URL of the account.
    avatar_url : str | None
        Avatar image URL.

    """

    login: str
    id: int | None = None
    display_login: str | None = None
    url: str | None = None
    avatar_url: str | None = None


class RepoRef(msgspec.Struct, kw_only=True, frozen=True):
    """Repository an event happened in."""

    name: str
    id: int | None = None
    url: str | None = None


class Event(msgspec.Struct, kw_only=True, frozen=True):
    """A single public GitHub event."""

    id: str
    type: str
    actor: Actor
    repo: RepoRef | None = None
    org: Actor | None = None
    payload: dict[str, typ.Any] = msgspec.field(default_factory=dict)
    public: bool = True
    created_at: str | None = None


type Batch = tuple[Event, ...]

_EVENTS_DECODER = msgspec.json.Decoder(list[Event])


def decode_events(content: bytes) -> list[Event]:
    """Decode an ``/events`` response body.

    Raises
    ------
    msgspec.DecodeError
        If the body is not valid JSON or does not match the event schema.

    """
    return _EVENTS_DECODER.decode(content)


@dataclasses.dataclass(frozen=True, slots=True)
class PageMetadata:
    """Pacing and rate-limit information attached to one page response."""

    poll_interval: str | None = None
    rate_limit_remaining: int | None = None
    rate_limit_reset: dt.datetime | None = None
    cache_hit: bool = False


@dataclasses.dataclass(frozen=True, slots=True)
class Page:
    """One page of the event feed."""

    events: tuple[Event, ...]
    next_cursor: int
    metadata: PageMetadata = dataclasses.field(default_factory=PageMetadata)


@dataclasses.dataclass(frozen=True, slots=True)
class PageFetched:
    """The page was fetched (possibly from cache)."""

    page: Page


@dataclasses.dataclass(frozen=True, slots=True)
class RateLimited:
    """GitHub refused the request until ``reset_at``."""

    reset_at: dt.datetime
    metadata: PageMetadata = dataclasses.field(default_factory=PageMetadata)


@dataclasses.dataclass(frozen=True, slots=True)
class FetchFailed:
    """The fetch failed; ``error`` is the original exception."""

    error: BaseException


type FetchOutcome = PageFetched | RateLimited | FetchFailed
