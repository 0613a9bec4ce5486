"""Poll, pace and paginate the GitHub public event feed."""

from __future__ import annotations

from .channel import BatchChannel
from .config import FeedConfig
from .errors import (
    ChannelClosedError,
    FeedAPIError,
    FeedConfigError,
    FeedError,
    FeedResponseShapeError,
)
from .models import (
    END_OF_FEED,
    Actor,
    Batch,
    Event,
    FetchFailed,
    FetchOutcome,
    Page,
    PageFetched,
    PageMetadata,
    RateLimited,
    RepoRef,
)
from .observability import ErrorCategory, FeedEventLogger, FeedEventType, categorize_error
from .pacing import PacingDecision, PacingPolicy, StopReason, parse_poll_interval
from .poller import CycleResult, PollLoop, ServeOutcome
from .source import EventSource, GitHubEventSource

__all__ = [
    "END_OF_FEED",
    "Actor",
    "Batch",
    "BatchChannel",
    "ChannelClosedError",
    "CycleResult",
    "ErrorCategory",
    "Event",
    "EventSource",
    "FeedAPIError",
    "FeedConfig",
    "FeedConfigError",
    "FeedError",
    "FeedEventLogger",
    "FeedEventType",
    "FeedResponseShapeError",
    "FetchFailed",
    "FetchOutcome",
    "GitHubEventSource",
    "PacingDecision",
    "PacingPolicy",
    "Page",
    "PageFetched",
    "PageMetadata",
    "PollLoop",
    "RateLimited",
    "RepoRef",
    "ServeOutcome",
    "StopReason",
    "categorize_error",
    "parse_poll_interval",
]
