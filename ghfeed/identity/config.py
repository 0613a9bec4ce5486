"""Configuration for the identity forwarding pipeline."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import os

from ghfeed.feed.errors import FeedConfigError


@dc.dataclass(frozen=True, slots=True)
class IdentityConfig:
    """Settings for :class:`~ghfeed.identity.dispatch.IdentityDispatcher`.

    Attributes
    ----------
    endpoint
        URL receiving a JSON list of identifiers per event.
    window
        Time over which the events of one batch are spread.
    max_concurrency
        Upper bound on identity posts in flight.
    timeout_s
        Per-request HTTP timeout in seconds.
    user_agent
        ``User-Agent`` header sent with every post.

    """

    endpoint: str
    window: dt.timedelta = dt.timedelta(seconds=60)
    max_concurrency: int = 8
    timeout_s: float = 10.0
    user_agent: str = "ghfeed-identify"

    def __post_init__(self) -> None:
        """Validate settings."""
        if not self.endpoint.strip():
            raise FeedConfigError.invalid("endpoint", self.endpoint, "non-empty")
        if self.window < dt.timedelta(0):
            raise FeedConfigError.invalid("window", self.window, "non-negative")
        if self.max_concurrency < 1:
            raise FeedConfigError.invalid(
                "max_concurrency", self.max_concurrency, "positive"
            )

    @staticmethod
    def _parse_int(env_var: str, default: int) -> int:
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            return int(raw)
        except ValueError as exc:
            raise FeedConfigError.invalid(env_var, raw, "an integer") from exc

    @classmethod
    def from_env(cls) -> IdentityConfig:
        """Create configuration from environment variables.

        Reads ``GHFEED_IDENTITY_ENDPOINT`` (required),
        ``GHFEED_IDENTITY_WINDOW_SECONDS`` and
        ``GHFEED_IDENTITY_MAX_CONCURRENCY``.

        Raises
        ------
        FeedConfigError
            If the endpoint is missing or a value is malformed.

        """
        endpoint = os.environ.get("GHFEED_IDENTITY_ENDPOINT", "").strip()
        if not endpoint:
            msg = "GHFEED_IDENTITY_ENDPOINT is required for identity forwarding"
            raise FeedConfigError(msg)
        return cls(
            endpoint=endpoint,
            window=dt.timedelta(
                seconds=cls._parse_int("GHFEED_IDENTITY_WINDOW_SECONDS", 60)
            ),
            max_concurrency=cls._parse_int("GHFEED_IDENTITY_MAX_CONCURRENCY", 8),
        )
