"""Event feed errors."""

from __future__ import annotations


class FeedError(RuntimeError):
    """Base class for errors raised by the event feed."""


class FeedAPIError(FeedError):
    """Raised when GitHub returns an error response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int) -> FeedAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"GitHub events HTTP {status_code}", status_code=status_code)


class FeedResponseShapeError(FeedError):
    """Raised when an events page cannot be decoded."""

    @classmethod
    def undecodable(cls, detail: object) -> FeedResponseShapeError:
        """Return an error for a page body that is not a list of events."""
        return cls(f"GitHub events response could not be decoded: {detail}")


class FeedConfigError(FeedError):
    """Raised when feed configuration is invalid."""

    @classmethod
    def missing_token(cls) -> FeedConfigError:
        """Return an error when no GitHub token is configured."""
        return cls("GHFEED_GITHUB_TOKEN is required for the GitHub events API")

    @classmethod
    def empty_token(cls) -> FeedConfigError:
        """Return an error when the provided token is empty."""
        return cls("GitHub token must be non-empty")

    @classmethod
    def invalid(cls, field: str, value: object, expectation: str) -> FeedConfigError:
        """Return an error for a configuration value outside its valid range."""
        return cls(f"{field} must be {expectation}, got: {value!r}")


class ChannelClosedError(FeedError):
    """Raised when a closed batch channel is used for sending or closed again."""
