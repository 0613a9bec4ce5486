"""Unit tests for FeedConfig."""

from __future__ import annotations

import datetime as dt

import pytest

from ghfeed.feed.config import FeedConfig
from ghfeed.feed.errors import FeedConfigError

_ENV_VARS = (
    "GHFEED_GITHUB_TOKEN",
    "GHFEED_QUEUE_CAPACITY",
    "GHFEED_MAX_PAGES",
    "GHFEED_EVENTS_PER_PAGE",
    "GHFEED_DEFAULT_POLL_SECONDS",
    "GHFEED_STOP_ON_CACHE_HIT",
    "GHFEED_API_URL",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove all ghfeed variables from the environment."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_follow_github_documentation() -> None:
    """Defaults match the public events API limits."""
    config = FeedConfig(auth_token="secret-token")

    assert config.queue_capacity == 16
    assert config.max_pages_per_cycle == 10
    assert config.max_events_per_page == 30
    assert config.default_poll_delay == dt.timedelta(seconds=60)
    assert config.stop_on_cache_hit is True


def test_repr_hides_token() -> None:
    """The credential never appears in the config representation."""
    config = FeedConfig(auth_token="secret-token")
    assert "secret-token" not in repr(config)


@pytest.mark.parametrize(
    "overrides",
    [
        {"auth_token": "   "},
        {"queue_capacity": 0},
        {"max_pages_per_cycle": 0},
        {"max_events_per_page": 0},
        {"max_events_per_page": 101},
        {"default_poll_delay": dt.timedelta(seconds=-1)},
        {"timeout_s": 0},
    ],
)
def test_rejects_invalid_values(overrides: dict[str, object]) -> None:
    """Out-of-range settings are rejected on construction."""
    kwargs: dict[str, object] = {"auth_token": "secret-token", **overrides}
    with pytest.raises(FeedConfigError):
        FeedConfig(**kwargs)  # type: ignore[arg-type]


def test_from_env_requires_token(clean_env: pytest.MonkeyPatch) -> None:
    """A missing token is a configuration error."""
    del clean_env
    with pytest.raises(FeedConfigError, match="GHFEED_GITHUB_TOKEN"):
        FeedConfig.from_env()


def test_from_env_reads_overrides(clean_env: pytest.MonkeyPatch) -> None:
    """Environment variables override every default."""
    clean_env.setenv("GHFEED_GITHUB_TOKEN", " secret-token ")
    clean_env.setenv("GHFEED_QUEUE_CAPACITY", "4")
    clean_env.setenv("GHFEED_MAX_PAGES", "3")
    clean_env.setenv("GHFEED_EVENTS_PER_PAGE", "100")
    clean_env.setenv("GHFEED_DEFAULT_POLL_SECONDS", "90")
    clean_env.setenv("GHFEED_STOP_ON_CACHE_HIT", "false")
    clean_env.setenv("GHFEED_API_URL", "https://ghe.example.test/api/v3")

    config = FeedConfig.from_env()

    assert config.auth_token == "secret-token"
    assert config.queue_capacity == 4
    assert config.max_pages_per_cycle == 3
    assert config.max_events_per_page == 100
    assert config.default_poll_delay == dt.timedelta(seconds=90)
    assert config.stop_on_cache_hit is False
    assert config.api_url == "https://ghe.example.test/api/v3"


@pytest.mark.parametrize(
    ("name", "value"),
    [("GHFEED_MAX_PAGES", "ten"), ("GHFEED_STOP_ON_CACHE_HIT", "maybe")],
)
def test_from_env_rejects_malformed_values(
    clean_env: pytest.MonkeyPatch, name: str, value: str
) -> None:
    """Malformed environment values name the offending variable."""
    clean_env.setenv("GHFEED_GITHUB_TOKEN", "secret-token")
    clean_env.setenv(name, value)

    with pytest.raises(FeedConfigError, match=name):
        FeedConfig.from_env()
