"""Shared fixtures for unit tests."""

from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _isolate_ghfeed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop GHFEED_* variables so tests never see the caller's settings."""
    for name in list(os.environ):
        if name.startswith("GHFEED_"):
            monkeypatch.delenv(name, raising=False)
