"""Poll the public GitHub event feed and republish it as ordered batches."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
