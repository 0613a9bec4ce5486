"""Allow ``python -m ghfeed``."""

from __future__ import annotations

from ghfeed.cli import main

raise SystemExit(main())
