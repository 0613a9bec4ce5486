"""Shared helpers used across ghfeed packages."""
