"""Utility functions for datetime operations."""

from datetime import datetime, UTC


def utc_now():
    """Return the current UTC datetime in a timezone-aware format."""
    return datetime.now(UTC)


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO 8601 string for the data API."""
    return utc_now().isoformat()
