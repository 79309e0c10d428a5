"""Helpers for validating identifiers supplied by callers."""

import re

from soundnest.core.errors import InputValidationError

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_uuid(value) -> bool:
    """Return True when ``value`` is a hyphenated UUID string."""
    return isinstance(value, str) and bool(UUID_PATTERN.match(value))


def require_uuid(value: str, message: str) -> str:
    """Return ``value`` lower-cased, or raise a 400 with ``message``."""
    if not is_uuid(value):
        raise InputValidationError(message)
    return value.lower()
