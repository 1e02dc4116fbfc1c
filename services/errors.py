from __future__ import annotations


class ReadingValidationError(ValueError):
    """Client supplied a missing, mistyped or out-of-range value."""


class ReadingNotFoundError(LookupError):
    """No stored reading matches the request."""
