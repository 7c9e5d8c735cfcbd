"""Boundary validators shared by the API views."""

import uuid

from rest_framework.exceptions import ValidationError


def parse_uuid(value, message: str = "Invalid ID format") -> uuid.UUID:
    """Parse a path or query identifier, raising a 400 on malformed input."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(message)


def positive_int(raw, default: int) -> int:
    """Parse a query parameter as a positive integer, else return ``default``."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


__all__ = ["parse_uuid", "positive_int"]
