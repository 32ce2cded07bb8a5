"""Tracking identifier generation."""

import secrets
import string

TRACKING_ID_LENGTH = 8
_ALPHABET = string.ascii_uppercase + string.digits


def generate_tracking_id(length: int = TRACKING_ID_LENGTH) -> str:
    """Return a random uppercase alphanumeric code, e.g. ``7QK2M9ZD``."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def is_tracking_id(value: str, length: int = TRACKING_ID_LENGTH) -> bool:
    """Return true when ``value`` looks like a tracking identifier."""
    return len(value) == length and all(char in _ALPHABET for char in value)
