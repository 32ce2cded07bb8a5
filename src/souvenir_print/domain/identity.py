"""Domain model for the authenticated caller."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """Opaque identity supplied by the authentication layer."""

    subject: str
    email: str | None = None
    is_guest: bool = False
