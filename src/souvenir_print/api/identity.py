"""Request identity supplied by the authentication layer."""

from fastapi import Header, HTTPException, status

from souvenir_print.domain.identity import Identity

_TRUTHY = {"1", "true", "yes"}


async def require_identity(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
    x_guest: str | None = Header(default=None),
) -> Identity:
    """Build the caller identity from forwarded auth headers."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return Identity(
        subject=x_user_id.strip(),
        email=x_user_email or None,
        is_guest=(x_guest or "").strip().lower() in _TRUTHY,
    )
