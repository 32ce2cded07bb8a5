"""Typed errors raised by the print and history services.

Each error carries a stable ``code`` so the HTTP layer can map it to a
response without inspecting messages.
"""

from typing import Any


class SouvenirError(Exception):
    """Base class for domain errors."""

    code = "SOUVENIR_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        self.context = context
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and API responses."""
        return {"error": self.code, "detail": str(self), **self.context}


class InvalidHandleError(SouvenirError):
    """The photo handle is unknown or its bytes were already purged."""

    code = "INVALID_HANDLE"


class InvalidUserInfoError(SouvenirError):
    """A required user info field is empty."""

    code = "INVALID_USER_INFO"


class NotFoundError(SouvenirError):
    """A tracking id, handle or history entry does not exist."""

    code = "NOT_FOUND"


class ImmutableEntryError(SouvenirError):
    """A printed history entry cannot be edited, replaced or deleted."""

    code = "IMMUTABLE"


class AlreadyPrintedError(SouvenirError):
    """A history entry was already marked as printed."""

    code = "ALREADY_PRINTED"


class JobNotCompletedError(SouvenirError):
    """The print job has not reached the completed state."""

    code = "JOB_NOT_COMPLETED"


class HandleConflictError(SouvenirError):
    """A photo handle is bound to another entry or to a different job."""

    code = "HANDLE_CONFLICT"


class PrintSinkError(SouvenirError):
    """A print backend could not accept the job."""

    code = "PRINT_SINK_FAILURE"


class NotificationError(SouvenirError):
    """Completion notification could not be delivered."""

    code = "NOTIFY_FAILURE"
