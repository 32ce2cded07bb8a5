"""Domain models for print jobs."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class PrintJobStatus(StrEnum):
    """Lifecycle states of a print job."""

    PRINTING = "printing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({PrintJobStatus.COMPLETED, PrintJobStatus.FAILED})


@dataclass(frozen=True)
class UserInfo:
    """Contact details submitted with a print request."""

    first_name: str
    last_name: str
    email: str
    location: str

    def missing_fields(self) -> list[str]:
        """Return the names of required fields that are blank."""
        return [
            name
            for name in ("first_name", "last_name", "email", "location")
            if not getattr(self, name).strip()
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class PrintJob:
    """Represents a persisted print job."""

    tracking_id: str
    handle_id: str
    user_info: UserInfo
    status: PrintJobStatus
    created_at: datetime
    completed_at: datetime | None = None
    failure_reason: str | None = None
    print_reference: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass(frozen=True)
class PrintOutcome:
    """Result reported by a print sink."""

    success: bool
    reason: str | None = None
    reference: str | None = None

    @classmethod
    def ok(cls, reference: str | None = None) -> "PrintOutcome":
        return cls(success=True, reference=reference)

    @classmethod
    def failed(cls, reason: str) -> "PrintOutcome":
        return cls(success=False, reason=reason)


@dataclass(frozen=True)
class PrintAttempt:
    """Outcome of one background print attempt."""

    job: PrintJob
    purge_error: str | None = None
    notification_error: str | None = None
