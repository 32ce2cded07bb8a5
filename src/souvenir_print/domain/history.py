"""Domain models for the photo history ledger."""

from dataclasses import dataclass
from datetime import datetime

from souvenir_print.domain.jobs import UserInfo


@dataclass(frozen=True)
class PhotoHistoryEntry:
    """A photo the user has uploaded, possibly already printed."""

    id: str
    handle_id: str
    photo_bytes: bytes
    uploaded_at: datetime
    updated_at: datetime | None = None
    printed: bool = False
    tracking_id: str | None = None
    user_info: UserInfo | None = None
