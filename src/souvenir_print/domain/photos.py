"""Domain models for stored photos."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PhotoHandle:
    """Opaque reference to photo bytes held by a photo store."""

    id: str
    byte_length: int
    content_type: str
    created_at: datetime
