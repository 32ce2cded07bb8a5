"""Photo storage interface and in-memory implementation."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from souvenir_print.domain.errors import NotFoundError
from souvenir_print.domain.photos import PhotoHandle


class PhotoStore(Protocol):
    """Handle-based storage for uploaded photo bytes."""

    def store(self, data: bytes, content_type: str) -> PhotoHandle:
        """Persist bytes and return a new handle."""

    def describe(self, handle_id: str) -> PhotoHandle:
        """Return handle metadata or raise NotFoundError."""

    def retrieve(self, handle_id: str) -> bytes:
        """Return stored bytes or raise NotFoundError."""

    def purge(self, handle_id: str) -> None:
        """Remove stored bytes; unknown handles are ignored."""


def new_handle(data: bytes, content_type: str) -> PhotoHandle:
    """Build handle metadata for freshly uploaded bytes."""
    return PhotoHandle(
        id=f"photo-{uuid4().hex}",
        byte_length=len(data),
        content_type=content_type,
        created_at=datetime.now(tz=UTC),
    )


@dataclass
class _StoredPhoto:
    handle: PhotoHandle
    data: bytes


@dataclass
class InMemoryPhotoStore(PhotoStore):
    """Process-local photo store."""

    _photos: dict[str, _StoredPhoto]

    def __init__(self) -> None:
        self._photos = {}

    def store(self, data: bytes, content_type: str) -> PhotoHandle:
        handle = new_handle(data, content_type)
        self._photos[handle.id] = _StoredPhoto(handle=handle, data=bytes(data))
        return handle

    def describe(self, handle_id: str) -> PhotoHandle:
        return self._get(handle_id).handle

    def retrieve(self, handle_id: str) -> bytes:
        return self._get(handle_id).data

    def purge(self, handle_id: str) -> None:
        self._photos.pop(handle_id, None)

    def _get(self, handle_id: str) -> _StoredPhoto:
        stored = self._photos.get(handle_id)
        if stored is None:
            raise NotFoundError(f"Photo {handle_id} not found", handle_id=handle_id)
        return stored
