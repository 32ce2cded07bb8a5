"""Photo store backed by a local uploads directory."""

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from souvenir_print.domain.errors import NotFoundError
from souvenir_print.domain.photos import PhotoHandle
from souvenir_print.services.photo_store import PhotoStore, new_handle


@dataclass
class FilesystemPhotoStore(PhotoStore):
    """Stores each photo as ``<id>.bin`` with a ``<id>.json`` metadata sidecar."""

    base_dir: Path

    def __post_init__(self) -> None:
        self.base_dir = Path(self.base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def store(self, data: bytes, content_type: str) -> PhotoHandle:
        handle = new_handle(data, content_type)
        self._data_path(handle.id).write_bytes(data)
        self._meta_path(handle.id).write_text(
            json.dumps(
                {
                    "id": handle.id,
                    "byte_length": handle.byte_length,
                    "content_type": handle.content_type,
                    "created_at": handle.created_at.isoformat(),
                }
            ),
            encoding="utf-8",
        )
        return handle

    def describe(self, handle_id: str) -> PhotoHandle:
        meta_path = self._meta_path(handle_id)
        if not meta_path.is_file() or not self._data_path(handle_id).is_file():
            raise NotFoundError(f"Photo {handle_id} not found", handle_id=handle_id)
        raw = json.loads(meta_path.read_text(encoding="utf-8"))
        return PhotoHandle(
            id=raw["id"],
            byte_length=int(raw["byte_length"]),
            content_type=raw["content_type"],
            created_at=datetime.fromisoformat(raw["created_at"]),
        )

    def retrieve(self, handle_id: str) -> bytes:
        data_path = self._data_path(handle_id)
        if not data_path.is_file():
            raise NotFoundError(f"Photo {handle_id} not found", handle_id=handle_id)
        return data_path.read_bytes()

    def purge(self, handle_id: str) -> None:
        self._data_path(handle_id).unlink(missing_ok=True)
        self._meta_path(handle_id).unlink(missing_ok=True)

    def _data_path(self, handle_id: str) -> Path:
        return self.base_dir / f"{_safe_name(handle_id)}.bin"

    def _meta_path(self, handle_id: str) -> Path:
        return self.base_dir / f"{_safe_name(handle_id)}.json"


def _safe_name(handle_id: str) -> str:
    """Keep handle ids from escaping the uploads directory."""
    return "".join(char for char in handle_id if char.isalnum() or char in "-_")
