"""Supabase Storage-backed photo store."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from souvenir_print.domain.errors import NotFoundError
from souvenir_print.domain.photos import PhotoHandle
from souvenir_print.services.photo_store import PhotoStore, new_handle


@dataclass
class SupabasePhotoStore(PhotoStore):
    """Photo bytes in a storage bucket, metadata in ``photo_handles``."""

    client: Client
    bucket: str

    def store(self, data: bytes, content_type: str) -> PhotoHandle:
        """Upload bytes and register the handle."""
        handle = new_handle(data, content_type)
        self.client.storage.from_(self.bucket).upload(
            path=_object_path(handle.id),
            file=data,
            file_options={"content-type": content_type},
        )
        response = (
            self.client.table("photo_handles")
            .insert(
                {
                    "id": handle.id,
                    "byte_length": handle.byte_length,
                    "content_type": handle.content_type,
                    "created_at": handle.created_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to register photo handle")
        return handle

    def describe(self, handle_id: str) -> PhotoHandle:
        """Return handle metadata from the handles table."""
        response = (
            self.client.table("photo_handles")
            .select("id, byte_length, content_type, created_at")
            .eq("id", handle_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            raise NotFoundError(f"Photo {handle_id} not found", handle_id=handle_id)
        row = response.data[0]
        return PhotoHandle(
            id=row["id"],
            byte_length=int(row["byte_length"]),
            content_type=row["content_type"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def retrieve(self, handle_id: str) -> bytes:
        """Download bytes for a registered handle."""
        self.describe(handle_id)
        return self.client.storage.from_(self.bucket).download(_object_path(handle_id))

    def purge(self, handle_id: str) -> None:
        """Remove the object and its metadata row."""
        self.client.storage.from_(self.bucket).remove([_object_path(handle_id)])
        self.client.table("photo_handles").delete().eq("id", handle_id).execute()


def _object_path(handle_id: str) -> str:
    return f"uploads/{handle_id}"
