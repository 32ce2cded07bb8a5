"""Supabase-backed photo history repository."""

import base64
from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from souvenir_print.domain.history import PhotoHistoryEntry
from souvenir_print.domain.jobs import UserInfo
from souvenir_print.services.history import HistoryRepository

_COLUMNS = (
    "id, owner, handle_id, photo_b64, uploaded_at, updated_at, "
    "printed, tracking_id, user_info_json"
)


@dataclass
class SupabaseHistoryRepository(HistoryRepository):
    """Supabase implementation for the ``photo_history`` table."""

    client: Client

    def list_entries(self, owner: str) -> list[PhotoHistoryEntry]:
        """Return an owner's entries ordered by upload time."""
        response = (
            self.client.table("photo_history")
            .select(_COLUMNS)
            .eq("owner", owner)
            .order("uploaded_at")
            .execute()
        )
        return [_row_to_entry(row) for row in response.data or []]

    def get_entry(self, owner: str, entry_id: str) -> PhotoHistoryEntry | None:
        """Return a single entry, if present."""
        response = (
            self.client.table("photo_history")
            .select(_COLUMNS)
            .eq("owner", owner)
            .eq("id", entry_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_entry(response.data[0])

    def add_entry(self, owner: str, entry: PhotoHistoryEntry) -> None:
        """Insert a new entry row."""
        response = (
            self.client.table("photo_history")
            .insert({"owner": owner, **_entry_to_row(entry)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create history entry")

    def save_entry(self, owner: str, entry: PhotoHistoryEntry) -> None:
        """Overwrite an entry row."""
        row = _entry_to_row(entry)
        row.pop("id")
        self.client.table("photo_history").update(row).eq("owner", owner).eq(
            "id", entry.id
        ).execute()

    def delete_entry(self, owner: str, entry_id: str) -> None:
        """Delete an entry row."""
        self.client.table("photo_history").delete().eq("owner", owner).eq(
            "id", entry_id
        ).execute()

    def find_entry_by_handle(self, handle_id: str) -> PhotoHistoryEntry | None:
        """Return the entry referencing a handle across all owners."""
        response = (
            self.client.table("photo_history")
            .select(_COLUMNS)
            .eq("handle_id", handle_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_entry(response.data[0])


def _entry_to_row(entry: PhotoHistoryEntry) -> dict[str, object]:
    user_info = entry.user_info
    return {
        "id": entry.id,
        "handle_id": entry.handle_id,
        "photo_b64": base64.b64encode(entry.photo_bytes).decode("ascii"),
        "uploaded_at": entry.uploaded_at.isoformat(),
        "updated_at": entry.updated_at.isoformat() if entry.updated_at else None,
        "printed": entry.printed,
        "tracking_id": entry.tracking_id,
        "user_info_json": (
            {
                "first_name": user_info.first_name,
                "last_name": user_info.last_name,
                "email": user_info.email,
                "location": user_info.location,
            }
            if user_info
            else None
        ),
    }


def _row_to_entry(row: dict[str, object]) -> PhotoHistoryEntry:
    raw_user_info = row.get("user_info_json")
    updated_at = row.get("updated_at")
    return PhotoHistoryEntry(
        id=str(row["id"]),
        handle_id=str(row["handle_id"]),
        photo_bytes=base64.b64decode(str(row["photo_b64"])),
        uploaded_at=datetime.fromisoformat(str(row["uploaded_at"])),
        updated_at=datetime.fromisoformat(str(updated_at)) if updated_at else None,
        printed=bool(row.get("printed")),
        tracking_id=row.get("tracking_id"),
        user_info=(
            UserInfo(**raw_user_info) if isinstance(raw_user_info, dict) else None
        ),
    )
