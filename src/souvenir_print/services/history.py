"""Photo history ledger with lifecycle guards for printed entries."""

import logging
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from souvenir_print.domain.errors import (
    AlreadyPrintedError,
    HandleConflictError,
    ImmutableEntryError,
    NotFoundError,
)
from souvenir_print.domain.history import PhotoHistoryEntry
from souvenir_print.domain.jobs import UserInfo
from souvenir_print.services.locks import KeyedLocks

_logger = logging.getLogger(__name__)


class HistoryRepository(Protocol):
    """Ordered per-owner persistence for history entries."""

    def list_entries(self, owner: str) -> list[PhotoHistoryEntry]:
        """Return an owner's entries, oldest first."""

    def get_entry(self, owner: str, entry_id: str) -> PhotoHistoryEntry | None:
        """Return a single entry, if present."""

    def add_entry(self, owner: str, entry: PhotoHistoryEntry) -> None:
        """Append a new entry."""

    def save_entry(self, owner: str, entry: PhotoHistoryEntry) -> None:
        """Overwrite an existing entry in place."""

    def delete_entry(self, owner: str, entry_id: str) -> None:
        """Remove an entry."""

    def find_entry_by_handle(self, handle_id: str) -> PhotoHistoryEntry | None:
        """Return the entry of any owner that references a handle, if present."""


@dataclass
class HistoryService:
    """Maintains each user's catalogue of uploaded and printed photos."""

    repository: HistoryRepository
    locks: KeyedLocks = field(default_factory=KeyedLocks)

    def record_upload(self, owner: str, handle_id: str, preview_bytes: bytes) -> str:
        """Create an unprinted entry for a fresh upload and return its id."""
        self._ensure_handle_free(handle_id)
        entry = PhotoHistoryEntry(
            id=uuid4().hex,
            handle_id=handle_id,
            photo_bytes=bytes(preview_bytes),
            uploaded_at=datetime.now(tz=UTC),
        )
        self.repository.add_entry(owner, entry)
        return entry.id

    def get(self, owner: str, entry_id: str) -> PhotoHistoryEntry:
        """Return an entry or raise NotFoundError."""
        entry = self.repository.get_entry(owner, entry_id)
        if entry is None:
            raise NotFoundError(
                f"History entry {entry_id} not found", entry_id=entry_id
            )
        return entry

    def list(self, owner: str) -> list[PhotoHistoryEntry]:
        """Return entries oldest first."""
        return self.repository.list_entries(owner)

    def latest(self, owner: str) -> PhotoHistoryEntry | None:
        """Return the most recent entry, where the browsing cursor starts."""
        entries = self.repository.list_entries(owner)
        return entries[-1] if entries else None

    async def edit(self, owner: str, entry_id: str, new_bytes: bytes) -> None:
        """Replace preview bytes of an unprinted entry."""
        async with self.locks.hold(entry_id):
            entry = self._mutable(owner, entry_id, "edit")
            self.repository.save_entry(
                owner, replace(entry, photo_bytes=bytes(new_bytes))
            )

    async def replace(
        self, owner: str, entry_id: str, new_handle_id: str, new_bytes: bytes
    ) -> str:
        """Swap the handle and bytes of an unprinted entry.

        Returns the handle id that was bound before the swap so the caller can
        discard it.
        """
        async with self.locks.hold(entry_id):
            entry = self._mutable(owner, entry_id, "replace")
            self._ensure_handle_free(new_handle_id, entry_id=entry_id)
            self.repository.save_entry(
                owner,
                replace(
                    entry,
                    handle_id=new_handle_id,
                    photo_bytes=bytes(new_bytes),
                    updated_at=datetime.now(tz=UTC),
                ),
            )
        return entry.handle_id

    async def delete(self, owner: str, entry_id: str) -> PhotoHistoryEntry:
        """Remove an unprinted entry and return it."""
        async with self.locks.hold(entry_id):
            entry = self._mutable(owner, entry_id, "delete")
            self.repository.delete_entry(owner, entry_id)
        return entry

    async def mark_printed(
        self,
        owner: str,
        entry_id: str,
        tracking_id: str,
        user_info: UserInfo,
        handle_id: str | None = None,
    ) -> PhotoHistoryEntry:
        """Lock an entry as printed; allowed exactly once.

        When ``handle_id`` is given it must be the handle the entry currently
        references, so a job can only lock the entry holding the photo it
        printed.
        """
        async with self.locks.hold(entry_id):
            entry = self.get(owner, entry_id)
            if handle_id is not None and entry.handle_id != handle_id:
                raise HandleConflictError(
                    f"History entry {entry_id} no longer holds photo {handle_id}",
                    entry_id=entry_id,
                    handle_id=handle_id,
                )
            if entry.printed:
                raise AlreadyPrintedError(
                    f"History entry {entry_id} was already printed",
                    entry_id=entry_id,
                    tracking_id=entry.tracking_id,
                )
            printed = replace(
                entry,
                printed=True,
                tracking_id=tracking_id,
                user_info=replace(user_info),
            )
            self.repository.save_entry(owner, printed)
        _logger.info(
            "History entry printed: entry_id=%s tracking_id=%s", entry_id, tracking_id
        )
        return printed

    def _ensure_handle_free(self, handle_id: str, entry_id: str | None = None) -> None:
        holder = self.repository.find_entry_by_handle(handle_id)
        if holder is not None and holder.id != entry_id:
            raise HandleConflictError(
                f"Photo {handle_id} is already in history",
                handle_id=handle_id,
            )

    def _mutable(self, owner: str, entry_id: str, action: str) -> PhotoHistoryEntry:
        entry = self.get(owner, entry_id)
        if entry.printed:
            raise ImmutableEntryError(
                f"Cannot {action} a photo that has already been printed",
                entry_id=entry_id,
            )
        return entry
