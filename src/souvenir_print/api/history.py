"""Photo history endpoints scoped to the calling identity."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, File, Request, UploadFile

from souvenir_print.api.identity import require_identity
from souvenir_print.api.models import (
    EditPhotoRequest,
    HistoryEntryView,
    MarkPrintedRequest,
)
from souvenir_print.api.uploads import read_validated_upload
from souvenir_print.domain.errors import JobNotCompletedError
from souvenir_print.domain.identity import Identity  # noqa: TC001
from souvenir_print.domain.jobs import PrintJobStatus

if TYPE_CHECKING:
    from souvenir_print.containers import AppContainer

_logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/history", tags=["history"])


@router.get("")
async def list_history(
    request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    """Return the caller's photos, oldest first."""
    container: AppContainer = request.app.state.container
    entries = container.history_service.list(identity.subject)
    return {
        "photos": [
            HistoryEntryView.from_domain(entry).model_dump(by_alias=True, mode="json")
            for entry in entries
        ],
        "currentIndex": len(entries) - 1 if entries else None,
    }


@router.get("/{entry_id}")
async def get_history_entry(
    entry_id: str, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    """Return a single history entry."""
    container: AppContainer = request.app.state.container
    entry = container.history_service.get(identity.subject, entry_id)
    return HistoryEntryView.from_domain(entry).model_dump(by_alias=True, mode="json")


@router.put("/{entry_id}")
async def edit_history_entry(
    entry_id: str,
    body: EditPhotoRequest,
    request: Request,
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Save locally edited bytes for an unprinted photo."""
    container: AppContainer = request.app.state.container
    await container.history_service.edit(identity.subject, entry_id, body.photo_bytes())
    return {"success": True}


@router.post("/{entry_id}/replace")
async def replace_history_entry(
    entry_id: str,
    request: Request,
    photo: UploadFile = File(...),
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Upload a new photo in place of an unprinted one."""
    container: AppContainer = request.app.state.container
    data = await read_validated_upload(photo, container.settings)
    container.history_service.get(identity.subject, entry_id)
    handle = container.photo_store.store(data, photo.content_type or "image/jpeg")
    try:
        previous_handle_id = await container.history_service.replace(
            identity.subject, entry_id, handle.id, data
        )
    except Exception:
        container.photo_store.purge(handle.id)
        raise
    container.photo_store.purge(previous_handle_id)
    _logger.info(
        "Photo replaced: entry_id=%s old=%s new=%s",
        entry_id,
        previous_handle_id,
        handle.id,
    )
    return {"success": True, "handleId": handle.id}


@router.delete("/{entry_id}")
async def delete_history_entry(
    entry_id: str, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    """Delete an unprinted photo from history."""
    container: AppContainer = request.app.state.container
    await container.history_service.delete(identity.subject, entry_id)
    return {"success": True}


@router.post("/{entry_id}/printed")
async def mark_history_entry_printed(
    entry_id: str,
    body: MarkPrintedRequest,
    request: Request,
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Lock an entry against a completed print job."""
    container: AppContainer = request.app.state.container
    job = container.print_job_service.get_status(body.tracking_id)
    if job.status is not PrintJobStatus.COMPLETED:
        raise JobNotCompletedError(
            f"Print job {job.tracking_id} is {job.status.value}",
            tracking_id=job.tracking_id,
        )
    entry = await container.history_service.mark_printed(
        identity.subject,
        entry_id,
        job.tracking_id,
        job.user_info,
        handle_id=job.handle_id,
    )
    return HistoryEntryView.from_domain(entry).model_dump(by_alias=True, mode="json")
