"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from souvenir_print.api.history import router as history_router
from souvenir_print.api.identity import require_identity
from souvenir_print.api.models import PrintJobView, PrintRequest
from souvenir_print.api.uploads import read_validated_upload
from souvenir_print.app_logging import configure_logging
from souvenir_print.config import parse_csv
from souvenir_print.containers import AppContainer
from souvenir_print.domain.errors import (
    AlreadyPrintedError,
    HandleConflictError,
    ImmutableEntryError,
    InvalidHandleError,
    InvalidUserInfoError,
    JobNotCompletedError,
    NotFoundError,
    SouvenirError,
)
from souvenir_print.domain.identity import Identity
from souvenir_print.domain.jobs import PrintJob
from souvenir_print.services.history import HistoryService
from souvenir_print.services.print_jobs import CompletionHook
from souvenir_print.services.tracking import is_tracking_id

_logger = logging.getLogger(__name__)

_STATUS_CODES: dict[type[SouvenirError], int] = {
    InvalidUserInfoError: 400,
    InvalidHandleError: 404,
    NotFoundError: 404,
    ImmutableEntryError: 409,
    AlreadyPrintedError: 409,
    JobNotCompletedError: 409,
    HandleConflictError: 409,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        state_container: AppContainer = app.state.container
        pending = state_container.print_job_service.pending
        if pending:
            _logger.info("Waiting for %s print job(s) to finish", pending)
        await state_container.print_job_service.drain()
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    origins = parse_csv(container.settings.cors_allow_origins)
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(SouvenirError)
    async def souvenir_error_handler(
        request: Request, exc: SouvenirError
    ) -> JSONResponse:
        return JSONResponse(status_code=_status_code(exc), content=exc.to_dict())

    app.include_router(history_router)

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok", "message": "Server is running"}

    @app.post("/api/upload")
    async def upload_photo(
        request: Request,
        photo: UploadFile = File(...),
        identity: Identity = Depends(require_identity),
    ) -> dict[str, object]:
        """Store an uploaded photo and add it to the caller's history."""
        state_container: AppContainer = request.app.state.container
        data = await read_validated_upload(photo, state_container.settings)
        handle = state_container.photo_store.store(
            data, photo.content_type or "image/jpeg"
        )
        entry_id = state_container.history_service.record_upload(
            identity.subject, handle.id, data
        )
        _logger.info(
            "Photo uploaded: handle_id=%s entry_id=%s size=%s",
            handle.id,
            entry_id,
            handle.byte_length,
        )
        return {
            "success": True,
            "file": {
                "handleId": handle.id,
                "originalName": photo.filename,
                "size": handle.byte_length,
                "mimetype": handle.content_type,
                "uploadedAt": handle.created_at.isoformat(),
            },
            "entryId": entry_id,
            "message": "Photo uploaded successfully",
        }

    @app.post("/api/print")
    async def print_photo(
        body: PrintRequest,
        request: Request,
        identity: Identity = Depends(require_identity),
    ) -> dict[str, object]:
        """Start a print job for an uploaded photo."""
        state_container: AppContainer = request.app.state.container
        on_completed = None
        if body.entry_id:
            entry = state_container.history_service.get(identity.subject, body.entry_id)
            if entry.handle_id != body.handle_id:
                raise InvalidHandleError(
                    f"Photo {body.handle_id} does not belong to entry {entry.id}",
                    handle_id=body.handle_id,
                    entry_id=entry.id,
                )
            on_completed = _lock_history_entry(
                state_container.history_service, identity.subject, body.entry_id
            )
        tracking_id = state_container.print_job_service.submit(
            body.handle_id, body.user_info.to_domain(), on_completed=on_completed
        )
        job = state_container.print_job_service.get_status(tracking_id)
        return {
            "success": True,
            "trackingNumber": tracking_id,
            "message": "Print job started",
            "printJob": PrintJobView.from_domain(job).model_dump(
                by_alias=True, mode="json"
            ),
        }

    @app.get("/api/print-job/{tracking_id}")
    async def print_job_status(
        tracking_id: str, request: Request
    ) -> dict[str, object]:
        """Return the status of a print job."""
        state_container: AppContainer = request.app.state.container
        normalized = tracking_id.strip().upper()
        if not is_tracking_id(normalized):
            raise NotFoundError(
                f"Print job {tracking_id} not found", tracking_id=tracking_id
            )
        job = state_container.print_job_service.get_status(normalized)
        return {
            "success": True,
            "printJob": PrintJobView.from_domain(job).model_dump(
                by_alias=True, mode="json"
            ),
        }

    return app


def _status_code(exc: SouvenirError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in _STATUS_CODES:
            return _STATUS_CODES[error_type]
    return 500


def _lock_history_entry(
    history_service: HistoryService, owner: str, entry_id: str
) -> CompletionHook:
    """Build a completion hook that marks the history entry as printed.

    The entry is only locked if it still holds the photo the job printed.
    """

    async def hook(job: PrintJob) -> None:
        try:
            await history_service.mark_printed(
                owner,
                entry_id,
                job.tracking_id,
                job.user_info,
                handle_id=job.handle_id,
            )
        except AlreadyPrintedError:
            _logger.info("History entry %s was already marked printed", entry_id)
        except HandleConflictError:
            _logger.warning(
                "History entry %s was replaced while %s printed; left unlocked",
                entry_id,
                job.tracking_id,
            )
        except NotFoundError:
            _logger.info(
                "History entry %s was deleted before %s completed",
                entry_id,
                job.tracking_id,
            )

    return hook
