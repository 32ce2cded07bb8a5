"""Print job lifecycle: submission, background printing and status queries."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Protocol

from souvenir_print.domain.errors import (
    InvalidHandleError,
    InvalidUserInfoError,
    NotFoundError,
    PrintSinkError,
)
from souvenir_print.domain.jobs import (
    PrintAttempt,
    PrintJob,
    PrintJobStatus,
    PrintOutcome,
    UserInfo,
)
from souvenir_print.services.locks import KeyedLocks
from souvenir_print.services.photo_store import PhotoStore
from souvenir_print.services.tracking import generate_tracking_id

_logger = logging.getLogger(__name__)

CompletionHook = Callable[[PrintJob], Awaitable[None]]


class PrintJobRepository(Protocol):
    """Persistence interface for print jobs."""

    def insert_job(self, job: PrintJob) -> bool:
        """Insert a job unless its tracking id exists; return whether inserted."""

    def get_job(self, tracking_id: str) -> PrintJob | None:
        """Return a job by tracking id, if present."""

    def update_job(self, job: PrintJob) -> None:
        """Persist a job's status fields."""


class PrintSink(Protocol):
    """Backend that turns photo bytes into a physical print."""

    async def print_photo(
        self, data: bytes, content_type: str, recipient_label: str
    ) -> PrintOutcome:
        """Attempt to print and report the outcome.

        Sinks report ordinary print failures as a failed outcome and may raise
        PrintSinkError when the backend cannot take jobs at all.
        """


class Notifier(Protocol):
    """Delivers print completion notices."""

    async def notify(
        self, recipient_email: str, tracking_id: str, user_info: UserInfo
    ) -> None:
        """Send a completion notice; raise NotificationError on failure."""


@dataclass
class PrintJobService:
    """Creates print jobs and drives them to a terminal state."""

    photo_store: PhotoStore
    repository: PrintJobRepository
    print_sink: PrintSink
    notifier: Notifier
    tracking_id_factory: Callable[[], str] = generate_tracking_id
    max_id_attempts: int = 16
    locks: KeyedLocks = field(default_factory=KeyedLocks)
    _tasks: set[asyncio.Task[PrintAttempt]] = field(
        default_factory=set, init=False, repr=False
    )

    def submit(
        self,
        handle_id: str,
        user_info: UserInfo,
        on_completed: CompletionHook | None = None,
    ) -> str:
        """Accept a print request and return its tracking id.

        The print attempt runs as a background task on the running event
        loop; the caller never waits for the physical print.
        """
        missing = user_info.missing_fields()
        if missing:
            raise InvalidUserInfoError(
                f"Missing required fields: {', '.join(missing)}", fields=missing
            )
        try:
            handle = self.photo_store.describe(handle_id)
            data = self.photo_store.retrieve(handle_id)
        except NotFoundError as exc:
            raise InvalidHandleError(
                f"Photo {handle_id} is not available", handle_id=handle_id
            ) from exc

        job = self._create_job(handle_id, user_info)
        _logger.info(
            "Print job accepted: tracking_id=%s handle_id=%s",
            job.tracking_id,
            handle_id,
        )
        task = asyncio.get_running_loop().create_task(
            self._run(job, data, handle.content_type, on_completed),
            name=f"print-{job.tracking_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return job.tracking_id

    def get_status(self, tracking_id: str) -> PrintJob:
        """Return the current job record."""
        job = self.repository.get_job(tracking_id)
        if job is None:
            raise NotFoundError(
                f"Print job {tracking_id} not found", tracking_id=tracking_id
            )
        return job

    async def drain(self) -> list[PrintAttempt]:
        """Wait for every in-flight print attempt and return the outcomes."""
        attempts: list[PrintAttempt] = []
        while self._tasks:
            tasks = list(self._tasks)
            results = await asyncio.gather(*tasks, return_exceptions=True)
            self._tasks.difference_update(tasks)
            attempts.extend(
                result for result in results if isinstance(result, PrintAttempt)
            )
        return attempts

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _on_task_done(self, task: asyncio.Task[PrintAttempt]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Print attempt %s crashed", task.get_name(), exc_info=exc)

    def _create_job(self, handle_id: str, user_info: UserInfo) -> PrintJob:
        snapshot = replace(user_info)
        for _ in range(self.max_id_attempts):
            job = PrintJob(
                tracking_id=self.tracking_id_factory(),
                handle_id=handle_id,
                user_info=snapshot,
                status=PrintJobStatus.PRINTING,
                created_at=datetime.now(tz=UTC),
            )
            if self.repository.insert_job(job):
                return job
            _logger.warning("Tracking id collision: %s", job.tracking_id)
        raise RuntimeError("Could not allocate a unique tracking id")

    async def _run(
        self,
        job: PrintJob,
        data: bytes,
        content_type: str,
        on_completed: CompletionHook | None,
    ) -> PrintAttempt:
        try:
            outcome = await self.print_sink.print_photo(
                data, content_type, job.user_info.full_name
            )
        except PrintSinkError as exc:
            _logger.warning("Print sink unavailable for %s: %s", job.tracking_id, exc)
            outcome = PrintOutcome.failed(str(exc))
        except Exception as exc:
            _logger.exception("Print sink raised for %s", job.tracking_id)
            outcome = PrintOutcome.failed(f"{type(exc).__name__}: {exc}")

        if not outcome.success:
            failed = await self._finish(
                job.tracking_id,
                PrintJobStatus.FAILED,
                outcome.reason or "print failed",
            )
            return PrintAttempt(job=failed)

        completed = await self._finish(
            job.tracking_id, PrintJobStatus.COMPLETED, reference=outcome.reference
        )
        if completed.status is not PrintJobStatus.COMPLETED:
            return PrintAttempt(job=completed)
        attempt = PrintAttempt(
            job=completed,
            purge_error=self._purge(completed),
            notification_error=await self._notify(completed),
        )
        if on_completed is not None:
            try:
                await on_completed(completed)
            except Exception:
                _logger.exception(
                    "Completion hook failed for %s", completed.tracking_id
                )
        return attempt

    async def _finish(
        self,
        tracking_id: str,
        status: PrintJobStatus,
        reason: str | None = None,
        reference: str | None = None,
    ) -> PrintJob:
        async with self.locks.hold(tracking_id):
            current = self.get_status(tracking_id)
            if current.is_terminal:
                return current
            finished = replace(
                current,
                status=status,
                completed_at=datetime.now(tz=UTC),
                failure_reason=reason,
                print_reference=reference,
            )
            self.repository.update_job(finished)
        if status is PrintJobStatus.FAILED:
            _logger.warning(
                "Print job failed: tracking_id=%s reason=%s", tracking_id, reason
            )
        else:
            _logger.info(
                "Print job completed: tracking_id=%s reference=%s",
                tracking_id,
                reference,
            )
        return finished

    def _purge(self, job: PrintJob) -> str | None:
        try:
            self.photo_store.purge(job.handle_id)
        except Exception as exc:
            _logger.exception(
                "Failed to purge photo %s for %s", job.handle_id, job.tracking_id
            )
            return f"{type(exc).__name__}: {exc}"
        return None

    async def _notify(self, job: PrintJob) -> str | None:
        try:
            await self.notifier.notify(
                job.user_info.email, job.tracking_id, job.user_info
            )
        except Exception as exc:
            _logger.warning(
                "Notification failed for %s: %s", job.tracking_id, exc
            )
            return f"{type(exc).__name__}: {exc}"
        _logger.info(
            "Notification sent: tracking_id=%s email=%s",
            job.tracking_id,
            job.user_info.email,
        )
        return None
