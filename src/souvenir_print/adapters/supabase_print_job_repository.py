"""Supabase-backed print job repository."""

from dataclasses import dataclass
from datetime import datetime

from postgrest.exceptions import APIError
from supabase import Client

from souvenir_print.domain.jobs import PrintJob, PrintJobStatus, UserInfo
from souvenir_print.services.print_jobs import PrintJobRepository

_UNIQUE_VIOLATION = "23505"
_COLUMNS = (
    "tracking_id, handle_id, first_name, last_name, email, location, "
    "status, created_at, completed_at, failure_reason, print_reference"
)


@dataclass
class SupabasePrintJobRepository(PrintJobRepository):
    """Supabase implementation for the ``print_jobs`` table."""

    client: Client

    def insert_job(self, job: PrintJob) -> bool:
        """Insert a job row; a duplicate tracking id reports False."""
        try:
            response = (
                self.client.table("print_jobs").insert(_job_to_row(job)).execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                return False
            raise
        if not response.data:
            raise RuntimeError("Failed to create print job")
        return True

    def get_job(self, tracking_id: str) -> PrintJob | None:
        """Return a job by tracking id, if present."""
        response = (
            self.client.table("print_jobs")
            .select(_COLUMNS)
            .eq("tracking_id", tracking_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_job(response.data[0])

    def update_job(self, job: PrintJob) -> None:
        """Persist status, completion time and failure reason."""
        self.client.table("print_jobs").update(
            {
                "status": job.status.value,
                "completed_at": (
                    job.completed_at.isoformat() if job.completed_at else None
                ),
                "failure_reason": job.failure_reason,
                "print_reference": job.print_reference,
            }
        ).eq("tracking_id", job.tracking_id).execute()


def _job_to_row(job: PrintJob) -> dict[str, object]:
    return {
        "tracking_id": job.tracking_id,
        "handle_id": job.handle_id,
        "first_name": job.user_info.first_name,
        "last_name": job.user_info.last_name,
        "email": job.user_info.email,
        "location": job.user_info.location,
        "status": job.status.value,
        "created_at": job.created_at.isoformat(),
        "completed_at": job.completed_at.isoformat() if job.completed_at else None,
        "failure_reason": job.failure_reason,
        "print_reference": job.print_reference,
    }


def _row_to_job(row: dict[str, object]) -> PrintJob:
    completed_at = row.get("completed_at")
    return PrintJob(
        tracking_id=str(row["tracking_id"]),
        handle_id=str(row["handle_id"]),
        user_info=UserInfo(
            first_name=str(row["first_name"]),
            last_name=str(row["last_name"]),
            email=str(row["email"]),
            location=str(row["location"]),
        ),
        status=PrintJobStatus(row["status"]),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        completed_at=(
            datetime.fromisoformat(str(completed_at)) if completed_at else None
        ),
        failure_reason=row.get("failure_reason"),
        print_reference=row.get("print_reference"),
    )
