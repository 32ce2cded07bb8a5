"""In-memory repositories for local runs and tests."""

from dataclasses import dataclass, field

from souvenir_print.domain.history import PhotoHistoryEntry
from souvenir_print.domain.jobs import PrintJob
from souvenir_print.services.history import HistoryRepository
from souvenir_print.services.print_jobs import PrintJobRepository


@dataclass
class InMemoryPrintJobRepository(PrintJobRepository):
    """Job table kept in a dict keyed by tracking id."""

    jobs: dict[str, PrintJob] = field(default_factory=dict)

    def insert_job(self, job: PrintJob) -> bool:
        if job.tracking_id in self.jobs:
            return False
        self.jobs[job.tracking_id] = job
        return True

    def get_job(self, tracking_id: str) -> PrintJob | None:
        return self.jobs.get(tracking_id)

    def update_job(self, job: PrintJob) -> None:
        self.jobs[job.tracking_id] = job


@dataclass
class InMemoryHistoryRepository(HistoryRepository):
    """Per-owner ordered entry lists."""

    entries: dict[str, dict[str, PhotoHistoryEntry]] = field(default_factory=dict)

    def list_entries(self, owner: str) -> list[PhotoHistoryEntry]:
        return list(self.entries.get(owner, {}).values())

    def get_entry(self, owner: str, entry_id: str) -> PhotoHistoryEntry | None:
        return self.entries.get(owner, {}).get(entry_id)

    def add_entry(self, owner: str, entry: PhotoHistoryEntry) -> None:
        self.entries.setdefault(owner, {})[entry.id] = entry

    def save_entry(self, owner: str, entry: PhotoHistoryEntry) -> None:
        owned = self.entries.get(owner, {})
        if entry.id in owned:
            owned[entry.id] = entry

    def delete_entry(self, owner: str, entry_id: str) -> None:
        self.entries.get(owner, {}).pop(entry_id, None)

    def find_entry_by_handle(self, handle_id: str) -> PhotoHistoryEntry | None:
        for owned in self.entries.values():
            for entry in owned.values():
                if entry.handle_id == handle_id:
                    return entry
        return None
