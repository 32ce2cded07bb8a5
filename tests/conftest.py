"""Shared test fixtures."""

from dataclasses import dataclass, field

import pytest

from souvenir_print.adapters.memory_repositories import (
    InMemoryHistoryRepository,
    InMemoryPrintJobRepository,
)
from souvenir_print.config import Settings
from souvenir_print.containers import AppContainer
from souvenir_print.domain.errors import NotificationError
from souvenir_print.domain.jobs import PrintOutcome, UserInfo
from souvenir_print.services.history import HistoryService
from souvenir_print.services.photo_store import InMemoryPhotoStore
from souvenir_print.services.print_jobs import Notifier, PrintJobService, PrintSink


@dataclass
class FakePrintSink(PrintSink):
    """Print sink returning queued outcomes, success by default."""

    outcomes: list[PrintOutcome] = field(default_factory=list)
    error: Exception | None = None
    calls: list[tuple[bytes, str, str]] = field(default_factory=list)

    async def print_photo(
        self, data: bytes, content_type: str, recipient_label: str
    ) -> PrintOutcome:
        self.calls.append((data, content_type, recipient_label))
        if self.error is not None:
            raise self.error
        if self.outcomes:
            return self.outcomes.pop(0)
        return PrintOutcome.ok(reference="fake")


@dataclass
class FakeNotifier(Notifier):
    """Notifier recording deliveries, optionally failing."""

    fail: bool = False
    sent: list[tuple[str, str, UserInfo]] = field(default_factory=list)

    async def notify(
        self, recipient_email: str, tracking_id: str, user_info: UserInfo
    ) -> None:
        if self.fail:
            raise NotificationError("mailbox unavailable")
        self.sent.append((recipient_email, tracking_id, user_info))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        storage_backend="memory",
        photo_store_backend="memory",
        print_sink="simulated",
        print_delay_seconds=0,
        sendgrid_api_key=None,
    )


@pytest.fixture
def user_info() -> UserInfo:
    return UserInfo(
        first_name="Ann", last_name="Lee", email="a@x.com", location="Austin"
    )


@pytest.fixture
def photo_store() -> InMemoryPhotoStore:
    return InMemoryPhotoStore()


@pytest.fixture
def job_repository() -> InMemoryPrintJobRepository:
    return InMemoryPrintJobRepository()


@pytest.fixture
def print_sink() -> FakePrintSink:
    return FakePrintSink()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def print_job_service(
    photo_store: InMemoryPhotoStore,
    job_repository: InMemoryPrintJobRepository,
    print_sink: FakePrintSink,
    notifier: FakeNotifier,
) -> PrintJobService:
    return PrintJobService(
        photo_store=photo_store,
        repository=job_repository,
        print_sink=print_sink,
        notifier=notifier,
    )


@pytest.fixture
def history_repository() -> InMemoryHistoryRepository:
    return InMemoryHistoryRepository()


@pytest.fixture
def history_service(history_repository: InMemoryHistoryRepository) -> HistoryService:
    return HistoryService(history_repository)


@pytest.fixture
def container(
    settings: Settings,
    photo_store: InMemoryPhotoStore,
    print_sink: FakePrintSink,
    notifier: FakeNotifier,
    print_job_service: PrintJobService,
    history_service: HistoryService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        photo_store=photo_store,
        print_sink=print_sink,
        notifier=notifier,
        print_job_service=print_job_service,
        history_service=history_service,
        close_resources=close_resources,
    )


@pytest.fixture
def jpeg_bytes() -> bytes:
    return b"\xff\xd8\xff\xe0" + b"\x00" * 64
