"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import Client, create_client

from souvenir_print.adapters.cups_print_sink import CupsPrintSink
from souvenir_print.adapters.filesystem_photo_store import FilesystemPhotoStore
from souvenir_print.adapters.http_print_sink import HttpxPrintSink
from souvenir_print.adapters.logging_notifier import LoggingNotifier
from souvenir_print.adapters.memory_repositories import (
    InMemoryHistoryRepository,
    InMemoryPrintJobRepository,
)
from souvenir_print.adapters.sendgrid_notifier import HttpxSendGridNotifier
from souvenir_print.adapters.simulated_print_sink import SimulatedPrintSink
from souvenir_print.adapters.supabase_history_repository import (
    SupabaseHistoryRepository,
)
from souvenir_print.adapters.supabase_photo_store import SupabasePhotoStore
from souvenir_print.adapters.supabase_print_job_repository import (
    SupabasePrintJobRepository,
)
from souvenir_print.config import Settings
from souvenir_print.services.history import HistoryRepository, HistoryService
from souvenir_print.services.photo_store import InMemoryPhotoStore, PhotoStore
from souvenir_print.services.print_jobs import (
    Notifier,
    PrintJobRepository,
    PrintJobService,
    PrintSink,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    photo_store: PhotoStore
    print_sink: PrintSink
    notifier: Notifier
    print_job_service: PrintJobService
    history_service: HistoryService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = _supabase_client(resolved_settings)
    photo_store = _photo_store(resolved_settings, supabase_client)
    job_repository: PrintJobRepository
    history_repository: HistoryRepository
    if resolved_settings.storage_backend == "supabase":
        job_repository = SupabasePrintJobRepository(supabase_client)
        history_repository = SupabaseHistoryRepository(supabase_client)
    elif resolved_settings.storage_backend == "memory":
        job_repository = InMemoryPrintJobRepository()
        history_repository = InMemoryHistoryRepository()
    else:
        raise ValueError(
            f"Unknown storage backend: {resolved_settings.storage_backend}"
        )

    print_sink = _print_sink(resolved_settings)
    notifier: Notifier
    if resolved_settings.sendgrid_api_key:
        notifier = HttpxSendGridNotifier.create(
            api_key=resolved_settings.sendgrid_api_key,
            from_email=resolved_settings.sendgrid_from_email,
        )
    else:
        notifier = LoggingNotifier()

    print_job_service = PrintJobService(
        photo_store=photo_store,
        repository=job_repository,
        print_sink=print_sink,
        notifier=notifier,
    )
    history_service = HistoryService(history_repository)

    async def close_resources() -> None:
        if isinstance(print_sink, HttpxPrintSink):
            await print_sink.close()
        if isinstance(notifier, HttpxSendGridNotifier):
            await notifier.close()

    return AppContainer(
        settings=resolved_settings,
        photo_store=photo_store,
        print_sink=print_sink,
        notifier=notifier,
        print_job_service=print_job_service,
        history_service=history_service,
        close_resources=close_resources,
    )


def _supabase_client(settings: Settings) -> Client | None:
    if not settings.uses_supabase:
        return None
    if not settings.supabase_url or not settings.supabase_service_key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY are required")
    return create_client(settings.supabase_url, settings.supabase_service_key)


def _photo_store(settings: Settings, client: Client | None) -> PhotoStore:
    backend = settings.photo_store_backend
    if backend == "memory":
        return InMemoryPhotoStore()
    if backend == "filesystem":
        return FilesystemPhotoStore(Path(settings.upload_dir))
    if backend == "supabase" and client is not None:
        return SupabasePhotoStore(client, bucket=settings.supabase_photo_bucket)
    raise ValueError(f"Unknown photo store backend: {backend}")


def _print_sink(settings: Settings) -> PrintSink:
    if settings.print_sink == "simulated":
        return SimulatedPrintSink(delay_seconds=settings.print_delay_seconds)
    if settings.print_sink == "cups":
        return CupsPrintSink(
            printer_name=settings.printer_name,
            timeout_seconds=settings.print_timeout_seconds,
        )
    if settings.print_sink == "http":
        if not settings.cloud_print_url:
            raise ValueError("CLOUD_PRINT_URL is required for the http print sink")
        return HttpxPrintSink.create(
            url=settings.cloud_print_url,
            token=settings.cloud_print_token,
            printer_id=settings.printer_name,
            timeout_seconds=settings.print_timeout_seconds,
        )
    raise ValueError(f"Unknown print sink: {settings.print_sink}")
