"""Tests for the HTTP API."""

import asyncio
import base64
import threading
from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient

from souvenir_print.api.app import create_app
from souvenir_print.domain.errors import NotFoundError
from souvenir_print.domain.jobs import (
    PrintJob,
    PrintJobStatus,
    PrintOutcome,
    UserInfo,
)

HEADERS = {"X-User-Id": "user-1"}
USER_INFO = {
    "firstName": "Ann",
    "lastName": "Lee",
    "email": "a@x.com",
    "location": "Austin",
}


class GatedPrintSink:
    """Holds every print until the test releases it."""

    def __init__(self) -> None:
        self.release = threading.Event()
        self.started = threading.Event()

    async def print_photo(
        self, data: bytes, content_type: str, recipient_label: str
    ) -> PrintOutcome:
        self.started.set()
        while not self.release.is_set():
            await asyncio.sleep(0.01)
        return PrintOutcome.ok(reference="gated")


def _upload(client: TestClient, data: bytes) -> dict:
    response = client.post(
        "/api/upload",
        files={"photo": ("photo.jpg", data, "image/jpeg")},
        headers=HEADERS,
    )
    assert response.status_code == 200
    return response.json()


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "Server is running"}


def test_upload_stores_photo_and_records_history(
    container, jpeg_bytes: bytes
) -> None:
    with TestClient(create_app(container)) as client:
        body = _upload(client, jpeg_bytes)

    handle_id = body["file"]["handleId"]
    assert body["success"] is True
    assert body["file"]["size"] == len(jpeg_bytes)
    assert body["file"]["mimetype"] == "image/jpeg"
    assert container.photo_store.retrieve(handle_id) == jpeg_bytes
    entry = container.history_service.get("user-1", body["entryId"])
    assert entry.handle_id == handle_id
    assert entry.printed is False


@pytest.mark.parametrize(
    ("filename", "content_type"),
    [("notes.txt", "text/plain"), ("photo.bmp", "image/bmp"), ("photo", "image/png")],
)
def test_upload_rejects_non_images(
    container, jpeg_bytes: bytes, filename: str, content_type: str
) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/api/upload",
        files={"photo": (filename, jpeg_bytes, content_type)},
        headers=HEADERS,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Only image files are allowed!"


def test_upload_rejects_oversized_file(container, jpeg_bytes: bytes) -> None:
    container.settings.max_upload_bytes = 16
    client = TestClient(create_app(container))

    response = client.post(
        "/api/upload",
        files={"photo": ("photo.jpg", jpeg_bytes, "image/jpeg")},
        headers=HEADERS,
    )

    assert response.status_code == 413


def test_upload_requires_identity(container, jpeg_bytes: bytes) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/api/upload", files={"photo": ("photo.jpg", jpeg_bytes, "image/jpeg")}
    )

    assert response.status_code == 401


def test_print_flow_completes_job_and_locks_history(
    container, notifier, jpeg_bytes: bytes
) -> None:
    with TestClient(create_app(container)) as client:
        uploaded = _upload(client, jpeg_bytes)
        response = client.post(
            "/api/print",
            json={
                "handleId": uploaded["file"]["handleId"],
                "userInfo": USER_INFO,
                "entryId": uploaded["entryId"],
            },
            headers=HEADERS,
        )
        body = response.json()

    tracking_id = body["trackingNumber"]
    assert response.status_code == 200
    assert body["printJob"]["status"] in {"printing", "completed"}
    assert body["printJob"]["userInfo"]["firstName"] == "Ann"
    job = container.print_job_service.get_status(tracking_id)
    assert job.status is PrintJobStatus.COMPLETED
    entry = container.history_service.get("user-1", uploaded["entryId"])
    assert entry.printed is True
    assert entry.tracking_id == tracking_id
    assert [sent[1] for sent in notifier.sent] == [tracking_id]
    with pytest.raises(NotFoundError):
        container.photo_store.retrieve(uploaded["file"]["handleId"])

    with TestClient(create_app(container)) as client:
        status = client.get(f"/api/print-job/{tracking_id.lower()}")

    assert status.status_code == 200
    assert status.json()["printJob"]["status"] == "completed"
    assert status.json()["printJob"]["completedAt"] is not None


def test_print_with_blank_location_is_rejected(
    container, job_repository, jpeg_bytes: bytes
) -> None:
    with TestClient(create_app(container)) as client:
        uploaded = _upload(client, jpeg_bytes)
        response = client.post(
            "/api/print",
            json={
                "handleId": uploaded["file"]["handleId"],
                "userInfo": {**USER_INFO, "location": " "},
            },
            headers=HEADERS,
        )

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_USER_INFO"
    assert response.json()["fields"] == ["location"]
    assert job_repository.jobs == {}


def test_print_unknown_handle_is_not_found(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/api/print",
        json={"handleId": "photo-missing", "userInfo": USER_INFO},
        headers=HEADERS,
    )

    assert response.status_code == 404
    assert response.json()["error"] == "INVALID_HANDLE"


def test_print_rejects_handle_from_other_entry(container, jpeg_bytes: bytes) -> None:
    with TestClient(create_app(container)) as client:
        first = _upload(client, jpeg_bytes)
        second = _upload(client, jpeg_bytes)
        response = client.post(
            "/api/print",
            json={
                "handleId": second["file"]["handleId"],
                "userInfo": USER_INFO,
                "entryId": first["entryId"],
            },
            headers=HEADERS,
        )

    assert response.status_code == 404
    assert response.json()["error"] == "INVALID_HANDLE"


def test_unknown_tracking_id_is_not_found(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/api/print-job/ZZZZZZZZ")

    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


def test_history_list_edit_and_delete(container, jpeg_bytes: bytes) -> None:
    with TestClient(create_app(container)) as client:
        first = _upload(client, jpeg_bytes)
        second = _upload(client, b"\xff\xd8second")
        edited = client.put(
            f"/api/history/{first['entryId']}",
            json={
                "photo": "data:image/jpeg;base64,"
                + base64.b64encode(b"edited").decode()
            },
            headers=HEADERS,
        )
        listing = client.get("/api/history", headers=HEADERS).json()
        deleted = client.delete(f"/api/history/{second['entryId']}", headers=HEADERS)
        after_delete = client.get("/api/history", headers=HEADERS).json()
        other_owner = client.get("/api/history", headers={"X-User-Id": "user-2"})

    assert edited.status_code == 200
    assert [photo["id"] for photo in listing["photos"]] == [
        first["entryId"],
        second["entryId"],
    ]
    assert listing["currentIndex"] == 1
    assert base64.b64decode(listing["photos"][0]["photo"]) == b"edited"
    assert listing["photos"][0]["isPrinted"] is False
    assert deleted.status_code == 200
    assert [photo["id"] for photo in after_delete["photos"]] == [first["entryId"]]
    assert other_owner.json() == {"photos": [], "currentIndex": None}


def test_edit_of_printed_entry_conflicts(
    container, user_info: UserInfo, jpeg_bytes: bytes
) -> None:
    with TestClient(create_app(container)) as client:
        uploaded = _upload(client, jpeg_bytes)

    asyncio.run(
        container.history_service.mark_printed(
            "user-1", uploaded["entryId"], "ABCD1234", user_info
        )
    )

    with TestClient(create_app(container)) as client:
        edited = client.put(
            f"/api/history/{uploaded['entryId']}",
            json={"photo": base64.b64encode(b"edited").decode()},
            headers=HEADERS,
        )
        deleted = client.delete(
            f"/api/history/{uploaded['entryId']}", headers=HEADERS
        )

    assert edited.status_code == 409
    assert edited.json()["error"] == "IMMUTABLE"
    assert deleted.status_code == 409


def test_replace_swaps_photo_and_purges_old_handle(
    container, jpeg_bytes: bytes
) -> None:
    with TestClient(create_app(container)) as client:
        uploaded = _upload(client, jpeg_bytes)
        response = client.post(
            f"/api/history/{uploaded['entryId']}/replace",
            files={"photo": ("new.png", b"\x89PNGnew", "image/png")},
            headers=HEADERS,
        )

    new_handle_id = response.json()["handleId"]
    assert response.status_code == 200
    assert new_handle_id != uploaded["file"]["handleId"]
    assert container.photo_store.retrieve(new_handle_id) == b"\x89PNGnew"
    with pytest.raises(NotFoundError):
        container.photo_store.retrieve(uploaded["file"]["handleId"])
    entry = container.history_service.get("user-1", uploaded["entryId"])
    assert entry.handle_id == new_handle_id
    assert entry.updated_at is not None


def test_mark_printed_endpoint_requires_completed_job(
    container, job_repository, jpeg_bytes: bytes
) -> None:
    with TestClient(create_app(container)) as client:
        uploaded = _upload(client, jpeg_bytes)
        printed = client.post(
            "/api/print",
            json={"handleId": uploaded["file"]["handleId"], "userInfo": USER_INFO},
            headers=HEADERS,
        ).json()

    job_repository.insert_job(
        PrintJob(
            tracking_id="PENDING1",
            handle_id="photo-other",
            user_info=UserInfo("Ann", "Lee", "a@x.com", "Austin"),
            status=PrintJobStatus.PRINTING,
            created_at=datetime.now(UTC),
        )
    )

    with TestClient(create_app(container)) as client:
        premature = client.post(
            f"/api/history/{uploaded['entryId']}/printed",
            json={"trackingId": "PENDING1"},
            headers=HEADERS,
        )
        marked = client.post(
            f"/api/history/{uploaded['entryId']}/printed",
            json={"trackingId": printed["trackingNumber"]},
            headers=HEADERS,
        )
        again = client.post(
            f"/api/history/{uploaded['entryId']}/printed",
            json={"trackingId": printed["trackingNumber"]},
            headers=HEADERS,
        )

    assert premature.status_code == 409
    assert premature.json()["error"] == "JOB_NOT_COMPLETED"
    assert marked.status_code == 200
    assert marked.json()["isPrinted"] is True
    assert marked.json()["trackingNumber"] == printed["trackingNumber"]
    assert marked.json()["userInfo"]["location"] == "Austin"
    assert again.status_code == 409
    assert again.json()["error"] == "ALREADY_PRINTED"


def test_unknown_tracking_code_format_is_not_found(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/api/print-job/not-a-code")

    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


def test_replace_during_print_leaves_entry_unlocked(
    container, jpeg_bytes: bytes
) -> None:
    sink = GatedPrintSink()
    container.print_job_service.print_sink = sink

    with TestClient(create_app(container)) as client:
        uploaded = _upload(client, jpeg_bytes)
        printed = client.post(
            "/api/print",
            json={
                "handleId": uploaded["file"]["handleId"],
                "userInfo": USER_INFO,
                "entryId": uploaded["entryId"],
            },
            headers=HEADERS,
        ).json()
        assert sink.started.wait(timeout=5)
        replaced = client.post(
            f"/api/history/{uploaded['entryId']}/replace",
            files={"photo": ("new.png", b"\x89PNGnew", "image/png")},
            headers=HEADERS,
        ).json()
        sink.release.set()

    job = container.print_job_service.get_status(printed["trackingNumber"])
    entry = container.history_service.get("user-1", uploaded["entryId"])
    assert job.status is PrintJobStatus.COMPLETED
    assert job.handle_id == uploaded["file"]["handleId"]
    assert entry.handle_id == replaced["handleId"]
    assert entry.printed is False
    assert entry.tracking_id is None
    assert container.photo_store.retrieve(replaced["handleId"]) == b"\x89PNGnew"


def test_mark_printed_rejects_job_for_another_photo(
    container, jpeg_bytes: bytes
) -> None:
    with TestClient(create_app(container)) as client:
        uploaded = _upload(client, jpeg_bytes)
        printed = client.post(
            "/api/print",
            json={"handleId": uploaded["file"]["handleId"], "userInfo": USER_INFO},
            headers=HEADERS,
        ).json()

    other_headers = {"X-User-Id": "user-2"}
    with TestClient(create_app(container)) as client:
        other = client.post(
            "/api/upload",
            files={"photo": ("mine.jpg", jpeg_bytes, "image/jpeg")},
            headers=other_headers,
        ).json()
        response = client.post(
            f"/api/history/{other['entryId']}/printed",
            json={"trackingId": printed["trackingNumber"]},
            headers=other_headers,
        )

    assert response.status_code == 409
    assert response.json()["error"] == "HANDLE_CONFLICT"
    assert "a@x.com" not in response.text
    entry = container.history_service.get("user-2", other["entryId"])
    assert entry.printed is False
    assert entry.user_info is None
    assert container.photo_store.retrieve(other["file"]["handleId"]) == jpeg_bytes
