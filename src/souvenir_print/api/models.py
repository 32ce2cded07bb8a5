"""Pydantic models for the HTTP API."""

import base64
import binascii
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from souvenir_print.domain.history import PhotoHistoryEntry
from souvenir_print.domain.jobs import PrintJob, UserInfo


class ApiModel(BaseModel):
    """Base model accepting both camelCase aliases and field names."""

    model_config = ConfigDict(populate_by_name=True)


class UserInfoPayload(ApiModel):
    """User info as submitted by the client."""

    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: str
    location: str

    def to_domain(self) -> UserInfo:
        return UserInfo(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            location=self.location,
        )

    @classmethod
    def from_domain(cls, user_info: UserInfo) -> "UserInfoPayload":
        return cls(
            first_name=user_info.first_name,
            last_name=user_info.last_name,
            email=user_info.email,
            location=user_info.location,
        )


class PrintRequest(ApiModel):
    """Body of a print submission."""

    handle_id: str = Field(alias="handleId")
    user_info: UserInfoPayload = Field(alias="userInfo")
    entry_id: str | None = Field(default=None, alias="entryId")


class MarkPrintedRequest(ApiModel):
    """Body linking a history entry to a completed job."""

    tracking_id: str = Field(alias="trackingId")


class EditPhotoRequest(ApiModel):
    """Body of a history edit carrying base64 image bytes."""

    photo: str

    @field_validator("photo")
    @classmethod
    def _strip_data_url(cls, value: str) -> str:
        if value.startswith("data:") and "," in value:
            value = value.split(",", maxsplit=1)[1]
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("photo must be base64 encoded") from exc
        return value

    def photo_bytes(self) -> bytes:
        return base64.b64decode(self.photo)


class PrintJobView(ApiModel):
    """Print job as returned by status queries."""

    tracking_number: str = Field(serialization_alias="trackingNumber")
    handle_id: str = Field(serialization_alias="handleId")
    user_info: UserInfoPayload = Field(serialization_alias="userInfo")
    status: str
    created_at: datetime = Field(serialization_alias="createdAt")
    completed_at: datetime | None = Field(serialization_alias="completedAt")
    failure_reason: str | None = Field(serialization_alias="failureReason")
    print_reference: str | None = Field(serialization_alias="printReference")

    @classmethod
    def from_domain(cls, job: PrintJob) -> "PrintJobView":
        return cls(
            tracking_number=job.tracking_id,
            handle_id=job.handle_id,
            user_info=UserInfoPayload.from_domain(job.user_info),
            status=job.status.value,
            created_at=job.created_at,
            completed_at=job.completed_at,
            failure_reason=job.failure_reason,
            print_reference=job.print_reference,
        )


class HistoryEntryView(ApiModel):
    """History entry with its preview encoded as base64."""

    id: str
    handle_id: str = Field(serialization_alias="handleId")
    photo: str
    uploaded_at: datetime = Field(serialization_alias="uploadedAt")
    updated_at: datetime | None = Field(serialization_alias="updatedAt")
    printed: bool = Field(serialization_alias="isPrinted")
    tracking_number: str | None = Field(serialization_alias="trackingNumber")
    user_info: UserInfoPayload | None = Field(serialization_alias="userInfo")

    @classmethod
    def from_domain(cls, entry: PhotoHistoryEntry) -> "HistoryEntryView":
        return cls(
            id=entry.id,
            handle_id=entry.handle_id,
            photo=base64.b64encode(entry.photo_bytes).decode("ascii"),
            uploaded_at=entry.uploaded_at,
            updated_at=entry.updated_at,
            printed=entry.printed,
            tracking_number=entry.tracking_id,
            user_info=(
                UserInfoPayload.from_domain(entry.user_info)
                if entry.user_info
                else None
            ),
        )
