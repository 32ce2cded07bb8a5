"""Upload validation performed before bytes reach the photo store."""

import logging
from pathlib import PurePath

from fastapi import HTTPException, UploadFile, status

from souvenir_print.config import Settings, parse_allowed_image_types

_logger = logging.getLogger(__name__)


async def read_validated_upload(photo: UploadFile, settings: Settings) -> bytes:
    """Read an uploaded image, rejecting oversized or non-image files."""
    allowed = parse_allowed_image_types(settings.allowed_image_types)
    extension = PurePath(photo.filename or "").suffix.lower().lstrip(".")
    content_type = (photo.content_type or "").lower()
    subtype = content_type.split("/", maxsplit=1)[-1]
    if (
        extension not in allowed
        or not content_type.startswith("image/")
        or subtype not in allowed
    ):
        _logger.info(
            "Upload rejected: filename=%s content_type=%s", photo.filename, content_type
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only image files are allowed!",
        )
    data = await photo.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        _logger.info("Upload rejected: %s exceeds size limit", photo.filename)
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {settings.max_upload_bytes} bytes",
        )
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded"
        )
    return data
