"""Image Intake — validates an uploaded file, stores the blob, records the Image row.

Invariants:
    - Only .jpg/.jpeg/.png/.gif accepted (case-insensitive), empty files rejected
    - Blob written BEFORE the row; if the row insert fails the blob is deleted again
    - A blob that outlives a crash between the two steps is reclaimed by the orphan
      sweep once past its grace period

Design Decisions:
    - Shared by game uploads and legacy uploads: one validation path
    - Size limit enforced on the bytes actually read, not on client headers
"""

import logging
from pathlib import PurePath
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import DEFAULT_IMAGE_TITLE, IMAGE_EXTENSIONS
from app.core.errors import InputValidationError
from app.core.repository_protocols import BlobStore
from app.models.image import Image

logger = logging.getLogger(__name__)


def image_suffix(filename: str | None) -> str:
    suffix = PurePath(filename or "").suffix.lower()
    if suffix not in IMAGE_EXTENSIONS:
        raise InputValidationError(
            "Only image files (jpg, jpeg, png, gif) are allowed", "image",
        )
    return suffix


async def store_image(
    db: AsyncSession,
    blob_store: BlobStore,
    data: bytes,
    filename: str | None,
    title: str | None,
    origin: str | None,
    max_bytes: int,
    game_id: UUID | None = None,
) -> Image:
    suffix = image_suffix(filename)
    if not data:
        raise InputValidationError("Uploaded image is empty", "image")
    if len(data) > max_bytes:
        raise InputValidationError(
            f"Image exceeds the {max_bytes // (1024 * 1024)} MB upload limit", "image",
        )

    key = await blob_store.save(data, suffix)
    image = Image(
        title=(title or "").strip() or DEFAULT_IMAGE_TITLE,
        image_path=key,
        ip_address=origin,
        game_id=game_id,
    )
    db.add(image)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        await blob_store.delete(key)
        raise
    logger.info(
        "Image stored",
        extra={"image_id": str(image.id), "game_id": game_id, "blob_key": key},
    )
    return image
