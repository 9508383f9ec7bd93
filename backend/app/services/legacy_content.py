"""Legacy Content — standalone images and memes outside of any game.

Invariants:
    - Every image and meme created here has game_id NULL
    - A legacy meme may only caption a standalone image
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.errors import InvalidStateError, ResourceNotFoundError
from app.core.repository_protocols import BlobStore
from app.models.image import Image
from app.models.meme import Meme
from app.services.image_intake import store_image

logger = logging.getLogger(__name__)


class LegacyContentService:
    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    async def upload_image(
        self,
        blob_store: BlobStore,
        data: bytes,
        filename: str | None,
        title: str | None,
        origin: str | None,
    ) -> Image:
        return await store_image(
            self.db, blob_store, data, filename, title, origin,
            max_bytes=self.settings.max_upload_bytes,
        )

    async def list_images(self, limit: int = 50, offset: int = 0) -> list[Image]:
        result = await self.db.execute(
            select(Image).where(Image.game_id.is_(None))
            .order_by(Image.created_at.desc())
            .limit(limit).offset(offset),
        )
        return list(result.scalars().all())

    async def get_image(self, image_id: UUID) -> Image:
        image = await self.db.get(Image, image_id)
        if not image:
            raise ResourceNotFoundError("Image", str(image_id))
        return image

    async def create_meme(
        self,
        image_id: UUID,
        top_text: str,
        bottom_text: str,
        font_type: str,
        creator: str | None,
        origin: str | None,
    ) -> Meme:
        image = await self.get_image(image_id)
        if image.game_id is not None:
            raise InvalidStateError(
                "Images that belong to a game can only be captioned inside the game",
            )
        meme = Meme(
            image=image,
            top_text=top_text,
            bottom_text=bottom_text,
            font_type=font_type,
            creator=creator,
            ip_address=origin,
        )
        self.db.add(meme)
        await self.db.commit()
        logger.info("Standalone meme created", extra={"meme_id": str(meme.id)})
        return meme

    async def get_meme(self, meme_id: UUID) -> Meme:
        meme = await self.db.get(Meme, meme_id)
        if not meme:
            raise ResourceNotFoundError("Meme", str(meme_id))
        return meme
