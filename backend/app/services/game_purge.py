"""Game Purge — cascading delete of one game and everything it owns.

Invariants:
    - Blobs deleted first, then votes -> memes -> images -> game rows in ONE transaction
    - A blob that is already gone counts as missing, never as a failure
    - A blob delete error is counted and logged; row deletion still proceeds
    - Re-running a purge that crashed midway is safe (blobs idempotent, rows transactional)

Design Decisions:
    - Shared by the retention sweeper and the admin delete endpoint (one cascade definition)
    - Bulk DELETE statements with synchronize_session=False: purged rows are never read again
      in the same session
    - Rows are removed even when some blob deletions failed: the orphan sweep reclaims
      any file left behind
"""

import logging
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import BlobStorageError, ResourceNotFoundError, ErrorContext
from app.core.repository_protocols import BlobStore
from app.core.retention import PurgeResult
from app.models.game import Game
from app.models.image import Image
from app.models.meme import Meme
from app.models.vote import Vote

logger = logging.getLogger(__name__)


async def purge_game(
    db: AsyncSession, blob_store: BlobStore, game_id: UUID,
) -> PurgeResult:
    """Delete a game, its images (blobs + rows), memes, votes and roster."""
    game = await db.get(Game, game_id)
    if not game:
        raise ResourceNotFoundError(
            "Game", str(game_id), ErrorContext(game_id=str(game_id)),
        )

    result = PurgeResult(game_id=str(game_id))
    images = (await db.execute(
        select(Image).where(Image.game_id == game_id),
    )).scalars().all()
    for image in images:
        await _delete_blob(blob_store, image.image_path, result)

    image_ids = select(Image.id).where(Image.game_id == game_id)
    meme_ids = select(Meme.id).where(
        or_(Meme.game_id == game_id, Meme.image_id.in_(image_ids)),
    )

    votes = await db.execute(
        delete(Vote)
        .where(or_(Vote.game_id == game_id, Vote.meme_id.in_(meme_ids)))
        .execution_options(synchronize_session=False),
    )
    memes = await db.execute(
        delete(Meme)
        .where(or_(Meme.game_id == game_id, Meme.image_id.in_(image_ids)))
        .execution_options(synchronize_session=False),
    )
    deleted_images = await db.execute(
        delete(Image)
        .where(Image.game_id == game_id)
        .execution_options(synchronize_session=False),
    )
    await db.delete(game)
    await db.commit()

    result.deleted_votes = votes.rowcount or 0
    result.deleted_memes = memes.rowcount or 0
    result.deleted_images = deleted_images.rowcount or 0
    logger.info(
        f"Purged game {game_id}",
        extra={
            "game_id": str(game_id),
            "deleted_blobs": result.deleted_blobs,
            "missing_blobs": result.missing_blobs,
        },
    )
    return result


async def _delete_blob(
    blob_store: BlobStore, key: str, result: PurgeResult,
) -> None:
    try:
        if await blob_store.delete(key):
            result.deleted_blobs += 1
        else:
            result.missing_blobs += 1
    except BlobStorageError as e:
        result.failed_blobs += 1
        logger.error(
            f"Could not delete image blob: {e.message}",
            extra={"game_id": result.game_id, "blob_key": key},
        )
