"""Game Lifecycle — creation, joining, phase advancement and phase-scoped writes.

Invariants:
    - Every phase-scoped write calls assert_phase() before touching storage
    - Status changes go through next_status() (one step forward) or set_status() (admin override)
    - Game codes are allocated with at most MAX_CODE_ATTEMPTS tries; the unique index is the backstop
    - Joining is idempotent: an existing name (or a concurrent insert of it) returns the game unchanged
    - A code that cannot have been generated is "not found" without touching storage

Design Decisions:
    - Unique constraints instead of check-then-act: a conflicting commit is rolled back and
      interpreted (regenerate code / already joined), never surfaced as a 500
    - Phase advance is a compare-and-set UPDATE on the observed status: two concurrent
      advances cannot skip a phase
    - Service holds the request session; the caller owns its lifetime (FastAPI Depends)
"""

import logging
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.domain_types import GameStatus, MAX_CODE_ATTEMPTS
from app.core.enforce_phases import (
    assert_joinable, assert_phase, next_status, phase_deadline,
)
from app.core.errors import (
    ConcurrencyError, DatabaseError, ErrorContext,
    PermissionDeniedError, ResourceNotFoundError,
)
from app.core.game_code import generate_code, is_valid_code, normalize_code
from app.core.repository_protocols import BlobStore
from app.models.game import Game, GameParticipant
from app.models.image import Image
from app.models.meme import Meme
from app.services.image_intake import store_image

logger = logging.getLogger(__name__)


class GameLifecycleService:
    """Drives a game through collecting -> creating -> voting -> completed."""

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # --- Games ------------------------------------------------------------

    async def create_game(self, name: str, creator: str) -> Game:
        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            code = generate_code()
            if await self._code_in_use(code):
                continue
            game = Game(
                code=code,
                name=name,
                creator=creator,
                status=GameStatus.COLLECTING.value,
                phase_end_time=self._deadline(),
                participants=[GameParticipant(display_name=creator, position=0)],
            )
            self.db.add(game)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.warning(f"Game code collision on insert (attempt {attempt})")
                continue
            logger.info(
                f"Game created with code {code}", extra={"game_id": str(game.id)},
            )
            return game
        raise DatabaseError("could not allocate a unique game code", "insert")

    async def list_games(
        self, limit: int = 20, offset: int = 0, status: GameStatus | None = None,
    ) -> list[Game]:
        query = select(Game).order_by(Game.created_at.desc())
        if status:
            query = query.where(Game.status == GameStatus(status).value)
        result = await self.db.execute(query.limit(limit).offset(offset))
        return list(result.scalars().all())

    async def get_game(self, game_id: UUID) -> Game:
        game = await self.db.get(Game, game_id)
        if not game:
            raise ResourceNotFoundError(
                "Game", str(game_id), ErrorContext(game_id=str(game_id)),
            )
        return game

    async def join_game(self, code: str, player_name: str) -> Game:
        code = normalize_code(code)
        if not is_valid_code(code):
            raise ResourceNotFoundError("Game", code)
        game = (await self.db.execute(
            select(Game).where(Game.code == code),
        )).scalar_one_or_none()
        if not game:
            raise ResourceNotFoundError("Game", code)
        assert_joinable(game.status, str(game.id))
        if player_name in game.participant_names:
            return game

        game.participants.append(GameParticipant(
            display_name=player_name, position=len(game.participants),
        ))
        try:
            await self.db.commit()
            logger.info(
                f"{player_name} joined game {code}", extra={"game_id": str(game.id)},
            )
        except IntegrityError:
            # Same name inserted by a concurrent request: already joined
            await self.db.rollback()
        await self.db.refresh(game)
        return game

    async def advance_phase(
        self, game_id: UUID, player_name: str | None = None,
    ) -> Game:
        game = await self.get_game(game_id)
        if (
            self.settings.enforce_creator_phase_advance
            and player_name != game.creator
        ):
            raise PermissionDeniedError(
                "Only the game creator can advance the phase",
                ErrorContext(game_id=str(game_id)),
            )
        current = GameStatus(game.status)
        new = next_status(current)
        result = await self.db.execute(
            update(Game)
            .where(Game.id == game_id, Game.status == current.value)
            .values(status=new.value, phase_end_time=self._deadline())
            .execution_options(synchronize_session=False),
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise ConcurrencyError(
                "Game phase was changed by another request",
                ErrorContext(game_id=str(game_id)),
            )
        await self.db.commit()
        await self.db.refresh(game)
        logger.info(
            f"Game advanced {current.value} -> {new.value}",
            extra={"game_id": str(game_id)},
        )
        return game

    async def set_status(
        self, game_id: UUID, status: GameStatus,
    ) -> tuple[Game, GameStatus]:
        """Moderation override: any valid status, deadline reset. Returns (game, old status)."""
        game = await self.get_game(game_id)
        old = GameStatus(game.status)
        game.status = GameStatus(status).value
        game.phase_end_time = self._deadline()
        await self.db.commit()
        return game, old

    # --- Phase-scoped writes ------------------------------------------------

    async def upload_image(
        self,
        game_id: UUID,
        blob_store: BlobStore,
        data: bytes,
        filename: str | None,
        title: str | None,
        origin: str | None,
    ) -> Image:
        game = await self.get_game(game_id)
        assert_phase(game.status, GameStatus.COLLECTING, str(game.id))
        return await store_image(
            self.db, blob_store, data, filename, title, origin,
            max_bytes=self.settings.max_upload_bytes, game_id=game.id,
        )

    async def list_images(self, game_id: UUID) -> list[Image]:
        await self.get_game(game_id)
        result = await self.db.execute(
            select(Image).where(Image.game_id == game_id)
            .order_by(Image.created_at),
        )
        return list(result.scalars().all())

    async def create_meme(
        self,
        game_id: UUID,
        image_id: UUID,
        top_text: str,
        bottom_text: str,
        font_type: str,
        creator: str | None,
        origin: str | None,
    ) -> Meme:
        game = await self.get_game(game_id)
        assert_phase(game.status, GameStatus.CREATING, str(game.id))
        image = await self.db.get(Image, image_id)
        if not image or image.game_id != game.id:
            raise ResourceNotFoundError(
                "Image", str(image_id), ErrorContext(game_id=str(game_id)),
            )
        meme = Meme(
            image=image,
            top_text=top_text,
            bottom_text=bottom_text,
            font_type=font_type,
            creator=creator,
            ip_address=origin,
            game_id=game.id,
        )
        self.db.add(meme)
        await self.db.commit()
        logger.info(
            "Meme created",
            extra={"game_id": str(game_id), "meme_id": str(meme.id)},
        )
        return meme

    async def list_memes(self, game_id: UUID) -> list[Meme]:
        await self.get_game(game_id)
        result = await self.db.execute(
            select(Meme).where(Meme.game_id == game_id)
            .order_by(Meme.created_at),
        )
        return list(result.scalars().all())

    # --- Helpers ----------------------------------------------------------

    async def _code_in_use(self, code: str) -> bool:
        found = await self.db.scalar(select(Game.id).where(Game.code == code))
        return found is not None

    def _deadline(self) -> datetime:
        return phase_deadline(self._clock(), self.settings.phase_duration_minutes)
