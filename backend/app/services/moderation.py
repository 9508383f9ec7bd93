"""Moderation Queries — read models for the admin surface (game stats, details, dashboard).

Invariants:
    - Read-only: every mutation goes through GameLifecycleService, purge_game or IdentityService
    - Per-game counts computed with grouped COUNT queries, never by loading child rows

Design Decisions:
    - Separate from the lifecycle service: these queries span games, users and audit entries
      and only admins see them
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import GameStatus
from app.core.errors import ErrorContext, ResourceNotFoundError
from app.models.game import Game
from app.models.image import Image
from app.models.meme import Meme
from app.models.user import User
from app.models.vote import Vote

RECENT_ACTIVITY_DAYS = 7


@dataclass
class GameStats:
    image_count: int = 0
    meme_count: int = 0
    vote_count: int = 0


@dataclass
class GameDetails:
    game: Game
    images: list[Image]
    memes: list[tuple[Meme, int]]
    total_votes: int


class ModerationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_games_with_stats(
        self, limit: int = 50, offset: int = 0,
    ) -> list[tuple[Game, GameStats]]:
        games = list((await self.db.execute(
            select(Game).order_by(Game.created_at.desc()).limit(limit).offset(offset),
        )).scalars().all())
        ids = [g.id for g in games]
        stats = {gid: GameStats() for gid in ids}
        if ids:
            for model, attr in (
                (Image, "image_count"), (Meme, "meme_count"), (Vote, "vote_count"),
            ):
                rows = await self.db.execute(
                    select(model.game_id, func.count(model.id))
                    .where(model.game_id.in_(ids))
                    .group_by(model.game_id),
                )
                for gid, n in rows.all():
                    setattr(stats[gid], attr, n)
        return [(g, stats[g.id]) for g in games]

    async def game_details(self, game_id: UUID) -> GameDetails:
        game = await self.db.get(Game, game_id)
        if not game:
            raise ResourceNotFoundError(
                "Game", str(game_id), ErrorContext(game_id=str(game_id)),
            )
        images = list((await self.db.execute(
            select(Image).where(Image.game_id == game_id).order_by(Image.created_at),
        )).scalars().all())
        memes = [
            (meme, n) for meme, n in (await self.db.execute(
                select(Meme, func.count(Vote.id))
                .outerjoin(Vote, Vote.meme_id == Meme.id)
                .where(Meme.game_id == game_id)
                .group_by(Meme.id)
                .order_by(Meme.created_at),
            )).all()
        ]
        return GameDetails(
            game=game,
            images=images,
            memes=memes,
            total_votes=sum(n for _, n in memes),
        )

    async def overview_counts(self) -> dict:
        completed = GameStatus.COMPLETED.value
        return {
            "totalGames": await self._count(Game.id),
            "activeGames": await self._count(Game.id, Game.status != completed),
            "completedGames": await self._count(Game.id, Game.status == completed),
            "totalUsers": await self._count(User.id),
            "activeUsers": await self._count(User.id, User.active.is_(True)),
            "totalImages": await self._count(Image.id),
            "totalMemes": await self._count(Meme.id),
            "totalVotes": await self._count(Vote.id),
        }

    async def recent_activity(self, now: datetime) -> dict:
        since = now - timedelta(days=RECENT_ACTIVITY_DAYS)
        return {
            "games": await self._count(Game.id, Game.created_at >= since),
            "memes": await self._count(Meme.id, Meme.created_at >= since),
            "votes": await self._count(Vote.id, Vote.created_at >= since),
            "period": f"{RECENT_ACTIVITY_DAYS} days",
        }

    async def _count(self, column, *criteria) -> int:
        query = select(func.count(column))
        if criteria:
            query = query.where(*criteria)
        return await self.db.scalar(query) or 0
