"""Voting & Results — one vote per origin per meme, ranked tallies, legacy scores.

Invariants:
    - Game votes only while the game is in the voting phase, only for memes of that game
    - At most one vote per (meme, origin address): pre-check for the friendly path,
      the unique constraint for the racing path; both surface as DuplicateVoteError
    - Results include zero-vote memes and are ordered by core/tally.rank_memes
    - Legacy votes only target standalone memes; game memes are voted inside their game

Design Decisions:
    - Voter identity is the origin address, not the display name (anonymous party game;
      documented limitation: players behind one NAT share a vote)
    - Counting done in SQL (outer join + GROUP BY), ordering done in pure core code
"""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import GameStatus
from app.core.enforce_phases import assert_phase
from app.core.errors import (
    DuplicateVoteError, ErrorContext, InvalidStateError, ResourceNotFoundError,
)
from app.core.tally import MemeScore, RankedEntry, rank_memes, score_votes
from app.models.game import Game
from app.models.meme import Meme
from app.models.vote import Vote

logger = logging.getLogger(__name__)


class VotingService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def cast_vote(
        self, game_id: UUID, meme_id: UUID, voter: str, origin: str,
    ) -> Vote:
        ctx = ErrorContext(game_id=str(game_id), meme_id=str(meme_id))
        game = await self.db.get(Game, game_id)
        if not game:
            raise ResourceNotFoundError("Game", str(game_id), ctx)
        assert_phase(game.status, GameStatus.VOTING, str(game_id))
        meme = await self.db.get(Meme, meme_id)
        if not meme or meme.game_id != game.id:
            raise ResourceNotFoundError("Meme", str(meme_id), ctx)

        vote = Vote(
            meme_id=meme.id, game_id=game.id, voter=voter,
            vote_type=True, ip_address=origin,
        )
        await self._insert_once(vote, ctx)
        logger.info(
            "Vote recorded", extra={"game_id": str(game_id), "meme_id": str(meme_id)},
        )
        return vote

    async def tally_results(self, game_id: UUID) -> list[RankedEntry[Meme]]:
        if not await self.db.get(Game, game_id):
            raise ResourceNotFoundError(
                "Game", str(game_id), ErrorContext(game_id=str(game_id)),
            )
        votes = func.count(Vote.id)
        rows = (await self.db.execute(
            select(Meme, votes)
            .outerjoin(Vote, Vote.meme_id == Meme.id)
            .where(Meme.game_id == game_id)
            .group_by(Meme.id),
        )).all()
        return rank_memes(
            ((meme, count) for meme, count in rows),
            created_at=lambda m: m.created_at,
            identity=lambda m: m.id,
        )

    # --- Legacy mode ------------------------------------------------------

    async def cast_legacy_vote(
        self, meme_id: UUID, vote_type: bool, origin: str,
    ) -> Vote:
        ctx = ErrorContext(meme_id=str(meme_id))
        meme = await self._get_meme(meme_id)
        if meme.game_id is not None:
            raise InvalidStateError(
                "Memes that belong to a game are voted on inside the game",
                context=ctx,
            )
        vote = Vote(meme_id=meme.id, vote_type=vote_type, ip_address=origin)
        await self._insert_once(vote, ctx)
        return vote

    async def tally_meme_score(self, meme_id: UUID) -> MemeScore:
        await self._get_meme(meme_id)
        vote_types = (await self.db.execute(
            select(Vote.vote_type).where(Vote.meme_id == meme_id),
        )).scalars().all()
        return score_votes(vote_types)

    # --- Helpers ----------------------------------------------------------

    async def _get_meme(self, meme_id: UUID) -> Meme:
        meme = await self.db.get(Meme, meme_id)
        if not meme:
            raise ResourceNotFoundError(
                "Meme", str(meme_id), ErrorContext(meme_id=str(meme_id)),
            )
        return meme

    async def _insert_once(self, vote: Vote, ctx: ErrorContext) -> None:
        existing = await self.db.scalar(
            select(Vote.id).where(
                Vote.meme_id == vote.meme_id, Vote.ip_address == vote.ip_address,
            ),
        )
        if existing is not None:
            raise DuplicateVoteError(ctx)
        self.db.add(vote)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateVoteError(ctx)
