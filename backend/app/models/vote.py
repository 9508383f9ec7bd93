"""Vote ORM — one origin's endorsement of one Meme.

Invariants:
    - at most one vote per (meme_id, ip_address): unique constraint
    - game mode: voter set, vote_type always True
    - legacy mode: game_id NULL, vote_type True (up) / False (down)
    - append-only, never updated

Design Decisions:
    - (meme_id, ip_address) is equivalent to (meme_id, ip_address, game_id): a meme
      belongs to at most one game and votes are only accepted for memes of the
      addressed game. A nullable game_id in the key would let NULLs slip past
      the constraint in legacy mode.
    - Conflict on insert is the duplicate signal (no separate lock)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Vote(Base):
    """Vote record."""
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("meme_id", "ip_address", name="uq_votes_meme_origin"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    meme_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("memes.id"), nullable=False, index=True,
    )
    vote_type: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    voter: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ip_address: Mapped[str] = mapped_column(String(45), nullable=False)
    game_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("games.id"), nullable=True, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
