"""Game ORM — the aggregate root of a party-game session.

Invariants:
    - id is UUID primary key
    - code is 6 uppercase alphanumeric chars, globally unique (unique index)
    - status transitions: collecting -> creating -> voting -> completed (forward-only via lifecycle service)
    - participants are unique per game (unique constraint), creator at position 0

Design Decisions:
    - Participants as a child table, not a JSON list: the unique constraint closes
      the concurrent-join race that a read-modify-write of a list cannot
    - No ORM relationships to images/memes/votes: cascading delete is done
      explicitly by services/game_purge.py, children first
    - phase_end_time is advisory; nothing enforces it server-side
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Integer, DateTime, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Game(Base):
    """Game session — owns participants; images/memes/votes reference it by game_id."""
    __tablename__ = "games"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(
        String(6), nullable=False, unique=True, index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    creator: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="collecting", index=True,
    )
    phase_end_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    participants: Mapped[list["GameParticipant"]] = relationship(
        "GameParticipant", back_populates="game",
        cascade="all, delete-orphan", lazy="selectin",
        order_by=lambda: [GameParticipant.position, GameParticipant.joined_at],
    )

    @property
    def participant_names(self) -> list[str]:
        return [p.display_name for p in self.participants]


class GameParticipant(Base):
    """One display name in a game's roster."""
    __tablename__ = "game_participants"
    __table_args__ = (
        UniqueConstraint(
            "game_id", "display_name", name="uq_game_participants_game_name",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    game_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("games.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    display_name: Mapped[str] = mapped_column(String(50), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    game: Mapped["Game"] = relationship("Game", back_populates="participants")
