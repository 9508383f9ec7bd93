"""Image ORM — an uploaded picture, optionally owned by a Game.

Invariants:
    - image_path is the blob store key, unique per stored blob
    - game_id NULL means legacy/standalone mode
    - never mutated after creation

Design Decisions:
    - image_path indexed: the orphan sweep looks up every blob key by it
    - game_id FK without ON DELETE: purge deletes images before the game
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Image(Base):
    """Uploaded source image."""
    __tablename__ = "images"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(
        String(200), nullable=False, default="Untitled",
    )
    image_path: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True,
    )
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    game_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("games.id"), nullable=True, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
