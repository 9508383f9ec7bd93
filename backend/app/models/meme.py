"""Meme ORM — a captioned derivative of exactly one Image.

Invariants:
    - image_id is required and references an image of the same game (or a standalone image)
    - created only while the owning game is in the creating phase (enforced by the lifecycle service)
    - immutable after creation

Design Decisions:
    - image relationship eager (selectin): every meme listing returns the joined image
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Meme(Base):
    """Captioned meme."""
    __tablename__ = "memes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    image_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("images.id"), nullable=False, index=True,
    )
    top_text: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    bottom_text: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    font_type: Mapped[str] = mapped_column(String(50), nullable=False, default="Impact")
    creator: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    game_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("games.id"), nullable=True, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    image: Mapped["Image"] = relationship("Image", lazy="selectin")
