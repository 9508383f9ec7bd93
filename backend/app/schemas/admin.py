"""Admin Schemas — moderation requests and audit/user views."""

from datetime import datetime
from typing import Any
from uuid import UUID

from app.core.domain_types import CleanupType, GameStatus
from app.schemas.base import CamelModel
from app.schemas.game import GameResponse, ImageResponse, MemeResponse


class StatusUpdate(CamelModel):
    status: GameStatus


class CleanupRequest(CamelModel):
    type: CleanupType = CleanupType.ALL


class GameStatsResponse(CamelModel):
    image_count: int
    meme_count: int
    vote_count: int


class AdminGameResponse(GameResponse):
    stats: GameStatsResponse


class AdminMemeResponse(MemeResponse):
    vote_count: int


class GameDetailsResponse(CamelModel):
    game: GameResponse
    images: list[ImageResponse]
    memes: list[AdminMemeResponse]
    total_votes: int


class AuditLogResponse(CamelModel):
    id: UUID
    user_id: UUID | None = None
    action: str
    details: dict[str, Any]
    ip_address: str | None = None
    user_agent: str | None = None
    timestamp: datetime
