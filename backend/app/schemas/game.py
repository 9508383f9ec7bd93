"""Game Schemas — request validation and responses for the game-mode API.

Invariants:
    - Game name 1-100 chars and display names 1-50 chars, stripped, non-empty
    - Caption texts at most 200 chars
    - Responses never expose origin addresses

Design Decisions:
    - GameResponse built explicitly from the ORM row: the roster is a child table,
      the wire format is a plain list of names
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from app.core.domain_types import GameStatus
from app.models.game import Game
from app.schemas.base import CamelModel, strip_required


# --- Requests -----------------------------------------------------------------

class GameCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    creator_name: str = Field(min_length=1, max_length=50)

    @field_validator("name", "creator_name")
    @classmethod
    def strip_text(cls, v: str, info) -> str:
        return strip_required(v, info.field_name)


class GameJoin(CamelModel):
    code: str = Field(min_length=1, max_length=20)
    player_name: str = Field(min_length=1, max_length=50)

    @field_validator("code", "player_name")
    @classmethod
    def strip_text(cls, v: str, info) -> str:
        return strip_required(v, info.field_name)


class PhaseAdvance(CamelModel):
    """Optional body; player_name only matters when creator-only advance is enforced."""
    player_name: str | None = Field(None, max_length=50)


class MemeCreate(CamelModel):
    image_id: UUID
    top_text: str = Field("", max_length=200)
    bottom_text: str = Field("", max_length=200)
    font_type: str = Field("Impact", min_length=1, max_length=50)
    creator: str | None = Field(None, max_length=50)


class VoteCreate(CamelModel):
    voter: str = Field(min_length=1, max_length=50)

    @field_validator("voter")
    @classmethod
    def strip_voter(cls, v: str) -> str:
        return strip_required(v, "voter")


# --- Responses ----------------------------------------------------------------

class GameResponse(CamelModel):
    id: UUID
    code: str
    name: str
    creator: str
    participants: list[str]
    status: GameStatus
    phase_end_time: datetime
    created_at: datetime

    @classmethod
    def from_game(cls, game: Game) -> "GameResponse":
        return cls(
            id=game.id,
            code=game.code,
            name=game.name,
            creator=game.creator,
            participants=game.participant_names,
            status=game.status,
            phase_end_time=game.phase_end_time,
            created_at=game.created_at,
        )


class ImageResponse(CamelModel):
    id: UUID
    title: str
    image_path: str
    game_id: UUID | None = None
    created_at: datetime


class MemeResponse(CamelModel):
    id: UUID
    image_id: UUID
    top_text: str
    bottom_text: str
    font_type: str
    creator: str | None = None
    game_id: UUID | None = None
    created_at: datetime
    image: ImageResponse | None = None


class VoteResponse(CamelModel):
    id: UUID
    meme_id: UUID
    game_id: UUID | None = None
    voter: str | None = None
    vote_type: bool
    created_at: datetime


class ResultEntry(CamelModel):
    meme: MemeResponse
    votes: int
    rank: int
