"""Legacy Schemas — standalone memes and up/down votes."""

from uuid import UUID

from pydantic import Field

from app.schemas.base import CamelModel


class LegacyMemeCreate(CamelModel):
    image_id: UUID
    top_text: str = Field("", max_length=200)
    bottom_text: str = Field("", max_length=200)
    font_type: str = Field("Impact", min_length=1, max_length=50)
    creator: str | None = Field(None, max_length=50)


class LegacyVoteCreate(CamelModel):
    """voteType: true = upvote, false = downvote."""
    vote_type: bool = True


class MemeScoreResponse(CamelModel):
    meme_id: UUID
    upvotes: int
    downvotes: int
    total: int
    score: int
