"""Legacy Routes — standalone images, memes and up/down votes outside of games.

Invariants:
    - Nothing here reads or writes game-owned content
    - Same upload validation and vote uniqueness as game mode
"""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import client_ip, get_blob_store
from app.config import Settings, get_settings
from app.core.repository_protocols import BlobStore
from app.infrastructure.database import get_db
from app.schemas.game import ImageResponse, MemeResponse, VoteResponse
from app.schemas.legacy import LegacyMemeCreate, LegacyVoteCreate, MemeScoreResponse
from app.services.legacy_content import LegacyContentService
from app.services.voting import VotingService

router = APIRouter(prefix="/api/v1", tags=["legacy"])


def get_content(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> LegacyContentService:
    return LegacyContentService(db, settings)


@router.post(
    "/images/upload",
    response_model=ImageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_image(
    image: UploadFile = File(...),
    title: str | None = Form(None, max_length=200),
    content: LegacyContentService = Depends(get_content),
    blob_store: BlobStore = Depends(get_blob_store),
    origin: str = Depends(client_ip),
):
    data = await image.read(content.settings.max_upload_bytes + 1)
    return await content.upload_image(
        blob_store, data, image.filename, title, origin,
    )


@router.get("/images", response_model=list[ImageResponse])
async def list_images(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    content: LegacyContentService = Depends(get_content),
):
    return await content.list_images(limit, offset)


@router.get("/images/{image_id}", response_model=ImageResponse)
async def get_image(
    image_id: UUID, content: LegacyContentService = Depends(get_content),
):
    return await content.get_image(image_id)


@router.post(
    "/memes/create",
    response_model=MemeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_meme(
    body: LegacyMemeCreate,
    content: LegacyContentService = Depends(get_content),
    origin: str = Depends(client_ip),
):
    return await content.create_meme(
        body.image_id, body.top_text, body.bottom_text,
        body.font_type, body.creator, origin,
    )


@router.get("/memes/{meme_id}", response_model=MemeResponse)
async def get_meme(
    meme_id: UUID, content: LegacyContentService = Depends(get_content),
):
    return await content.get_meme(meme_id)


@router.post(
    "/votes/{meme_id}",
    response_model=VoteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def cast_vote(
    meme_id: UUID,
    body: LegacyVoteCreate,
    db: AsyncSession = Depends(get_db),
    origin: str = Depends(client_ip),
):
    return await VotingService(db).cast_legacy_vote(meme_id, body.vote_type, origin)


@router.get("/votes/{meme_id}", response_model=MemeScoreResponse)
async def get_score(meme_id: UUID, db: AsyncSession = Depends(get_db)):
    score = await VotingService(db).tally_meme_score(meme_id)
    return MemeScoreResponse(
        meme_id=meme_id,
        upvotes=score.upvotes,
        downvotes=score.downvotes,
        total=score.total,
        score=score.score,
    )
