"""Game Routes — game-mode API: lifecycle, uploads, memes, votes, results.

Invariants:
    - Routes are thin: validation by schemas, rules in GameLifecycleService / VotingService
    - Every error is a MemeVaultError rendered by the global handlers
    - Origin address comes from api/deps.client_ip (never from the body)

Design Decisions:
    - Uploads read at most MAX_UPLOAD_BYTES + 1 bytes: oversize files are rejected
      without buffering them completely
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import client_ip, get_blob_store
from app.config import Settings, get_settings
from app.core.domain_types import GameStatus
from app.core.repository_protocols import BlobStore
from app.infrastructure.database import get_db
from app.schemas.game import (
    GameCreate, GameJoin, GameResponse, ImageResponse, MemeCreate,
    MemeResponse, PhaseAdvance, ResultEntry, VoteCreate, VoteResponse,
)
from app.services.game_lifecycle import GameLifecycleService
from app.services.voting import VotingService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/games", tags=["games"])


def get_lifecycle(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> GameLifecycleService:
    return GameLifecycleService(db, settings)


def get_voting(db: AsyncSession = Depends(get_db)) -> VotingService:
    return VotingService(db)


@router.post(
    "", response_model=GameResponse, status_code=status.HTTP_201_CREATED,
)
async def create_game(
    body: GameCreate,
    lifecycle: GameLifecycleService = Depends(get_lifecycle),
):
    """Create a game; the creator is the first participant."""
    game = await lifecycle.create_game(body.name, body.creator_name)
    return GameResponse.from_game(game)


@router.get("", response_model=list[GameResponse])
async def list_games(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    status_filter: GameStatus | None = Query(None, alias="status"),
    lifecycle: GameLifecycleService = Depends(get_lifecycle),
):
    games = await lifecycle.list_games(limit, offset, status_filter)
    return [GameResponse.from_game(g) for g in games]


@router.post("/join", response_model=GameResponse)
async def join_game(
    body: GameJoin,
    lifecycle: GameLifecycleService = Depends(get_lifecycle),
):
    game = await lifecycle.join_game(body.code, body.player_name)
    return GameResponse.from_game(game)


@router.get("/{game_id}", response_model=GameResponse)
async def get_game(
    game_id: UUID,
    lifecycle: GameLifecycleService = Depends(get_lifecycle),
):
    return GameResponse.from_game(await lifecycle.get_game(game_id))


@router.post("/{game_id}/next-phase", response_model=GameResponse)
async def advance_phase(
    game_id: UUID,
    body: PhaseAdvance | None = None,
    lifecycle: GameLifecycleService = Depends(get_lifecycle),
):
    """Move the game one phase forward and reset the phase deadline."""
    player_name = body.player_name if body else None
    game = await lifecycle.advance_phase(game_id, player_name)
    return GameResponse.from_game(game)


# --- Images -------------------------------------------------------------------

@router.post(
    "/{game_id}/upload",
    response_model=ImageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_image(
    game_id: UUID,
    image: UploadFile = File(...),
    title: str | None = Form(None, max_length=200),
    lifecycle: GameLifecycleService = Depends(get_lifecycle),
    blob_store: BlobStore = Depends(get_blob_store),
    origin: str = Depends(client_ip),
):
    """Upload a source image (collecting phase only)."""
    data = await image.read(lifecycle.settings.max_upload_bytes + 1)
    return await lifecycle.upload_image(
        game_id, blob_store, data, image.filename, title, origin,
    )


@router.get("/{game_id}/images", response_model=list[ImageResponse])
async def list_images(
    game_id: UUID,
    lifecycle: GameLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.list_images(game_id)


# --- Memes & votes ------------------------------------------------------------

@router.post(
    "/{game_id}/memes/create",
    response_model=MemeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_meme(
    game_id: UUID,
    body: MemeCreate,
    lifecycle: GameLifecycleService = Depends(get_lifecycle),
    origin: str = Depends(client_ip),
):
    """Caption one of the game's images (creating phase only)."""
    return await lifecycle.create_meme(
        game_id, body.image_id, body.top_text, body.bottom_text,
        body.font_type, body.creator, origin,
    )


@router.get("/{game_id}/memes", response_model=list[MemeResponse])
async def list_memes(
    game_id: UUID,
    lifecycle: GameLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.list_memes(game_id)


@router.post(
    "/{game_id}/memes/{meme_id}/vote",
    response_model=VoteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def cast_vote(
    game_id: UUID,
    meme_id: UUID,
    body: VoteCreate,
    voting: VotingService = Depends(get_voting),
    origin: str = Depends(client_ip),
):
    """One vote per meme per origin address (voting phase only)."""
    return await voting.cast_vote(game_id, meme_id, body.voter, origin)


@router.get("/{game_id}/results", response_model=list[ResultEntry])
async def get_results(
    game_id: UUID,
    voting: VotingService = Depends(get_voting),
):
    """Memes ranked by votes; ties broken by creation time, then id."""
    ranked = await voting.tally_results(game_id)
    return [
        ResultEntry(
            meme=MemeResponse.model_validate(entry.meme),
            votes=entry.votes,
            rank=entry.rank,
        )
        for entry in ranked
    ]
