"""Admin Routes — moderation, maintenance, audit review and user management.

Invariants:
    - Every route requires an authenticated admin (require_admin)
    - Every mutating admin action is written to the audit sink with the ADMIN_ prefix
    - Status override accepts any valid status; the audit entry records whether it
      was a regular forward step

Design Decisions:
    - Manual cleanup reuses the process-wide sweeper: overlapping with the scheduled
      run yields 409 instead of a second concurrent sweep
    - Read models come from ModerationService, mutations from the owning services
"""

import logging
import platform
import time
from datetime import datetime, timedelta, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    get_audit_sink, get_blob_store, get_identity_service, get_sweeper,
    request_origin, require_admin,
)
from app.config import Settings, get_settings
from app.core.domain_types import AuditAction, CleanupType
from app.core.enforce_phases import is_forward_transition
from app.core.repository_protocols import BlobStore, RequestOrigin
from app.infrastructure.audit_log import DatabaseAuditSink
from app.infrastructure.database import get_db
from app.models.user import User
from app.schemas.admin import (
    AdminGameResponse, AdminMemeResponse, AuditLogResponse, CleanupRequest,
    GameDetailsResponse, GameStatsResponse, StatusUpdate,
)
from app.schemas.auth import UserCreate, UserResponse
from app.schemas.game import GameResponse, ImageResponse, MemeResponse
from app.services.game_lifecycle import GameLifecycleService
from app.services.game_purge import purge_game
from app.services.identity import IdentityService
from app.services.moderation import ModerationService
from app.services.retention_sweeper import RetentionSweeper

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/admin", tags=["admin"],
    dependencies=[Depends(require_admin)],
)

_STARTED_AT = time.monotonic()


async def _audit(
    audit_sink: DatabaseAuditSink,
    action: AuditAction,
    admin: User,
    origin: RequestOrigin,
    target: str,
    details: dict,
) -> None:
    await audit_sink.record(
        action.value,
        {"targetResource": target, **details},
        user_id=admin.id,
        ip_address=origin.ip_address,
        user_agent=origin.user_agent,
    )


# --- Games --------------------------------------------------------------------

@router.get("/games", response_model=list[AdminGameResponse])
async def list_games(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    audit_sink: DatabaseAuditSink = Depends(get_audit_sink),
    origin: RequestOrigin = Depends(request_origin),
):
    """All games, newest first, with image/meme/vote counts."""
    rows = await ModerationService(db).list_games_with_stats(limit, offset)
    await _audit(
        audit_sink, AuditAction.ADMIN_VIEWED_ALL_GAMES, admin, origin, "Game",
        {"count": len(rows)},
    )
    return [
        AdminGameResponse(
            **GameResponse.from_game(game).model_dump(),
            stats=GameStatsResponse(
                image_count=stats.image_count,
                meme_count=stats.meme_count,
                vote_count=stats.vote_count,
            ),
        )
        for game, stats in rows
    ]


@router.get("/games/{game_id}/details", response_model=GameDetailsResponse)
async def game_details(game_id: UUID, db: AsyncSession = Depends(get_db)):
    details = await ModerationService(db).game_details(game_id)
    return GameDetailsResponse(
        game=GameResponse.from_game(details.game),
        images=[ImageResponse.model_validate(i) for i in details.images],
        memes=[
            AdminMemeResponse(
                **MemeResponse.model_validate(meme).model_dump(), vote_count=n,
            )
            for meme, n in details.memes
        ],
        total_votes=details.total_votes,
    )


@router.patch("/games/{game_id}/status", response_model=GameResponse)
async def set_game_status(
    game_id: UUID,
    body: StatusUpdate,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    admin: User = Depends(require_admin),
    audit_sink: DatabaseAuditSink = Depends(get_audit_sink),
    origin: RequestOrigin = Depends(request_origin),
):
    """Moderation override: set any status and reset the phase deadline."""
    game, old = await GameLifecycleService(db, settings).set_status(
        game_id, body.status,
    )
    await _audit(
        audit_sink, AuditAction.ADMIN_CHANGED_GAME_STATUS, admin, origin, "Game",
        {
            "gameId": str(game.id),
            "gameName": game.name,
            "oldStatus": old.value,
            "newStatus": body.status.value,
            "isForwardTransition": is_forward_transition(old, body.status),
        },
    )
    return GameResponse.from_game(game)


@router.delete("/games/{game_id}")
async def delete_game(
    game_id: UUID,
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    admin: User = Depends(require_admin),
    audit_sink: DatabaseAuditSink = Depends(get_audit_sink),
    origin: RequestOrigin = Depends(request_origin),
):
    """Delete a game, its content rows and its image files."""
    result = await purge_game(db, blob_store, game_id)
    await _audit(
        audit_sink, AuditAction.ADMIN_DELETED_GAME, admin, origin, "Game",
        {"gameId": str(game_id), "deletedFiles": result.deleted_blobs},
    )
    return {
        "message": "Game and all related data deleted",
        "deletedFiles": result.deleted_blobs,
        "missingFiles": result.missing_blobs,
        "failedFiles": result.failed_blobs,
    }


# --- Maintenance & monitoring -------------------------------------------------

@router.post("/maintenance/cleanup")
async def run_cleanup(
    body: CleanupRequest,
    sweeper: RetentionSweeper = Depends(get_sweeper),
    admin: User = Depends(require_admin),
    audit_sink: DatabaseAuditSink = Depends(get_audit_sink),
    origin: RequestOrigin = Depends(request_origin),
):
    """Trigger a sweep now. 409 while another sweep is running."""
    await _audit(
        audit_sink, AuditAction.ADMIN_INITIATED_CLEANUP, admin, origin, "System",
        {"type": body.type.value},
    )
    if body.type == CleanupType.GAMES:
        result = (await sweeper.sweep_expired_games()).to_dict()
    elif body.type == CleanupType.IMAGES:
        result = (await sweeper.sweep_orphaned_blobs()).to_dict()
    else:
        result = await sweeper.run_full_sweep()
    return {"message": "Cleanup completed", "type": body.type.value, "result": result}


@router.get("/dashboard")
async def dashboard(
    db: AsyncSession = Depends(get_db),
    sweeper: RetentionSweeper = Depends(get_sweeper),
    audit_sink: DatabaseAuditSink = Depends(get_audit_sink),
):
    now = datetime.now(timezone.utc)
    moderation = ModerationService(db)
    activity = await moderation.recent_activity(now)
    activity["logins"] = await audit_sink.count_since(
        AuditAction.LOGIN_SUCCESS.value, now - timedelta(days=7),
    )
    usage = await sweeper.report_storage_usage()
    return {
        "overview": await moderation.overview_counts(),
        "recentActivity": activity,
        "storage": usage.to_dict(),
        "serverInfo": {
            "uptimeSeconds": round(time.monotonic() - _STARTED_AT),
            "pythonVersion": platform.python_version(),
            "cleanupRunning": sweeper.is_running,
        },
    }


@router.get("/audit-stats")
async def audit_stats(
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    audit_sink: DatabaseAuditSink = Depends(get_audit_sink),
):
    """Audit events per action; defaults to the last 30 days."""
    end = end_date or datetime.now(timezone.utc)
    start = start_date or end - timedelta(days=30)
    return {
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "stats": await audit_sink.stats(start, end),
    }


@router.get("/audit-logs")
async def audit_logs(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    audit_sink: DatabaseAuditSink = Depends(get_audit_sink),
):
    entries, total = await audit_sink.list_entries(limit, offset)
    return {
        "logs": [
            AuditLogResponse.model_validate(e).model_dump(mode="json", by_alias=True)
            for e in entries
        ],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.get("/storage-status")
async def storage_status(sweeper: RetentionSweeper = Depends(get_sweeper)):
    return (await sweeper.report_storage_usage()).to_dict()


# --- Users --------------------------------------------------------------------

@router.get("/users", response_model=list[UserResponse])
async def list_users(identity: IdentityService = Depends(get_identity_service)):
    return await identity.list_users()


@router.post(
    "/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED,
)
async def create_user(
    body: UserCreate,
    identity: IdentityService = Depends(get_identity_service),
    admin: User = Depends(require_admin),
    origin: RequestOrigin = Depends(request_origin),
):
    return await identity.create_user(
        admin, body.username, body.password, body.role, origin,
    )


@router.patch("/users/{user_id}/toggle-status", response_model=UserResponse)
async def toggle_user_status(
    user_id: UUID,
    identity: IdentityService = Depends(get_identity_service),
    admin: User = Depends(require_admin),
    origin: RequestOrigin = Depends(request_origin),
):
    return await identity.toggle_user_status(admin, user_id, origin)


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: UUID,
    identity: IdentityService = Depends(get_identity_service),
    admin: User = Depends(require_admin),
    origin: RequestOrigin = Depends(request_origin),
):
    await identity.delete_user(admin, user_id, origin)
    return {"message": "User deleted"}
