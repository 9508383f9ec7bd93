"""API Dependencies — process-wide collaborators, request origin and role checks.

Invariants:
    - Blob store, audit sink and sweeper are created once in the lifespan (app.state)
      and only reached through these dependencies, so tests can override them
    - Origin address is request.client.host unless TRUST_FORWARDED_FOR is enabled
    - Missing/invalid token -> 401; wrong role -> 403 (and an audit entry)

Design Decisions:
    - Role check as a dependency factory (require_role): routers declare it once in
      their dependencies list
"""

import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.domain_types import AuditAction, UserRole
from app.core.errors import AuthenticationError, PermissionDeniedError
from app.core.repository_protocols import BlobStore, RequestOrigin
from app.infrastructure.audit_log import DatabaseAuditSink
from app.infrastructure.database import get_db
from app.models.user import User
from app.services.identity import IdentityService
from app.services.retention_sweeper import RetentionSweeper

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def get_audit_sink(request: Request) -> DatabaseAuditSink:
    return request.app.state.audit_sink


def get_sweeper(request: Request) -> RetentionSweeper:
    return request.app.state.sweeper


def client_ip(
    request: Request, settings: Settings = Depends(get_settings),
) -> str:
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


def request_origin(
    request: Request, ip: str = Depends(client_ip),
) -> RequestOrigin:
    return RequestOrigin(
        ip_address=ip, user_agent=request.headers.get("user-agent"),
    )


def get_identity_service(
    db: AsyncSession = Depends(get_db),
    audit_sink: DatabaseAuditSink = Depends(get_audit_sink),
    settings: Settings = Depends(get_settings),
) -> IdentityService:
    return IdentityService(
        db, audit_sink,
        token_ttl_minutes=settings.auth_token_ttl_minutes,
    )


async def bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    if not credentials or not credentials.credentials:
        raise AuthenticationError()
    return credentials.credentials


async def current_user(
    token: str = Depends(bearer_token),
    identity: IdentityService = Depends(get_identity_service),
) -> User:
    return await identity.authenticate(token)


def require_role(role: UserRole):
    """Dependency factory: the authenticated user must hold `role`."""

    async def check_role(
        request: Request,
        user: User = Depends(current_user),
        audit_sink: DatabaseAuditSink = Depends(get_audit_sink),
        origin: RequestOrigin = Depends(request_origin),
    ) -> User:
        if user.role != role.value:
            await audit_sink.record(
                AuditAction.UNAUTHORIZED_ACCESS_ATTEMPT.value,
                {
                    "requiredRole": role.value,
                    "userRole": user.role,
                    "path": request.url.path,
                },
                user_id=user.id,
                ip_address=origin.ip_address,
                user_agent=origin.user_agent,
            )
            logger.warning(
                f"Role '{role.value}' required",
                extra={"user_id": user.id, "path": request.url.path},
            )
            raise PermissionDeniedError()
        return user

    return check_role


require_admin = require_role(UserRole.ADMIN)
