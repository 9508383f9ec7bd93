"""Identity — admin bootstrap, login/logout, bearer token validation, user management.

Invariants:
    - Login failures return ONE generic message (unknown user, inactive, wrong password)
    - Tokens are opaque; only their SHA-256 is stored, with an expiry checked in SQL
    - The last admin account can never be deleted; nobody can delete or deactivate themselves
    - Every security-relevant outcome is written to the audit sink

Design Decisions:
    - bcrypt runs in a worker thread: it is deliberately slow and would block the event loop
    - Audit writes go through AuditSink (own session): a failed login is recorded even
      though the request itself fails
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.credentials import (
    generate_temporary_password, generate_token, hash_password, hash_token,
    verify_password,
)
from app.core.domain_types import AuditAction, UserRole
from app.core.errors import (
    AuthenticationError, InputValidationError, InvalidStateError,
    ResourceNotFoundError,
)
from app.core.repository_protocols import AuditSink, RequestOrigin
from app.models.auth_token import AuthToken
from app.models.user import User

logger = logging.getLogger(__name__)

GENERIC_AUTH_ERROR = "Invalid credentials"
BOOTSTRAP_ADMIN_USERNAME = "admin"


class IdentityService:
    def __init__(
        self,
        db: AsyncSession,
        audit_sink: AuditSink,
        token_ttl_minutes: int = 60,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.audit = audit_sink
        self.token_ttl = timedelta(minutes=token_ttl_minutes)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # --- Bootstrap & sessions ---------------------------------------------

    async def setup_admin(
        self, origin: RequestOrigin = RequestOrigin(),
    ) -> tuple[User, str]:
        """Create the first admin with a one-time password. Returns (user, password)."""
        admin_exists = await self.db.scalar(
            select(User.id).where(User.role == UserRole.ADMIN.value).limit(1),
        )
        if admin_exists is not None:
            raise InvalidStateError("An admin account already exists")
        password = generate_temporary_password()
        user = await self._insert_user(
            BOOTSTRAP_ADMIN_USERNAME, password, UserRole.ADMIN,
        )
        await self._audit(AuditAction.ADMIN_CREATED, origin, user.id, {
            "username": user.username,
        })
        logger.info("Bootstrap admin account created", extra={"user_id": user.id})
        return user, password

    async def login(
        self, username: str, password: str, origin: RequestOrigin = RequestOrigin(),
    ) -> tuple[str, User, datetime]:
        """Returns (raw token, user, expiry)."""
        user = (await self.db.execute(
            select(User).where(User.username == username),
        )).scalar_one_or_none()

        reason = None
        if not user:
            reason = "unknown user"
        elif not user.active:
            reason = "inactive account"
        elif not await self._verify(password, user.password_hash):
            reason = "invalid password"
        if reason:
            await self._audit(
                AuditAction.LOGIN_FAILED, origin, user.id if user else None,
                {"username": username, "reason": reason},
            )
            raise AuthenticationError(GENERIC_AUTH_ERROR)

        now = self._clock()
        token = generate_token()
        expires_at = now + self.token_ttl
        user.last_login = now
        self.db.add(AuthToken(
            token_hash=hash_token(token), user_id=user.id, expires_at=expires_at,
        ))
        await self.db.commit()
        await self._audit(AuditAction.LOGIN_SUCCESS, origin, user.id, {
            "username": user.username,
        })
        return token, user, expires_at

    async def logout(
        self, token: str, user: User, origin: RequestOrigin = RequestOrigin(),
    ) -> None:
        await self.db.execute(
            delete(AuthToken).where(AuthToken.token_hash == hash_token(token)),
        )
        await self.db.commit()
        await self._audit(AuditAction.LOGOUT, origin, user.id, {
            "username": user.username,
        })

    async def authenticate(self, token: str) -> User:
        """Resolve a bearer token to an active user or raise AuthenticationError."""
        user_id = await self.db.scalar(
            select(AuthToken.user_id).where(
                AuthToken.token_hash == hash_token(token),
                AuthToken.expires_at > self._clock(),
            ),
        )
        if user_id is None:
            raise AuthenticationError("Invalid or expired token")
        user = await self.db.get(User, user_id)
        if not user or not user.active:
            raise AuthenticationError("Invalid or expired token")
        return user

    async def change_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
        origin: RequestOrigin = RequestOrigin(),
    ) -> None:
        if not await self._verify(current_password, user.password_hash):
            await self._audit(AuditAction.PASSWORD_CHANGE_FAILED, origin, user.id, {
                "reason": "invalid current password",
            })
            raise AuthenticationError("Current password is incorrect")
        user.password_hash = await self._hash(new_password)
        await self.db.commit()
        await self._audit(AuditAction.PASSWORD_CHANGED, origin, user.id, {
            "username": user.username,
        })

    # --- User management --------------------------------------------------

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def create_user(
        self,
        actor: User,
        username: str,
        password: str,
        role: UserRole = UserRole.USER,
        origin: RequestOrigin = RequestOrigin(),
    ) -> User:
        taken = await self.db.scalar(select(User.id).where(User.username == username))
        if taken is not None:
            raise InputValidationError("Username already exists", "username")
        user = await self._insert_user(username, password, role)
        await self._audit(AuditAction.ADMIN_CREATED_USER, origin, actor.id, {
            "targetResource": "User",
            "createdUserId": str(user.id),
            "username": username,
            "role": UserRole(role).value,
        })
        return user

    async def toggle_user_status(
        self, actor: User, user_id: UUID, origin: RequestOrigin = RequestOrigin(),
    ) -> User:
        if user_id == actor.id:
            raise InputValidationError("You cannot deactivate your own account", "userId")
        user = await self._get_user(user_id)
        user.active = not user.active
        if not user.active:
            await self.db.execute(
                delete(AuthToken).where(AuthToken.user_id == user.id),
            )
        await self.db.commit()
        await self._audit(AuditAction.ADMIN_TOGGLED_USER_STATUS, origin, actor.id, {
            "targetResource": "User",
            "targetUserId": str(user.id),
            "username": user.username,
            "active": user.active,
        })
        return user

    async def delete_user(
        self, actor: User, user_id: UUID, origin: RequestOrigin = RequestOrigin(),
    ) -> None:
        if user_id == actor.id:
            raise InputValidationError("You cannot delete your own account", "userId")
        user = await self._get_user(user_id)
        if user.role == UserRole.ADMIN.value:
            admins = await self.db.scalar(
                select(func.count(User.id)).where(User.role == UserRole.ADMIN.value),
            )
            if admins <= 1:
                raise InvalidStateError("The last admin account cannot be deleted")
        await self.db.execute(delete(AuthToken).where(AuthToken.user_id == user.id))
        await self.db.delete(user)
        await self.db.commit()
        await self._audit(AuditAction.ADMIN_DELETED_USER, origin, actor.id, {
            "targetResource": "User",
            "deletedUserId": str(user_id),
            "deletedUsername": user.username,
        })

    # --- Helpers ----------------------------------------------------------

    async def _get_user(self, user_id: UUID) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise ResourceNotFoundError("User", str(user_id))
        return user

    async def _insert_user(
        self, username: str, password: str, role: UserRole,
    ) -> User:
        user = User(
            username=username,
            password_hash=await self._hash(password),
            role=UserRole(role).value,
            active=True,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise InputValidationError("Username already exists", "username")
        return user

    async def _hash(self, password: str) -> str:
        return await asyncio.to_thread(hash_password, password)

    async def _verify(self, password: str, encoded: str) -> bool:
        return await asyncio.to_thread(verify_password, password, encoded)

    async def _audit(
        self,
        action: AuditAction,
        origin: RequestOrigin,
        user_id: UUID | None,
        details: dict,
    ) -> None:
        await self.audit.record(
            action.value, details, user_id=user_id,
            ip_address=origin.ip_address, user_agent=origin.user_agent,
        )
