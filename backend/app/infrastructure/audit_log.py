"""Database Audit Sink — append-only audit records in the audit_logs table.

Invariants:
    - record() NEVER raises into the caller: failures are logged and swallowed
    - Each record uses its own session, independent of the request transaction
    - Every recorded event is mirrored to the application log

Design Decisions:
    - Own session per write: an audit entry survives a rollback of the request that caused it
      (ADR: failed logins must be recorded even though the request fails)
    - Session factory injected: tests pass an async_sessionmaker, the app passes db_manager.session
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import delete, func, select

from app.core.domain_types import UserId
from app.infrastructure.database import SessionFactory
from app.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


class DatabaseAuditSink:
    """AuditSink implementation backed by the audit_logs table."""

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    async def record(
        self,
        action: str,
        details: dict[str, Any] | None = None,
        user_id: UserId | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        try:
            async with self._session_factory() as db:
                db.add(AuditLog(
                    user_id=user_id,
                    action=action,
                    details=details or {},
                    ip_address=ip_address,
                    user_agent=user_agent,
                ))
                await db.commit()
            logger.info(
                f"Audit: {action}",
                extra={"action": action, "user_id": user_id},
            )
        except Exception as e:
            logger.error(
                f"Failed to write audit log: {e}",
                extra={"action": action, "user_id": user_id},
            )

    async def cleanup_older_than(self, days: int) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        async with self._session_factory() as db:
            result = await db.execute(
                delete(AuditLog).where(AuditLog.timestamp < cutoff),
            )
            await db.commit()
        deleted = result.rowcount or 0
        logger.info(
            f"Removed {deleted} audit entries older than {days} days",
            extra={"deleted_count": deleted},
        )
        return deleted

    async def stats(self, start: datetime, end: datetime) -> list[dict]:
        """Event counts per action within [start, end], most frequent first."""
        count = func.count(AuditLog.id).label("count")
        async with self._session_factory() as db:
            result = await db.execute(
                select(AuditLog.action, count)
                .where(AuditLog.timestamp >= start, AuditLog.timestamp <= end)
                .group_by(AuditLog.action)
                .order_by(count.desc(), AuditLog.action),
            )
            rows = result.all()
        return [{"action": action, "count": n} for action, n in rows]

    async def list_entries(
        self, limit: int = 100, offset: int = 0,
    ) -> tuple[list[AuditLog], int]:
        """Newest-first page of entries plus the total row count."""
        async with self._session_factory() as db:
            result = await db.execute(
                select(AuditLog)
                .order_by(AuditLog.timestamp.desc())
                .limit(limit).offset(offset),
            )
            entries = list(result.scalars().all())
            total = await db.scalar(select(func.count(AuditLog.id)))
        return entries, total or 0

    async def count_since(self, action: str, since: datetime) -> int:
        async with self._session_factory() as db:
            total = await db.scalar(
                select(func.count(AuditLog.id))
                .where(AuditLog.action == action, AuditLog.timestamp >= since),
            )
        return total or 0
