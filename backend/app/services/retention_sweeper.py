"""Retention Sweeper — reclaims expired games, orphaned blobs and old audit entries.

Invariants:
    - Only COMPLETED games whose created_at is older than the retention window are purged
    - One failing game never aborts the batch: it is recorded in the summary's failures
    - Orphan sweep only touches image-extension files with no Image row, and only
      once they are older than the grace period (in-flight uploads are never reclaimed)
    - Single-flight: a second sweep while one is running raises ConcurrencyError (409)
    - run_full_sweep() never raises for a sub-task failure: each of its four steps is wrapped
    - An explicit retention of 0 days means "every completed game"; negative values are rejected

Design Decisions:
    - One sweeper instance per process, created in the lifespan and shared by the
      scheduler and the admin endpoint, so the asyncio.Lock actually serializes them
    - The lock is per process: deploy with a single uvicorn worker (or set
      CLEANUP_ENABLED=false on all but one replica) so scheduled sweeps never overlap
    - Own sessions from an injected session factory: sweeps run outside any request
    - Clock injectable for tests (ADR: no monkeypatching datetime)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy import select

from app.core.domain_types import GameStatus
from app.core.errors import BlobStorageError, ConcurrencyError, InputValidationError
from app.core.repository_protocols import AuditSink, BlobStore
from app.core.retention import (
    GameSweepResult, OrphanSweepResult, StorageUsage, SweepFailure,
    is_image_file, is_past_grace, retention_cutoff,
)
from app.infrastructure.database import SessionFactory
from app.models.game import Game
from app.models.image import Image
from app.services.game_purge import purge_game

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_WARNING_BYTES = 1024 * 1024 * 1024


class RetentionSweeper:
    """Periodic and on-demand cleanup of games, blobs and audit entries."""

    def __init__(
        self,
        session_factory: SessionFactory,
        blob_store: BlobStore,
        audit_sink: AuditSink,
        retention_days: int = 30,
        audit_retention_days: int = 90,
        storage_warning_bytes: int = DEFAULT_STORAGE_WARNING_BYTES,
        orphan_grace: timedelta = timedelta(minutes=10),
        clock: Callable[[], datetime] | None = None,
    ):
        self._session_factory = session_factory
        self._blob_store = blob_store
        self._audit_sink = audit_sink
        self.retention_days = retention_days
        self.audit_retention_days = audit_retention_days
        self.storage_warning_bytes = storage_warning_bytes
        self.orphan_grace = orphan_grace
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def _single_flight(self):
        if self._lock.locked():
            raise ConcurrencyError("A cleanup run is already in progress")
        async with self._lock:
            yield

    # --- Public operations ------------------------------------------------

    async def sweep_expired_games(
        self, retention_days: int | None = None,
    ) -> GameSweepResult:
        days = self._resolve_retention(retention_days)
        async with self._single_flight():
            return await self._sweep_expired_games(days)

    async def sweep_orphaned_blobs(self) -> OrphanSweepResult:
        async with self._single_flight():
            return await self._sweep_orphaned_blobs()

    async def report_storage_usage(self) -> StorageUsage:
        """Read-only: safe to call while a sweep is running."""
        blobs = await self._blob_store.list_blobs()
        usage = StorageUsage(
            file_count=len(blobs),
            total_bytes=sum(b.size for b in blobs),
            threshold_bytes=self.storage_warning_bytes,
        )
        extra = {"file_count": usage.file_count, "total_bytes": usage.total_bytes}
        if usage.threshold_exceeded:
            logger.warning(
                f"Upload storage at {usage.total_megabytes} MB exceeds the "
                f"warning threshold; consider a shorter retention period",
                extra=extra,
            )
        else:
            logger.info(
                f"Upload storage at {usage.total_megabytes} MB", extra=extra,
            )
        return usage

    async def run_full_sweep(self) -> dict:
        """Audit cleanup, game sweep, orphan sweep and usage report, each isolated."""
        async with self._single_flight():
            started = self._clock()
            logger.info("Starting full cleanup sweep")
            tasks = {
                "auditLogs": self._cleanup_audit_logs,
                "games": self._sweep_expired_games,
                "orphanedImages": self._sweep_orphaned_blobs,
                "storage": self.report_storage_usage,
            }
            summary: dict = {}
            for name, task in tasks.items():
                try:
                    outcome = await task()
                    summary[name] = {"success": True, "result": _as_dict(outcome)}
                except Exception as e:
                    logger.error(f"Cleanup step '{name}' failed: {e}", exc_info=True)
                    summary[name] = {"success": False, "error": str(e)}
            summary["success"] = all(
                step["success"] for step in summary.values()
            )
            elapsed = (self._clock() - started).total_seconds() * 1000
            logger.info(
                "Full cleanup sweep finished",
                extra={"duration_ms": round(elapsed)},
            )
            return summary

    def _resolve_retention(self, retention_days: int | None) -> int:
        days = self.retention_days if retention_days is None else retention_days
        if days < 0:
            raise InputValidationError(
                "Retention days cannot be negative", "retentionDays",
            )
        return days

    # --- Steps (lock held by caller) --------------------------------------

    async def _cleanup_audit_logs(self) -> dict:
        deleted = await self._audit_sink.cleanup_older_than(
            self.audit_retention_days,
        )
        return {"deleted": deleted, "retentionDays": self.audit_retention_days}

    async def _sweep_expired_games(
        self, retention_days: int | None = None,
    ) -> GameSweepResult:
        days = self._resolve_retention(retention_days)
        cutoff = retention_cutoff(self._clock(), days)
        async with self._session_factory() as db:
            expired = (await db.execute(
                select(Game.id)
                .where(
                    Game.status == GameStatus.COMPLETED.value,
                    Game.created_at < cutoff,
                )
                .order_by(Game.created_at),
            )).scalars().all()

        logger.info(f"Found {len(expired)} expired games to purge")
        result = GameSweepResult(retention_days=days)
        for game_id in expired:
            try:
                async with self._session_factory() as db:
                    purge = await purge_game(db, self._blob_store, game_id)
                result.add(purge)
            except Exception as e:
                logger.error(
                    f"Failed to purge game: {e}",
                    extra={"game_id": str(game_id)},
                )
                result.failures.append(SweepFailure(str(game_id), str(e)))

        logger.info(
            "Game retention sweep completed",
            extra={
                "deleted_games": result.deleted_games,
                "deleted_blobs": result.deleted_image_blobs,
                "missing_blobs": result.missing_image_blobs,
            },
        )
        return result

    async def _sweep_orphaned_blobs(self) -> OrphanSweepResult:
        now = self._clock()
        candidates = [
            b for b in await self._blob_store.list_blobs() if is_image_file(b.key)
        ]
        async with self._session_factory() as db:
            referenced = set((await db.execute(
                select(Image.image_path),
            )).scalars().all())

        result = OrphanSweepResult(checked=len(candidates))
        for blob in candidates:
            if blob.key in referenced:
                continue
            if not is_past_grace(blob.modified_at, now, self.orphan_grace):
                result.skipped_recent += 1
                continue
            try:
                # False: removed concurrently by someone else
                if await self._blob_store.delete(blob.key):
                    result.deleted += 1
                    logger.info(
                        "Deleted orphaned image blob",
                        extra={"blob_key": blob.key},
                    )
            except BlobStorageError as e:
                result.failures.append(SweepFailure(blob.key, e.message))

        logger.info(
            "Orphaned blob sweep completed",
            extra={"checked": result.checked, "deleted_count": result.deleted},
        )
        return result


def _as_dict(outcome) -> dict:
    return outcome if isinstance(outcome, dict) else outcome.to_dict()
