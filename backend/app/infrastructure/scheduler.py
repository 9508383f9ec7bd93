"""Maintenance Scheduler — runs the full retention sweep once a day in-process.

Invariants:
    - At most one scheduler task per process (start() is idempotent)
    - A failing sweep is logged and the loop continues: it never crashes the process
    - stop() cancels the task and waits for it to finish

Design Decisions:
    - asyncio task started from the FastAPI lifespan instead of an external cron:
      single-process deployment, no extra moving parts
    - Sweeps are serialized with admin-triggered ones by the sweeper's own lock;
      an overlap surfaces here as ConcurrencyError and is skipped until the next day
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable

from app.core.domain_types import AuditAction
from app.core.errors import ConcurrencyError
from app.core.repository_protocols import AuditSink
from app.core.retention import seconds_until_next_run

logger = logging.getLogger(__name__)


class MaintenanceScheduler:
    """Daily trigger for RetentionSweeper.run_full_sweep()."""

    def __init__(
        self,
        sweeper,
        audit_sink: AuditSink,
        hour_utc: int = 0,
        run_on_start: bool = False,
        clock: Callable[[], datetime] | None = None,
    ):
        self._sweeper = sweeper
        self._audit_sink = audit_sink
        self.hour_utc = hour_utc
        self.run_on_start = run_on_start
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self.running:
            logger.warning("Maintenance scheduler already running")
            return self._task
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Maintenance scheduler started (daily at {self.hour_utc:02d}:00 UTC)")
        return self._task

    async def stop(self) -> None:
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Maintenance scheduler stopped")

    async def run_once(self) -> dict | None:
        """One scheduled run. Returns the sweep summary, or None when skipped or failed."""
        try:
            summary = await self._sweeper.run_full_sweep()
        except ConcurrencyError:
            logger.warning("Scheduled cleanup skipped: another sweep is running")
            return None
        except Exception as e:
            logger.error(f"Scheduled cleanup failed: {e}", exc_info=True)
            return None
        await self._audit_sink.record(
            AuditAction.SYSTEM_SCHEDULED_CLEANUP.value,
            {"success": summary.get("success", False)},
        )
        return summary

    async def _loop(self) -> None:
        if self.run_on_start:
            await self.run_once()
        while True:
            delay = seconds_until_next_run(self._clock(), self.hour_utc)
            await asyncio.sleep(delay)
            await self.run_once()
