"""Retention Rules — pure helpers and result records for the retention sweeper.

Invariants:
    - No IO: callers feed timestamps, file names and sizes in
    - A blob is an image candidate only by extension (case-insensitive)
    - Result records serialize to camelCase dicts for the admin API

Design Decisions:
    - Dataclasses over Pydantic: these are internal results, the route layer
      decides the wire shape via to_dict()
    - Missing blobs are counted separately from failed deletions: "already gone"
      is success for an idempotent purge
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import PurePath

from app.core.domain_types import IMAGE_EXTENSIONS

BYTES_PER_MB = 1024 * 1024


def retention_cutoff(now: datetime, retention_days: int) -> datetime:
    """Games created before this instant are expired."""
    return now - timedelta(days=retention_days)


def is_image_file(name: str) -> bool:
    return PurePath(name).suffix.lower() in IMAGE_EXTENSIONS


def is_past_grace(modified_at: datetime, now: datetime, grace: timedelta) -> bool:
    """Blobs younger than the grace period may belong to an in-flight upload."""
    return now - modified_at >= grace


def seconds_until_next_run(now: datetime, hour: int) -> float:
    """Seconds from `now` until the next occurrence of HH:00 (same tz as now)."""
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


# --- Result records -----------------------------------------------------------

@dataclass
class PurgeResult:
    """Outcome of purging one game and everything it owns."""
    game_id: str
    deleted_blobs: int = 0
    missing_blobs: int = 0
    failed_blobs: int = 0
    deleted_images: int = 0
    deleted_memes: int = 0
    deleted_votes: int = 0


@dataclass
class SweepFailure:
    """One unit of work that failed inside a batch."""
    target: str
    error: str


@dataclass
class GameSweepResult:
    deleted_games: int = 0
    deleted_image_blobs: int = 0
    missing_image_blobs: int = 0
    failed_image_blobs: int = 0
    retention_days: int = 0
    failures: list[SweepFailure] = field(default_factory=list)

    def add(self, purge: PurgeResult) -> None:
        self.deleted_games += 1
        self.deleted_image_blobs += purge.deleted_blobs
        self.missing_image_blobs += purge.missing_blobs
        self.failed_image_blobs += purge.failed_blobs

    def to_dict(self) -> dict:
        return {
            "deletedGames": self.deleted_games,
            "deletedImageBlobs": self.deleted_image_blobs,
            "missingImageBlobs": self.missing_image_blobs,
            "failedImageBlobs": self.failed_image_blobs,
            "retentionDays": self.retention_days,
            "failures": [
                {"target": f.target, "error": f.error} for f in self.failures
            ],
        }


@dataclass
class OrphanSweepResult:
    checked: int = 0
    deleted: int = 0
    skipped_recent: int = 0
    failures: list[SweepFailure] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "checked": self.checked,
            "deleted": self.deleted,
            "skippedRecent": self.skipped_recent,
            "failures": [
                {"target": f.target, "error": f.error} for f in self.failures
            ],
        }


@dataclass
class StorageUsage:
    file_count: int
    total_bytes: int
    threshold_bytes: int

    @property
    def total_megabytes(self) -> float:
        return round(self.total_bytes / BYTES_PER_MB, 2)

    @property
    def threshold_exceeded(self) -> bool:
        return self.total_bytes > self.threshold_bytes

    def to_dict(self) -> dict:
        return {
            "fileCount": self.file_count,
            "totalBytes": self.total_bytes,
            "totalMegabytes": self.total_megabytes,
            "thresholdBytes": self.threshold_bytes,
            "thresholdExceeded": self.threshold_exceeded,
        }
