"""Retention rule tests — cutoffs, image detection, grace period, result records."""

from datetime import datetime, timedelta, timezone

from app.core.retention import (
    GameSweepResult, OrphanSweepResult, PurgeResult, StorageUsage, SweepFailure,
    is_image_file, is_past_grace, retention_cutoff, seconds_until_next_run,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def test_retention_cutoff():
    assert retention_cutoff(NOW, 30) == NOW - timedelta(days=30)


def test_image_detection_is_case_insensitive():
    assert is_image_file("a.JPG")
    assert is_image_file("b.jpeg")
    assert is_image_file("c.Png")
    assert is_image_file("d.gif")
    assert not is_image_file("notes.txt")
    assert not is_image_file("jpg")


def test_grace_period():
    grace = timedelta(minutes=10)
    assert not is_past_grace(NOW - timedelta(minutes=5), NOW, grace)
    assert is_past_grace(NOW - timedelta(minutes=10), NOW, grace)
    assert is_past_grace(NOW, NOW, timedelta(0))


def test_next_run_later_today():
    now = datetime(2026, 3, 15, 1, 30, tzinfo=timezone.utc)
    assert seconds_until_next_run(now, 2) == 30 * 60


def test_next_run_rolls_to_tomorrow():
    assert seconds_until_next_run(NOW, 0) == 12 * 3600
    assert seconds_until_next_run(NOW.replace(hour=0), 0) == 24 * 3600


def test_game_sweep_result_aggregates_purges():
    result = GameSweepResult(retention_days=30)
    result.add(PurgeResult(game_id="g1", deleted_blobs=2, missing_blobs=1))
    result.add(PurgeResult(game_id="g2", failed_blobs=1))
    result.failures.append(SweepFailure("g3", "boom"))
    body = result.to_dict()
    assert body["deletedGames"] == 2
    assert body["deletedImageBlobs"] == 2
    assert body["missingImageBlobs"] == 1
    assert body["failedImageBlobs"] == 1
    assert body["failures"] == [{"target": "g3", "error": "boom"}]


def test_orphan_result_dict():
    body = OrphanSweepResult(checked=3, deleted=1, skipped_recent=1).to_dict()
    assert body == {"checked": 3, "deleted": 1, "skippedRecent": 1, "failures": []}


def test_storage_usage_threshold():
    usage = StorageUsage(file_count=2, total_bytes=3 * 1024 * 1024, threshold_bytes=1024)
    assert usage.total_megabytes == 3.0
    assert usage.threshold_exceeded
    assert not StorageUsage(1, 10, 10).threshold_exceeded
