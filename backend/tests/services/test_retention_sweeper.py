"""Retention sweeper tests — expired game purge, orphan reclaim, single-flight."""

import asyncio
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from app.core.errors import ConcurrencyError, InputValidationError
from app.models.audit_log import AuditLog
from app.models.game import Game, GameParticipant
from app.models.image import Image
from app.models.meme import Meme
from app.models.vote import Vote
from app.services.retention_sweeper import RetentionSweeper

NOW = datetime.now(timezone.utc)
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def _seed_game(db, blob_store, status="completed", age_days=45, images=1):
    """Game with a roster, images on disk, one meme per image and a vote each."""
    game = Game(
        code=uuid4().hex[:6].upper(), name="old", creator="Alice",
        status=status, phase_end_time=NOW,
        created_at=NOW - timedelta(days=age_days),
    )
    game.participants.append(GameParticipant(display_name="Alice", position=0))
    db.add(game)
    await db.flush()
    keys = []
    for i in range(images):
        key = await blob_store.save(PNG, ".png")
        keys.append(key)
        image = Image(image_path=key, game_id=game.id)
        db.add(image)
        await db.flush()
        meme = Meme(image_id=image.id, game_id=game.id, top_text=f"t{i}")
        db.add(meme)
        await db.flush()
        db.add(Vote(meme_id=meme.id, game_id=game.id, ip_address=f"10.0.0.{i}"))
    await db.commit()
    return game, keys


async def _count(db, model):
    return await db.scalar(select(func.count()).select_from(model))


async def test_expired_completed_game_is_purged_with_dependents(
    test_db, blob_store, sweeper,
):
    game, keys = await _seed_game(test_db, blob_store, images=2)

    result = await sweeper.sweep_expired_games()

    assert result.deleted_games == 1
    assert result.deleted_image_blobs == 2
    assert result.missing_image_blobs == 0
    assert result.failures == []
    for key in keys:
        assert not await blob_store.exists(key)
    test_db.expire_all()
    for model in (Game, GameParticipant, Image, Meme, Vote):
        assert await _count(test_db, model) == 0


async def test_missing_blob_counts_as_missing_not_failure(
    test_db, blob_store, sweeper,
):
    _, keys = await _seed_game(test_db, blob_store, images=2)
    await blob_store.delete(keys[0])

    result = await sweeper.sweep_expired_games()

    assert result.deleted_games == 1
    assert result.deleted_image_blobs == 1
    assert result.missing_image_blobs == 1
    assert result.failed_image_blobs == 0


async def test_recent_and_unfinished_games_are_kept(test_db, blob_store, sweeper):
    await _seed_game(test_db, blob_store, status="completed", age_days=5)
    await _seed_game(test_db, blob_store, status="voting", age_days=45)

    result = await sweeper.sweep_expired_games()

    assert result.deleted_games == 0
    assert await _count(test_db, Game) == 2
    assert len(await blob_store.list_blobs()) == 2


async def test_retention_override(test_db, blob_store, sweeper):
    await _seed_game(test_db, blob_store, age_days=5)
    result = await sweeper.sweep_expired_games(retention_days=1)
    assert result.deleted_games == 1
    assert result.retention_days == 1


async def test_zero_retention_purges_every_completed_game(test_db, blob_store, sweeper):
    await _seed_game(test_db, blob_store, age_days=1)
    await _seed_game(test_db, blob_store, status="voting", age_days=1)

    result = await sweeper.sweep_expired_games(0)

    assert result.deleted_games == 1
    assert result.retention_days == 0
    assert await _count(test_db, Game) == 1


async def test_negative_retention_is_rejected(test_db, blob_store, sweeper):
    await _seed_game(test_db, blob_store, age_days=45)

    with pytest.raises(InputValidationError) as exc_info:
        await sweeper.sweep_expired_games(-1)

    assert exc_info.value.field == "retentionDays"
    assert not sweeper.is_running
    assert await _count(test_db, Game) == 1


async def test_several_expired_games(test_db, blob_store, sweeper):
    for _ in range(3):
        await _seed_game(test_db, blob_store)
    keep, keep_keys = await _seed_game(test_db, blob_store, age_days=1)

    result = await sweeper.sweep_expired_games()

    assert result.deleted_games == 3
    remaining = (await test_db.execute(select(Game.id))).scalars().all()
    assert remaining == [keep.id]
    assert [b.key for b in await blob_store.list_blobs()] == keep_keys


# --- Orphans ------------------------------------------------------------------

async def test_orphan_sweep_deletes_only_unreferenced_images(
    test_db, blob_store, sweeper,
):
    _, keys = await _seed_game(test_db, blob_store, status="creating", age_days=0)
    orphan = await blob_store.save(PNG, ".png")
    (blob_store.root / "notes.txt").write_text("not an image")

    result = await sweeper.sweep_orphaned_blobs()

    assert result.checked == 2
    assert result.deleted == 1
    assert not await blob_store.exists(orphan)
    assert await blob_store.exists(keys[0])
    assert (blob_store.root / "notes.txt").exists()


async def test_orphan_sweep_respects_grace_period(
    test_session_factory, blob_store, audit_sink,
):
    sweeper = RetentionSweeper(
        test_session_factory, blob_store, audit_sink,
        orphan_grace=timedelta(minutes=10),
    )
    fresh = await blob_store.save(PNG, ".jpg")

    result = await sweeper.sweep_orphaned_blobs()

    assert result.deleted == 0
    assert result.skipped_recent == 1
    assert await blob_store.exists(fresh)


# --- Storage / full sweep -----------------------------------------------------

async def test_storage_usage_threshold(test_session_factory, blob_store, audit_sink):
    sweeper = RetentionSweeper(
        test_session_factory, blob_store, audit_sink, storage_warning_bytes=10,
    )
    await blob_store.save(PNG, ".png")
    usage = await sweeper.report_storage_usage()
    assert usage.file_count == 1
    assert usage.total_bytes == len(PNG)
    assert usage.threshold_exceeded


async def test_full_sweep_summary(test_db, blob_store, sweeper):
    await _seed_game(test_db, blob_store)
    test_db.add(AuditLog(
        action="LOGIN_SUCCESS", timestamp=NOW - timedelta(days=120),
    ))
    await test_db.commit()

    summary = await sweeper.run_full_sweep()

    assert summary["success"] is True
    assert set(summary) == {"auditLogs", "games", "orphanedImages", "storage", "success"}
    assert summary["auditLogs"]["result"]["deleted"] == 1
    assert summary["games"]["result"]["deletedGames"] == 1
    assert summary["storage"]["result"]["fileCount"] == 0


async def test_full_sweep_isolates_failing_step(test_session_factory, blob_store):
    class BrokenAudit:
        async def record(self, *args, **kwargs):
            return None

        async def cleanup_older_than(self, days):
            raise RuntimeError("audit table locked")

    sweeper = RetentionSweeper(test_session_factory, blob_store, BrokenAudit())
    summary = await sweeper.run_full_sweep()

    assert summary["success"] is False
    assert summary["auditLogs"] == {"success": False, "error": "audit table locked"}
    assert summary["games"]["success"] is True
    assert summary["orphanedImages"]["success"] is True


async def test_second_sweep_while_running_is_rejected(test_session_factory, blob_store):
    release = asyncio.Event()

    class SlowAudit:
        async def record(self, *args, **kwargs):
            return None

        async def cleanup_older_than(self, days):
            await release.wait()
            return 0

    sweeper = RetentionSweeper(test_session_factory, blob_store, SlowAudit())
    first = asyncio.create_task(sweeper.run_full_sweep())
    await asyncio.sleep(0)
    assert sweeper.is_running

    with pytest.raises(ConcurrencyError):
        await sweeper.sweep_expired_games()

    release.set()
    summary = await first
    assert summary["success"] is True
    assert not sweeper.is_running


# --- End-to-end retention ------------------------------------------------------

async def test_old_finished_game_disappears_after_daily_sweep(
    test_db, blob_store, sweeper,
):
    game, _ = await _seed_game(test_db, blob_store, age_days=45)
    game_id = game.id
    summary = await sweeper.run_full_sweep()

    assert summary["games"]["result"]["deletedGames"] == 1
    assert summary["games"]["result"]["deletedImageBlobs"] == 1
    test_db.expire_all()
    assert await test_db.get(Game, game_id) is None
    assert await blob_store.list_blobs() == []
