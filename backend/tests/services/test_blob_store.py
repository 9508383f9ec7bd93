"""Local blob store tests — atomic save, idempotent delete, listing."""

import pytest

from app.core.errors import BlobStorageError
from app.infrastructure.blob_store import LocalBlobStore


async def test_save_returns_flat_key_with_suffix(blob_store):
    key = await blob_store.save(b"abc", ".PNG")
    assert key.endswith(".png")
    assert "/" not in key
    assert (blob_store.root / key).read_bytes() == b"abc"


async def test_save_leaves_no_temp_files(blob_store):
    await blob_store.save(b"abc", ".gif")
    names = [p.name for p in blob_store.root.iterdir()]
    assert len(names) == 1
    assert not names[0].startswith(".")


async def test_delete_is_idempotent(blob_store):
    key = await blob_store.save(b"abc", ".jpg")
    assert await blob_store.delete(key) is True
    assert await blob_store.delete(key) is False
    assert not await blob_store.exists(key)


@pytest.mark.parametrize("key", ["", "..", "../etc/passwd", "a/b.png", "a\\b.png"])
async def test_rejects_path_like_keys(blob_store, key):
    with pytest.raises(BlobStorageError):
        await blob_store.delete(key)


async def test_list_blobs_skips_hidden_files(blob_store):
    key = await blob_store.save(b"12345", ".webp")
    (blob_store.root / ".upload-partial.tmp").write_bytes(b"x")

    blobs = await blob_store.list_blobs()

    assert [(b.key, b.size) for b in blobs] == [(key, 5)]
    assert blobs[0].modified_at.tzinfo is not None


async def test_creates_root_directory(tmp_path):
    store = LocalBlobStore(tmp_path / "nested" / "uploads")
    assert store.root.is_dir()
    assert await store.list_blobs() == []
