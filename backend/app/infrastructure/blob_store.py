"""Local Blob Store — image files on disk behind the BlobStore protocol.

Invariants:
    - Keys are flat file names (uuid4 hex + extension); no path separators accepted
    - save() is atomic: write to a temp file in the same directory, then os.replace
    - delete() is idempotent: a missing file returns False, never raises
    - All filesystem calls run in a worker thread (asyncio.to_thread)

Design Decisions:
    - Flat directory over sharded tree: the orphan sweep lists one directory
    - OSError mapped to BlobStorageError (core/errors.py) so routes render one envelope
"""

import asyncio
import logging
import os
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path

from app.core.errors import BlobStorageError
from app.core.repository_protocols import BlobInfo

logger = logging.getLogger(__name__)


class LocalBlobStore:
    """Filesystem-backed blob store rooted at one upload directory."""

    def __init__(self, root: str | os.PathLike):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        if not key or key in (".", "..") or "/" in key or "\\" in key:
            raise BlobStorageError("Invalid blob key", key)
        return self.root / key

    async def save(self, data: bytes, suffix: str) -> str:
        key = f"{uuid.uuid4().hex}{suffix.lower()}"
        target = self.path_for(key)
        try:
            await asyncio.to_thread(self._write_atomic, target, data)
        except OSError as e:
            logger.error(f"Blob write failed: {e}", extra={"blob_key": key})
            raise BlobStorageError("write failed", key)
        return key

    def _write_atomic(self, target: Path, data: bytes) -> None:
        fd, tmp = tempfile.mkstemp(dir=self.root, prefix=".upload-", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp, target)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise

    async def delete(self, key: str) -> bool:
        target = self.path_for(key)
        try:
            await asyncio.to_thread(target.unlink)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Blob delete failed: {e}", extra={"blob_key": key})
            raise BlobStorageError("delete failed", key)
        return True

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self.path_for(key).is_file)

    async def is_writable(self) -> bool:
        """Readiness: the upload directory exists and accepts new files."""
        return await asyncio.to_thread(
            lambda: self.root.is_dir() and os.access(self.root, os.W_OK),
        )

    async def list_blobs(self) -> list[BlobInfo]:
        try:
            return await asyncio.to_thread(self._scan)
        except OSError as e:
            logger.error(f"Blob listing failed: {e}")
            raise BlobStorageError("listing failed")

    def _scan(self) -> list[BlobInfo]:
        blobs = []
        with os.scandir(self.root) as entries:
            for entry in entries:
                # Temp files of in-flight writes are not blobs
                if entry.name.startswith(".") or not entry.is_file():
                    continue
                try:
                    st = entry.stat()
                except FileNotFoundError:
                    continue
                blobs.append(BlobInfo(
                    key=entry.name,
                    size=st.st_size,
                    modified_at=datetime.fromtimestamp(st.st_mtime, timezone.utc),
                ))
        return blobs
