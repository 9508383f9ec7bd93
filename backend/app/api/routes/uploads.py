"""Upload Routes — serves stored image blobs by key.

Invariants:
    - GET /api/v1/uploads/{key} streams the file for any imagePath the API handed out
    - Unknown keys and keys that are not flat file names are both 404, never a path lookup
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from app.api.deps import get_blob_store
from app.core.errors import BlobStorageError, ResourceNotFoundError
from app.infrastructure.blob_store import LocalBlobStore

router = APIRouter(prefix="/api/v1/uploads", tags=["uploads"])


@router.get("/{key}")
async def download_upload(
    key: str, blob_store: LocalBlobStore = Depends(get_blob_store),
):
    try:
        path = blob_store.path_for(key)
    except BlobStorageError:
        raise ResourceNotFoundError("Upload", key)
    if not await blob_store.exists(key):
        raise ResourceNotFoundError("Upload", key)
    return FileResponse(path)
