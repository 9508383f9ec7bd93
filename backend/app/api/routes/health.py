"""Health Probes — liveness and readiness for container orchestration.

Invariants:
    - GET /health/ answers 200 whenever the process can serve requests
    - GET /health/ready answers 503 unless the database AND the upload directory are usable

Design Decisions:
    - db_manager read through the module at call time: it is created in the lifespan,
      after this module is imported
    - Readiness reports every check, not only the first failure
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.api.deps import get_blob_store
from app.infrastructure import database
from app.infrastructure.blob_store import LocalBlobStore

SERVICE_NAME = "memevault-api"
SERVICE_VERSION = "1.0.0"

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }


@router.get("/ready")
async def readiness_check(blob_store: LocalBlobStore = Depends(get_blob_store)):
    manager = database.db_manager
    checks = {
        "database": manager is not None and await manager.health_check(),
        "storage": await blob_store.is_writable(),
    }
    body = {
        "status": "ready" if all(checks.values()) else "not_ready",
        "checks": {
            name: "healthy" if ok else "unavailable" for name, ok in checks.items()
        },
    }
    if not all(checks.values()):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body,
        )
    return body
