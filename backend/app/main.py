"""MemeVault API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery — ExMA anti-pattern)
    - Global error handlers map MemeVaultError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, blob store, audit sink, sweeper and scheduler created in the lifespan
      and torn down there, in reverse order

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Collaborators live on app.state and are reached through api/deps.py,
      so tests override them with dependency_overrides
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import admin, auth, games, health, legacy, uploads
from app.config import get_settings
from app.infrastructure.audit_log import DatabaseAuditSink
from app.infrastructure.blob_store import LocalBlobStore
from app.infrastructure.database import close_db, init_db
from app.infrastructure.observability import setup_logging
from app.infrastructure.scheduler import MaintenanceScheduler
from app.services.retention_sweeper import RetentionSweeper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    app.state.blob_store = LocalBlobStore(settings.upload_dir)
    app.state.audit_sink = DatabaseAuditSink(manager.session)
    app.state.sweeper = RetentionSweeper(
        manager.session,
        app.state.blob_store,
        app.state.audit_sink,
        retention_days=settings.game_retention_days,
        audit_retention_days=settings.audit_log_retention_days,
        storage_warning_bytes=settings.storage_warning_bytes,
        orphan_grace=timedelta(minutes=settings.orphan_grace_minutes),
    )
    scheduler = MaintenanceScheduler(
        app.state.sweeper,
        app.state.audit_sink,
        hour_utc=settings.cleanup_hour_utc,
        run_on_start=settings.run_cleanup_on_start,
    )
    if settings.cleanup_enabled:
        scheduler.start()
    logger.info("MemeVault API started")
    yield
    logger.info("MemeVault API shutting down")
    await scheduler.stop()
    await close_db()


app = FastAPI(
    title="MemeVault API", version="1.0.0", lifespan=lifespan,
)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes — explicit registration (ExMA: no convention-over-config)
app.include_router(health.router)
app.include_router(games.router)
app.include_router(legacy.router)
app.include_router(uploads.router)
app.include_router(auth.router)
app.include_router(admin.router)

register_error_handlers(app)
