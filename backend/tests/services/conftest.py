"""Service test fixtures — async DB, blob store, sweeper + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database and a fresh upload directory
    - get_db and the app.state collaborators are overridden (the lifespan does not run)
    - db_manager patched so readiness probes see the test engine

Design Decisions:
    - SQLite in-memory with StaticPool: every session shares the one connection,
      so the request session, audit sink and sweeper all see the same data
    - Sweeper orphan grace 0 in tests: files are reclaimable immediately
"""

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_audit_sink, get_blob_store, get_sweeper
from app.config import get_settings
from app.core.credentials import hash_password
from app.db.base import Base
from app.infrastructure.audit_log import DatabaseAuditSink
from app.infrastructure.blob_store import LocalBlobStore
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.models.user import User
from app.services.retention_sweeper import RetentionSweeper
import app.infrastructure.database as db_module
import app.models  # noqa: F401
from app.main import app


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(tmp_path / "uploads")


@pytest.fixture
def audit_sink(test_session_factory):
    return DatabaseAuditSink(test_session_factory)


@pytest.fixture
def sweeper(test_session_factory, blob_store, audit_sink):
    return RetentionSweeper(
        test_session_factory, blob_store, audit_sink,
        retention_days=30, orphan_grace=timedelta(0),
    )


@pytest.fixture
async def client(test_engine, test_session_factory, blob_store, audit_sink, sweeper):
    """FastAPI test client with DB and collaborator dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_audit_sink] = lambda: audit_sink
    app.dependency_overrides[get_sweeper] = lambda: sweeper

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


async def _create_user(test_db, username, password, role):
    user = User(
        username=username,
        password_hash=hash_password(password),
        role=role,
        active=True,
    )
    test_db.add(user)
    await test_db.commit()
    return user


@pytest.fixture
async def admin_user(test_db):
    return await _create_user(test_db, "root-admin", "admin-password", "admin")


@pytest.fixture
async def plain_user(test_db):
    return await _create_user(test_db, "player1", "player-password", "user")


@pytest.fixture
async def admin_headers(client, admin_user):
    res = await client.post(
        "/api/v1/auth/login",
        json={"username": "root-admin", "password": "admin-password"},
    )
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture
async def user_headers(client, plain_user):
    res = await client.post(
        "/api/v1/auth/login",
        json={"username": "player1", "password": "player-password"},
    )
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}
