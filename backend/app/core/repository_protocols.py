"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, tests can pass any object with the right shape
    - BlobStore.delete returns False for "already gone" instead of raising: purges must be idempotent
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from app.core.domain_types import UserId


@dataclass(frozen=True)
class BlobInfo:
    """One stored file as seen by the blob store listing."""
    key: str
    size: int
    modified_at: datetime


class BlobStore(Protocol):
    """Contract for the image blob store — implemented by shell."""
    async def save(self, data: bytes, suffix: str) -> str: ...
    async def delete(self, key: str) -> bool: ...
    async def exists(self, key: str) -> bool: ...
    async def list_blobs(self) -> list[BlobInfo]: ...


class AuditSink(Protocol):
    """Contract for the append-only audit record — implemented by shell."""
    async def record(
        self,
        action: str,
        details: dict[str, Any] | None = None,
        user_id: UserId | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None: ...
    async def cleanup_older_than(self, days: int) -> int: ...


@dataclass(frozen=True)
class RequestOrigin:
    """Where an audited call came from."""
    ip_address: str | None = None
    user_agent: str | None = None
