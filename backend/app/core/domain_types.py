"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - GameId, ImageId, MemeId, VoteId, UserId wrap UUIDs at the core boundary
    - All valid states encoded as Enums — no raw string matching
    - PHASE_ORDER is the single source of truth for the game lifecycle

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders, stored as plain strings in the DB
"""

import string
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

GameId = NewType("GameId", UUID)
ImageId = NewType("ImageId", UUID)
MemeId = NewType("MemeId", UUID)
VoteId = NewType("VoteId", UUID)
UserId = NewType("UserId", UUID)


# ─── Value Types ─────────────────────────────────────────────────

GameCode = NewType("GameCode", str)       # 6 chars, [A-Z0-9]
OriginAddress = NewType("OriginAddress", str)  # voter/uploader fingerprint


# ─── Enums ───────────────────────────────────────────────────────

class GameStatus(str, Enum):
    """Game lifecycle phases — maps to DB `status` column."""
    COLLECTING = "collecting"
    CREATING = "creating"
    VOTING = "voting"
    COMPLETED = "completed"


class UserRole(str, Enum):
    """Identity store roles."""
    ADMIN = "admin"
    USER = "user"


class CleanupType(str, Enum):
    """Manual maintenance targets exposed to admins."""
    GAMES = "games"
    IMAGES = "images"
    ALL = "all"


class AuditAction(str, Enum):
    """Audit event names. Admin actions carry the ADMIN_ prefix."""
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    PASSWORD_CHANGE_FAILED = "PASSWORD_CHANGE_FAILED"
    UNAUTHORIZED_ACCESS_ATTEMPT = "UNAUTHORIZED_ACCESS_ATTEMPT"
    ADMIN_CREATED = "ADMIN_CREATED"
    ADMIN_VIEWED_ALL_GAMES = "ADMIN_VIEWED_ALL_GAMES"
    ADMIN_CHANGED_GAME_STATUS = "ADMIN_CHANGED_GAME_STATUS"
    ADMIN_DELETED_GAME = "ADMIN_DELETED_GAME"
    ADMIN_INITIATED_CLEANUP = "ADMIN_INITIATED_CLEANUP"
    ADMIN_CREATED_USER = "ADMIN_CREATED_USER"
    ADMIN_TOGGLED_USER_STATUS = "ADMIN_TOGGLED_USER_STATUS"
    ADMIN_DELETED_USER = "ADMIN_DELETED_USER"
    SYSTEM_SCHEDULED_CLEANUP = "SYSTEM_SCHEDULED_CLEANUP"


# ─── Lifecycle ───────────────────────────────────────────────────

PHASE_ORDER: tuple[GameStatus, ...] = (
    GameStatus.COLLECTING,
    GameStatus.CREATING,
    GameStatus.VOTING,
    GameStatus.COMPLETED,
)

# Which write each phase unlocks
PHASE_ACTIONS: dict[GameStatus, str] = {
    GameStatus.COLLECTING: "upload images",
    GameStatus.CREATING: "create memes",
    GameStatus.VOTING: "vote",
}


# ─── Constants ───────────────────────────────────────────────────

GAME_CODE_LENGTH = 6
GAME_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 10

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif"})
DEFAULT_IMAGE_TITLE = "Untitled"

MIN_USERNAME_LENGTH = 4
MIN_PASSWORD_LENGTH = 8
