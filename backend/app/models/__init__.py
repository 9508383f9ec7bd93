"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Game is the aggregate root of game mode; images/memes/votes with game_id NULL are legacy mode

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from app.models.game import Game, GameParticipant  # noqa: F401
from app.models.image import Image  # noqa: F401
from app.models.meme import Meme  # noqa: F401
from app.models.vote import Vote  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.audit_log import AuditLog  # noqa: F401
from app.models.auth_token import AuthToken  # noqa: F401
