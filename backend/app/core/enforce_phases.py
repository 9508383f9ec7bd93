"""Phase Transition Enforcement — the game state machine and per-phase write gates.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Status only moves forward along PHASE_ORDER, one step at a time
    - No transition out of COMPLETED
    - Phase transitions are caller-initiated, never automatic (deadlines are advisory)

Design Decisions:
    - Raise InvalidStateError (not return dicts): route handlers surface the error
      envelope directly and phase violations are never retried
    - Deadline computed here so advance and create share one definition
"""

from datetime import datetime, timedelta

from app.core.domain_types import GameStatus, PHASE_ORDER, PHASE_ACTIONS
from app.core.errors import InvalidStateError, ErrorContext


def next_status(current: GameStatus) -> GameStatus:
    """Return the single phase after `current`.

    Raises InvalidStateError when the game is already completed.
    """
    current = GameStatus(current)
    if current == GameStatus.COMPLETED:
        raise InvalidStateError(
            "Game is already completed",
            current_status=current.value,
        )
    return PHASE_ORDER[PHASE_ORDER.index(current) + 1]


def assert_phase(
    current: GameStatus | str,
    required: GameStatus,
    game_id: str | None = None,
) -> None:
    """Guard for phase-scoped writes.

    collecting -> image upload, creating -> meme creation, voting -> vote.
    """
    current = GameStatus(current)
    if current == required:
        return
    action = PHASE_ACTIONS.get(required, "perform this action")
    raise InvalidStateError(
        f"Cannot {action} while the game is in the '{current.value}' phase "
        f"(requires '{required.value}')",
        current_status=current.value,
        required_status=required.value,
        context=ErrorContext(game_id=game_id),
    )


def assert_joinable(current: GameStatus | str, game_id: str | None = None) -> None:
    """Players may only join while images are being collected."""
    current = GameStatus(current)
    if current != GameStatus.COLLECTING:
        raise InvalidStateError(
            "This game can no longer be joined",
            current_status=current.value,
            required_status=GameStatus.COLLECTING.value,
            context=ErrorContext(game_id=game_id),
        )


def phase_deadline(now: datetime, duration_minutes: int) -> datetime:
    """Advisory end time for a phase starting at `now`."""
    return now + timedelta(minutes=duration_minutes)


def is_forward_transition(old: GameStatus, new: GameStatus) -> bool:
    """True when `new` is exactly one step after `old`."""
    old, new = GameStatus(old), GameStatus(new)
    if old == GameStatus.COMPLETED:
        return False
    return PHASE_ORDER.index(new) == PHASE_ORDER.index(old) + 1
