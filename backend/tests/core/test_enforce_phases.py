"""Phase enforcement tests — pure tests for the game state machine and write gates.

Tests cover:
    next_status: forward-only, one step, terminal completed
    assert_phase: each phase unlocks exactly one write
    assert_joinable: joining only while collecting
    is_forward_transition, phase_deadline
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.domain_types import GameStatus, PHASE_ORDER
from app.core.enforce_phases import (
    assert_joinable,
    assert_phase,
    is_forward_transition,
    next_status,
    phase_deadline,
)
from app.core.errors import InvalidStateError


# --- next_status --------------------------------------------------------------

def test_next_status_walks_the_full_lifecycle():
    status = GameStatus.COLLECTING
    seen = [status]
    while status != GameStatus.COMPLETED:
        status = next_status(status)
        seen.append(status)
    assert tuple(seen) == PHASE_ORDER


def test_next_status_accepts_raw_strings():
    assert next_status("creating") == GameStatus.VOTING


def test_next_status_rejects_completed():
    with pytest.raises(InvalidStateError) as exc:
        next_status(GameStatus.COMPLETED)
    assert exc.value.current_status == "completed"
    assert exc.value.http_status == 400


@pytest.mark.parametrize("status", list(GameStatus)[:-1])
def test_next_status_never_skips_or_goes_back(status):
    new = next_status(status)
    assert PHASE_ORDER.index(new) == PHASE_ORDER.index(status) + 1


# --- assert_phase -------------------------------------------------------------

def test_assert_phase_passes_in_matching_phase():
    assert_phase(GameStatus.VOTING, GameStatus.VOTING)


def test_assert_phase_upload_blocked_after_collecting():
    with pytest.raises(InvalidStateError) as exc:
        assert_phase("creating", GameStatus.COLLECTING, game_id="g-1")
    err = exc.value
    assert "upload images" in err.message
    assert err.current_status == "creating"
    assert err.required_status == "collecting"
    assert err.context.game_id == "g-1"


def test_assert_phase_vote_blocked_while_creating():
    with pytest.raises(InvalidStateError, match="Cannot vote"):
        assert_phase(GameStatus.CREATING, GameStatus.VOTING)


def test_assert_phase_error_envelope_carries_statuses():
    with pytest.raises(InvalidStateError) as exc:
        assert_phase(GameStatus.COMPLETED, GameStatus.CREATING)
    body = exc.value.to_response()["error"]
    assert body["code"] == "INVALID_STATE"
    assert body["context"]["current_status"] == "completed"
    assert body["context"]["required_status"] == "creating"


# --- assert_joinable ----------------------------------------------------------

def test_join_allowed_while_collecting():
    assert_joinable(GameStatus.COLLECTING)


@pytest.mark.parametrize("status", ["creating", "voting", "completed"])
def test_join_rejected_after_collecting(status):
    with pytest.raises(InvalidStateError, match="can no longer be joined"):
        assert_joinable(status)


# --- transitions & deadlines --------------------------------------------------

def test_forward_transition_detection():
    assert is_forward_transition(GameStatus.COLLECTING, GameStatus.CREATING)
    assert not is_forward_transition(GameStatus.COLLECTING, GameStatus.VOTING)
    assert not is_forward_transition(GameStatus.VOTING, GameStatus.CREATING)
    assert not is_forward_transition(GameStatus.COMPLETED, GameStatus.COLLECTING)


def test_phase_deadline_adds_duration():
    now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert phase_deadline(now, 10) == now + timedelta(minutes=10)
