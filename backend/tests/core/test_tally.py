"""Tally tests — ranking order, tie-breaks, zero-vote memes, legacy scores."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from app.core.tally import rank_memes, score_votes


@dataclass(frozen=True)
class _Meme:
    id: str
    created_at: datetime


T0 = datetime(2026, 5, 1, 20, 0)


def _rank(entries):
    return rank_memes(
        entries, created_at=lambda m: m.created_at, identity=lambda m: m.id,
    )


def test_descending_by_votes():
    m1 = _Meme("m1", T0)
    m2 = _Meme("m2", T0 + timedelta(seconds=1))
    ranked = _rank([(m1, 3), (m2, 5)])
    assert [(e.meme.id, e.votes) for e in ranked] == [("m2", 5), ("m1", 3)]
    assert [e.rank for e in ranked] == [1, 2]


def test_zero_votes_rank_last():
    old_unvoted = _Meme("a", T0 - timedelta(hours=1))
    voted = _Meme("b", T0)
    ranked = _rank([(old_unvoted, 0), (voted, 1)])
    assert [e.meme.id for e in ranked] == ["b", "a"]


def test_ties_broken_by_creation_time_then_id():
    late = _Meme("a", T0 + timedelta(minutes=5))
    early = _Meme("z", T0)
    same_time_b = _Meme("b", T0 + timedelta(minutes=1))
    same_time_c = _Meme("c", T0 + timedelta(minutes=1))
    ranked = _rank([(late, 2), (same_time_c, 2), (early, 2), (same_time_b, 2)])
    assert [e.meme.id for e in ranked] == ["z", "b", "c", "a"]


def test_equal_counts_share_competition_rank():
    memes = [_Meme(str(i), T0 + timedelta(seconds=i)) for i in range(4)]
    ranked = _rank([(memes[0], 4), (memes[1], 2), (memes[2], 2), (memes[3], 1)])
    assert [e.rank for e in ranked] == [1, 2, 2, 4]


def test_empty_input():
    assert _rank([]) == []


def test_score_votes_partitions_up_and_down():
    score = score_votes([True, True, False, None])
    assert (score.upvotes, score.downvotes) == (3, 1)
    assert score.total == 4
    assert score.score == 2


def test_score_votes_empty():
    score = score_votes([])
    assert score.total == 0 and score.score == 0
