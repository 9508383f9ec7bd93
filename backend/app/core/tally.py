"""Vote Tallying — pure ranking of memes and legacy up/down scores.

Invariants:
    - Ranking is descending by vote count
    - Ties broken by meme creation time (oldest first), then by meme id string
    - A meme with 0 votes ranks below every meme with >= 1 vote
    - Never raises on empty input

Design Decisions:
    - Generic over the meme object: callers pass ORM rows, tests pass plain tuples
    - Explicit secondary keys instead of relying on sort stability of query order
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Generic, Iterable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RankedEntry(Generic[T]):
    meme: T
    votes: int
    rank: int


@dataclass(frozen=True)
class MemeScore:
    """Legacy up/down vote summary."""
    upvotes: int
    downvotes: int

    @property
    def total(self) -> int:
        return self.upvotes + self.downvotes

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes


def rank_memes(
    entries: Iterable[tuple[T, int]],
    created_at: Callable[[T], datetime],
    identity: Callable[[T], object],
) -> list[RankedEntry[T]]:
    """Rank (meme, vote_count) pairs.

    Equal counts share a rank (1, 2, 2, 4 — competition ranking) but still
    appear in the deterministic tie-break order.
    """
    ordered = sorted(
        entries,
        key=lambda e: (-e[1], created_at(e[0]), str(identity(e[0]))),
    )
    ranked: list[RankedEntry[T]] = []
    for position, (meme, votes) in enumerate(ordered, start=1):
        if ranked and ranked[-1].votes == votes:
            rank = ranked[-1].rank
        else:
            rank = position
        ranked.append(RankedEntry(meme=meme, votes=votes, rank=rank))
    return ranked


def score_votes(vote_types: Iterable[bool | None]) -> MemeScore:
    """Partition legacy votes by vote type. None counts as an upvote."""
    up = down = 0
    for vote_type in vote_types:
        if vote_type is False:
            down += 1
        else:
            up += 1
    return MemeScore(upvotes=up, downvotes=down)
