"""
Scoring of finished attempts and the bounded pool of best candidates.

Score = ceiling - unplaced_penalty * unplaced - adjacency_penalty * repeats,
clamped at 0, where repeats counts neighbouring periods of one class on one
day that carry the same subject. With the default weights a single unplaced
lesson outweighs any realistic number of repeats.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from .data.models import CandidateSchedule, Period
from .grid import AssignmentGrid, SlotKey, grid_signature


# =============================================================================
# Weights
# =============================================================================

@dataclass(frozen=True)
class ScoreWeights:
    """Score ceiling and penalty weights."""
    ceiling: int = 10000
    unplaced: int = 1000  # Per lesson that could not be placed
    adjacent_same_subject: int = 6  # Per neighbouring pair with the same subject


DEFAULT_WEIGHTS = ScoreWeights()


# =============================================================================
# Scoring
# =============================================================================

def count_adjacent_repeats(
    grid: AssignmentGrid,
    class_ids: Sequence[str],
    days: Sequence[str],
    periods: Sequence[Period],
) -> int:
    """
    Neighbouring same-subject pairs, per class and day.

    Neighbours are consecutive entries of the period list; a break period or
    an empty cell between two lessons separates them.
    """
    repeats = 0
    for class_id in class_ids:
        for day in days:
            previous: Optional[str] = None
            for period in periods:
                value = grid.get(SlotKey(day, period.id, class_id))
                subject = value.subject_id if value is not None else None
                if subject is not None and subject == previous:
                    repeats += 1
                previous = subject
    return repeats


def score_schedule(
    grid: AssignmentGrid,
    class_ids: Sequence[str],
    days: Sequence[str],
    periods: Sequence[Period],
    unplaced: int,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> int:
    """Score a finished attempt; always within [0, weights.ceiling]."""
    penalty = unplaced * weights.unplaced
    penalty += count_adjacent_repeats(grid, class_ids, days, periods) * weights.adjacent_same_subject
    return max(0, weights.ceiling - penalty)


# =============================================================================
# Candidate Pool
# =============================================================================

def _rank(candidate: CandidateSchedule) -> tuple[int, int]:
    return (-candidate.score, candidate.unplaced)


class CandidatePool:
    """
    Top-K candidates, best first, de-duplicated by grid signature.

    A signature stays known after its candidate is evicted, so the same
    grid is never admitted twice within one run.
    """

    def __init__(self, keep: int):
        if keep < 1:
            raise ValueError(f"keep must be at least 1, got {keep}")
        self.keep = keep
        self.duplicates = 0
        self.evicted = 0
        self._candidates: list[CandidateSchedule] = []
        self._seen: set[str] = set()

    def offer(self, candidate: CandidateSchedule, signature: Optional[str] = None) -> bool:
        """
        Insert a candidate unless its grid was seen before.

        Args:
            candidate: Scored candidate
            signature: Precomputed grid signature, computed from slots if None

        Returns:
            False for a duplicate, True otherwise (even if it was
            immediately evicted for ranking last in a full pool)
        """
        if signature is None:
            signature = grid_signature(candidate.slots)
        if signature in self._seen:
            self.duplicates += 1
            return False

        self._seen.add(signature)
        self._candidates.append(candidate)
        self._candidates.sort(key=_rank)
        if len(self._candidates) > self.keep:
            self._candidates.pop()
            self.evicted += 1
        return True

    def is_known(self, signature: str) -> bool:
        return signature in self._seen

    @property
    def candidates(self) -> list[CandidateSchedule]:
        """Current pool, best first."""
        return list(self._candidates)

    @property
    def best(self) -> Optional[CandidateSchedule]:
        return self._candidates[0] if self._candidates else None

    def __len__(self) -> int:
        return len(self._candidates)

    def __iter__(self) -> Iterator[CandidateSchedule]:
        return iter(list(self._candidates))
