"""
Placement constraints for the candidate generator.

Rules are applied in order for one proposed (day, period, teacher, room):

1. Teacher blocked: the teacher is unavailable -> reject
2. Teacher busy: the teacher is already placed at that time -> reject
3. Room busy: the preferred room is taken -> keep the placement, drop the room

Teacher conflicts block a placement outright; a room conflict only forfeits
the preferred room.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from timetabler.grid import AssignmentGrid

from .availability import TeacherBlocklist, is_teacher_blocked
from .no_overlap import room_busy, teacher_busy


class RejectionReason(str, Enum):
    """Why a teacher cannot take a slot."""
    TEACHER_BLOCKED = "teacher_blocked"
    TEACHER_BUSY = "teacher_busy"


@dataclass(frozen=True)
class PlacementCheck:
    """Outcome of checking one proposed placement."""
    feasible: bool
    room_id: Optional[str] = None
    room_dropped: bool = False
    reason: Optional[RejectionReason] = None


@dataclass
class EvaluatorStats:
    """Counters over every check an evaluator has made."""
    checks: int = 0
    teacher_blocked: int = 0
    teacher_busy: int = 0
    rooms_dropped: int = 0

    @property
    def rejections(self) -> int:
        return self.teacher_blocked + self.teacher_busy


@dataclass
class ConstraintEvaluator:
    """
    Decides whether a teacher (and room) may take a slot in a partial grid.

    Usage:
        evaluator = ConstraintEvaluator(TeacherBlocklist(data.teacher_blocked))
        check = evaluator.check(grid, "Mon", "p1", "t1", room_id="r1")
        if check.feasible:
            ...  # place with check.room_id
    """
    blocklist: TeacherBlocklist = field(default_factory=TeacherBlocklist)
    stats: EvaluatorStats = field(default_factory=EvaluatorStats)

    def check(
        self,
        grid: AssignmentGrid,
        day: str,
        period_id: str,
        teacher_id: str,
        room_id: Optional[str] = None,
    ) -> PlacementCheck:
        self.stats.checks += 1

        if is_teacher_blocked(self.blocklist, teacher_id, day, period_id):
            self.stats.teacher_blocked += 1
            return PlacementCheck(feasible=False, reason=RejectionReason.TEACHER_BLOCKED)

        if teacher_busy(grid, day, period_id, teacher_id):
            self.stats.teacher_busy += 1
            return PlacementCheck(feasible=False, reason=RejectionReason.TEACHER_BUSY)

        if room_id and room_busy(grid, day, period_id, room_id):
            self.stats.rooms_dropped += 1
            return PlacementCheck(feasible=True, room_id=None, room_dropped=True)

        return PlacementCheck(feasible=True, room_id=room_id)


__all__ = [
    "ConstraintEvaluator",
    "EvaluatorStats",
    "PlacementCheck",
    "RejectionReason",
    "TeacherBlocklist",
    "is_teacher_blocked",
    "room_busy",
    "teacher_busy",
]
