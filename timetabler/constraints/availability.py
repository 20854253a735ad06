"""
Teacher availability.

A teacher's blocklist holds the (day, period) pairs they cannot teach,
encoded as "day|periodId" exactly as the availability editor stores them.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from timetabler.data.models import blocked_key


class TeacherBlocklist:
    """Read-only view over teacher_id -> blocked 'day|periodId' keys."""

    def __init__(self, blocked: Optional[Mapping[str, Sequence[str]]] = None):
        self._blocked: dict[str, frozenset[str]] = {
            teacher_id: frozenset(keys) for teacher_id, keys in (blocked or {}).items()
        }

    def is_blocked(self, teacher_id: str, day: str, period_id: str) -> bool:
        """Whether the teacher is unavailable at (day, period)."""
        keys = self._blocked.get(teacher_id)
        return bool(keys) and blocked_key(day, period_id) in keys

    def blocked_count(self, teacher_id: str) -> int:
        return len(self._blocked.get(teacher_id, ()))

    def __contains__(self, teacher_id: object) -> bool:
        return teacher_id in self._blocked

    def __len__(self) -> int:
        return len(self._blocked)


def is_teacher_blocked(blocklist: TeacherBlocklist, teacher_id: str, day: str, period_id: str) -> bool:
    """Rule 1: the slot is on the teacher's blocklist."""
    return blocklist.is_blocked(teacher_id, day, period_id)
