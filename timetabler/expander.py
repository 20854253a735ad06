"""Expand per-class subject requirements into atomic lesson tasks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .data.models import Requirement


@dataclass(frozen=True)
class LessonTask:
    """One period of instruction that has to be placed somewhere."""
    class_id: str
    subject_id: str
    allowed_teacher_ids: tuple[str, ...]
    preferred_room_id: Optional[str] = None
    requirement_id: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.subject_id} for {self.class_id}"


def expand_requirements(requirements: Iterable[Requirement], teacher_ids: Sequence[str]) -> list[LessonTask]:
    """
    Build one LessonTask per required occurrence.

    A requirement with no allowed teachers may be taught by any known
    teacher. The result is sorted so the most constrained lessons (fewest
    allowed teachers) come first; the sort is stable, so ties keep
    requirement order.

    Args:
        requirements: Requirements from the editor
        teacher_ids: Every known teacher, used when a requirement allows any

    Returns:
        Lesson tasks, len == sum of periods_per_cycle
    """
    all_teachers = tuple(teacher_ids)
    tasks: list[LessonTask] = []

    for req in requirements:
        allowed = tuple(req.allowed_teacher_ids) if req.allowed_teacher_ids else all_teachers
        task = LessonTask(
            class_id=req.class_id,
            subject_id=req.subject_id,
            allowed_teacher_ids=allowed,
            preferred_room_id=req.preferred_room_id,
            requirement_id=req.id,
        )
        tasks.extend([task] * req.periods_per_cycle)

    tasks.sort(key=lambda t: len(t.allowed_teacher_ids))
    return tasks
