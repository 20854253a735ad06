"""
Double-booking checks against a partial assignment grid.

Both checks look at every lesson already placed at the same (day, period),
across all classes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from timetabler.grid import AssignmentGrid


def teacher_busy(grid: AssignmentGrid, day: str, period_id: str, teacher_id: str) -> bool:
    """Rule 2: the teacher already takes another class at this time."""
    return any(value.teacher_id == teacher_id for value in grid.occupants(day, period_id))


def room_busy(grid: AssignmentGrid, day: str, period_id: str, room_id: str) -> bool:
    """Rule 3: another class already uses the room at this time."""
    return any(value.room_id == room_id for value in grid.occupants(day, period_id))
