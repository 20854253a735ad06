"""Tests for teacher and room double-booking checks."""

from __future__ import annotations

import pytest

from timetabler.constraints.no_overlap import room_busy, teacher_busy
from timetabler.data.models import Period, SlotValue
from timetabler.grid import AssignmentGrid, SlotKey


@pytest.fixture
def grid() -> AssignmentGrid:
    grid = AssignmentGrid.empty(
        ["Mon", "Tue"],
        [Period(id="p1", label="P1"), Period(id="p2", label="P2")],
        ["7a", "7b"],
    )
    grid.assign(SlotKey("Mon", "p1", "7a"), SlotValue(subject_id="mat", teacher_id="t1", room_id="r1"))
    return grid


class TestTeacherBusy:
    """Tests for teacher double-booking."""

    def test_busy_in_other_class(self, grid):
        assert teacher_busy(grid, "Mon", "p1", "t1")

    def test_free_at_other_times(self, grid):
        assert not teacher_busy(grid, "Mon", "p2", "t1")
        assert not teacher_busy(grid, "Tue", "p1", "t1")

    def test_other_teacher_free(self, grid):
        assert not teacher_busy(grid, "Mon", "p1", "t2")


class TestRoomBusy:
    """Tests for room double-booking."""

    def test_room_taken(self, grid):
        assert room_busy(grid, "Mon", "p1", "r1")

    def test_room_free(self, grid):
        assert not room_busy(grid, "Mon", "p1", "r2")
        assert not room_busy(grid, "Mon", "p2", "r1")

    def test_lesson_without_room(self, grid):
        grid.assign(SlotKey("Tue", "p2", "7b"), SlotValue(subject_id="eng", teacher_id="t2"))
        assert not room_busy(grid, "Tue", "p2", "r1")
