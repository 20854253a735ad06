"""Tests for the time model builder."""

from __future__ import annotations

import pytest

from timetabler.data.models import Period, SchoolBreak, parse_hhmm
from timetabler.timing import (
    Interval,
    TimeModelError,
    build_computed_periods,
    build_timeline_rows,
    resolve_periods,
    subtract_breaks,
    validate_breaks,
    validate_manual_periods,
)


def make_break(start: str, end: str, name: str = "Lunch", break_id: str = "b1") -> SchoolBreak:
    return SchoolBreak(id=break_id, name=name, start_time=start, end_time=end)


def durations(periods: list[Period]) -> list[int]:
    return [p.duration_minutes for p in periods]


class TestBuildComputedPeriods:
    """Tests for computed period layouts."""

    def test_day_with_lunch_break(self):
        """08:30-15:00 with lunch 12:00-12:30 and 7 periods."""
        periods = build_computed_periods("08:30", "15:00", 7, [make_break("12:00", "12:30")])

        assert [p.id for p in periods] == [f"p{i}" for i in range(1, 8)]
        assert [p.label for p in periods] == [f"P{i}" for i in range(1, 8)]
        assert not any(p.is_break for p in periods)

        # 210 minutes before lunch take 4 periods, 150 after take 3
        assert durations(periods) == [53, 53, 52, 52, 50, 50, 50]
        assert periods[0].start == "08:30"
        assert periods[3].end == "12:00"
        assert periods[4].start == "12:30"
        assert periods[-1].end == "15:00"

    def test_not_enough_minutes(self):
        with pytest.raises(TimeModelError) as exc_info:
            build_computed_periods("08:00", "08:40", 3, [])
        assert str(exc_info.value) == (
            "Not enough instructional minutes. Need at least 60 minutes, have 40 (20 short)."
        )

    def test_no_breaks_even_split(self):
        periods = build_computed_periods("09:00", "12:00", 3, [])
        assert durations(periods) == [60, 60, 60]
        assert [(p.start, p.end) for p in periods] == [
            ("09:00", "10:00"), ("10:00", "11:00"), ("11:00", "12:00"),
        ]

    def test_remainder_goes_to_earliest_periods(self):
        periods = build_computed_periods("09:00", "10:40", 3, [])
        assert durations(periods) == [34, 33, 33]

    @pytest.mark.parametrize("count", [1, 4, 6, 8, 10])
    def test_layout_properties(self, count):
        breaks = [
            make_break("10:30", "10:45", "Recess", "b1"),
            make_break("12:30", "13:10", "Lunch", "b2"),
        ]
        periods = build_computed_periods("08:30", "15:00", count, breaks)

        assert len(periods) == count
        assert all(p.duration_minutes >= 20 for p in periods)
        for prev, cur in zip(periods, periods[1:]):
            assert parse_hhmm(prev.end) <= parse_hhmm(cur.start)
        for period in periods:
            for br in breaks:
                assert period.end_minutes <= br.start_minutes or period.start_minutes >= br.end_minutes

    def test_short_interval_is_skipped(self):
        """A 10-minute gap before the break cannot hold a 20-minute period."""
        periods = build_computed_periods("08:50", "12:00", 3, [make_break("09:00", "09:30", "Assembly")])
        assert len(periods) == 3
        assert periods[0].start == "09:30"
        assert all(p.duration_minutes >= 20 for p in periods)

    def test_custom_minimum(self):
        with pytest.raises(TimeModelError):
            build_computed_periods("09:00", "12:00", 4, [], min_period_minutes=50)
        assert len(build_computed_periods("09:00", "12:00", 4, [], min_period_minutes=45)) == 4

    def test_zero_periods_rejected(self):
        with pytest.raises(TimeModelError) as exc_info:
            build_computed_periods("09:00", "12:00", 0, [])
        assert "at least 1" in str(exc_info.value)

    def test_invalid_window(self):
        with pytest.raises(TimeModelError) as exc_info:
            build_computed_periods("15:00", "08:30", 3, [])
        assert str(exc_info.value) == "School start time must be before end time."

        with pytest.raises(TimeModelError) as exc_info:
            build_computed_periods("8.30", "15:00", 3, [])
        assert str(exc_info.value) == "Invalid school start/end time."

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            build_computed_periods("08:00", "08:40", 3, [])


class TestValidateBreaks:
    """Tests for break validation."""

    def test_valid_breaks(self):
        validate_breaks(
            [make_break("10:30", "10:45", "Recess", "b1"), make_break("12:30", "13:10", "Lunch", "b2")],
            "08:30", "15:00",
        )

    def test_invalid_time(self):
        with pytest.raises(TimeModelError) as exc_info:
            validate_breaks([make_break("noon", "12:30")], "08:30", "15:00")
        assert str(exc_info.value) == "Invalid break time in Lunch."

    def test_start_after_end(self):
        with pytest.raises(TimeModelError) as exc_info:
            validate_breaks([make_break("12:30", "12:00")], "08:30", "15:00")
        assert str(exc_info.value) == "Lunch: start must be before end."

    def test_outside_window(self):
        with pytest.raises(TimeModelError) as exc_info:
            validate_breaks([make_break("08:00", "08:45")], "08:30", "15:00")
        assert str(exc_info.value) == "Lunch: must be within school day window."

    def test_overlap(self):
        breaks = [
            make_break("12:00", "12:30", "Lunch", "b1"),
            make_break("10:30", "10:45", "Recess", "b2"),
            make_break("12:15", "12:45", "Clubs", "b3"),
        ]
        with pytest.raises(TimeModelError) as exc_info:
            validate_breaks(breaks, "08:30", "15:00")
        assert str(exc_info.value) == "Break overlap detected between Lunch and Clubs."

    def test_touching_breaks_allowed(self):
        validate_breaks(
            [make_break("12:00", "12:30", "Lunch", "b1"), make_break("12:30", "12:45", "Clubs", "b2")],
            "08:30", "15:00",
        )


class TestValidateManualPeriods:
    """Tests for hand-edited period lists."""

    def test_valid(self):
        periods = [
            Period(id="p1", label="P1", start="09:00", end="10:00"),
            Period(id="p2", label="P2", start="10:30", end="11:30"),
        ]
        validate_manual_periods(periods, "09:00", "12:00", [make_break("10:00", "10:30")])

    def test_empty(self):
        with pytest.raises(TimeModelError) as exc_info:
            validate_manual_periods([], "09:00", "12:00", [])
        assert str(exc_info.value) == "Add at least one period."

    def test_missing_time(self):
        with pytest.raises(TimeModelError) as exc_info:
            validate_manual_periods([Period(id="p1", label="P1", start="09:00")], "09:00", "12:00", [])
        assert str(exc_info.value) == "P1: invalid time format."

    def test_outside_day(self):
        with pytest.raises(TimeModelError) as exc_info:
            validate_manual_periods(
                [Period(id="p1", label="P1", start="11:30", end="12:30")], "09:00", "12:00", [],
            )
        assert str(exc_info.value) == "P1: must be within school day."

    def test_overlapping_periods(self):
        periods = [
            Period(id="p1", label="P1", start="09:00", end="10:00"),
            Period(id="p2", label="P2", start="09:30", end="10:30"),
        ]
        with pytest.raises(TimeModelError) as exc_info:
            validate_manual_periods(periods, "09:00", "12:00", [])
        assert str(exc_info.value) == "P2 overlaps with P1."

    def test_overlaps_break(self):
        periods = [Period(id="p1", label="P1", start="09:45", end="10:15")]
        with pytest.raises(TimeModelError) as exc_info:
            validate_manual_periods(periods, "09:00", "12:00", [make_break("10:00", "10:30")])
        assert str(exc_info.value) == 'P1 overlaps with break "Lunch".'


class TestIntervalsAndTimeline:
    """Tests for break subtraction and timeline rows."""

    def test_subtract_breaks(self):
        intervals = subtract_breaks(510, 900, [make_break("12:00", "12:30")])
        assert intervals == [Interval(510, 720), Interval(750, 900)]
        assert [i.length for i in intervals] == [210, 150]

    def test_break_at_day_start(self):
        intervals = subtract_breaks(510, 900, [make_break("08:30", "09:00")])
        assert intervals == [Interval(540, 900)]

    def test_timeline_rows_sorted(self):
        breaks = [make_break("12:00", "12:30")]
        periods = build_computed_periods("08:30", "15:00", 7, breaks)
        rows = build_timeline_rows(periods, breaks)

        assert len(rows) == 8
        assert [r.kind for r in rows].index("break") == 4
        assert rows[4].label == "Lunch"
        starts = [parse_hhmm(r.start) for r in rows]
        assert starts == sorted(starts)


class TestResolvePeriods:
    """Tests for choosing configured or computed periods."""

    def test_configured_periods_win(self):
        configured = [Period(id="x1", label="Morning")]
        assert resolve_periods(configured, "08:30", "15:00", 7, []) == configured

    def test_computed_when_empty(self):
        periods = resolve_periods([], "08:30", "15:00", 7, [make_break("12:00", "12:30")])
        assert len(periods) == 7

    def test_computed_uses_minimum(self):
        with pytest.raises(TimeModelError):
            resolve_periods([], "09:00", "12:00", 4, [], min_period_minutes=50)
