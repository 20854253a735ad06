"""
Time model: turn a school-day window, a period count and breaks into periods.

Periods are packed into the instructional intervals left after removing
breaks from the day. Every failure raises TimeModelError with a message that
can be shown to the user as is; nothing is returned on failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from .data.models import Period, SchoolBreak, format_hhmm, parse_hhmm

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MIN_PERIOD_MINUTES = 20


class TimeModelError(ValueError):
    """Raised when the day window, breaks or periods are inconsistent."""
    pass


@dataclass(frozen=True)
class Interval:
    """Half-open range of minutes from midnight."""
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class TimelineRow:
    """One row of the merged period/break timeline shown by the editor."""
    kind: Literal["period", "break"]
    id: str
    label: str
    start: str
    end: str


# =============================================================================
# Validation
# =============================================================================

def _parse_window(day_start: str, day_end: str) -> tuple[int, int]:
    start = parse_hhmm(day_start)
    end = parse_hhmm(day_end)
    if start is None or end is None:
        raise TimeModelError("Invalid school start/end time.")
    if start >= end:
        raise TimeModelError("School start time must be before end time.")
    return start, end


def _sorted_breaks(breaks: Sequence[SchoolBreak]) -> list[SchoolBreak]:
    return sorted(breaks, key=lambda b: b.start_minutes if b.start_minutes is not None else 0)


def validate_breaks(breaks: Sequence[SchoolBreak], day_start: str, day_end: str) -> None:
    """
    Check breaks against the school day.

    Each break must have valid times, start before it ends, and lie within
    the day window; no two breaks may overlap.

    Raises:
        TimeModelError: naming the first offending break
    """
    start, end = _parse_window(day_start, day_end)
    rows = _sorted_breaks(breaks)

    for br in rows:
        b_start, b_end = br.start_minutes, br.end_minutes
        if b_start is None or b_end is None:
            raise TimeModelError(f"Invalid break time in {br.name}.")
        if b_start >= b_end:
            raise TimeModelError(f"{br.name}: start must be before end.")
        if b_start < start or b_end > end:
            raise TimeModelError(f"{br.name}: must be within school day window.")

    for prev, cur in zip(rows, rows[1:]):
        if cur.start_minutes < prev.end_minutes:
            raise TimeModelError(f"Break overlap detected between {prev.name} and {cur.name}.")


def validate_manual_periods(
    periods: Sequence[Period],
    day_start: str,
    day_end: str,
    breaks: Sequence[SchoolBreak],
) -> None:
    """
    Check a hand-edited period list against the day window and breaks.

    Raises:
        TimeModelError: on the first problem found
    """
    validate_breaks(breaks, day_start, day_end)
    start, end = _parse_window(day_start, day_end)

    if not periods:
        raise TimeModelError("Add at least one period.")

    parsed = []
    for idx, period in enumerate(periods):
        label = period.label or f"P{idx + 1}"
        parsed.append((label, period.start_minutes, period.end_minutes))
    parsed.sort(key=lambda row: row[1] if row[1] is not None else 0)

    for label, p_start, p_end in parsed:
        if p_start is None or p_end is None:
            raise TimeModelError(f"{label}: invalid time format.")
        if p_start >= p_end:
            raise TimeModelError(f"{label}: start must be before end.")
        if p_start < start or p_end > end:
            raise TimeModelError(f"{label}: must be within school day.")

    for prev, cur in zip(parsed, parsed[1:]):
        if cur[1] < prev[2]:
            raise TimeModelError(f"{cur[0]} overlaps with {prev[0]}.")

    for label, p_start, p_end in parsed:
        for br in breaks:
            if p_start < br.end_minutes and p_end > br.start_minutes:
                raise TimeModelError(f'{label} overlaps with break "{br.name}".')


# =============================================================================
# Period Layout
# =============================================================================

def subtract_breaks(day_start: int, day_end: int, breaks: Sequence[SchoolBreak]) -> list[Interval]:
    """Instructional intervals left after removing (validated) breaks from the day."""
    intervals: list[Interval] = []
    cursor = day_start
    for br in _sorted_breaks(breaks):
        if cursor < br.start_minutes:
            intervals.append(Interval(cursor, br.start_minutes))
        cursor = br.end_minutes
    if cursor < day_end:
        intervals.append(Interval(cursor, day_end))
    return intervals


def _allocate_counts(intervals: list[Interval], period_count: int) -> list[int]:
    """Largest-remainder split of period_count proportional to interval length."""
    total = sum(i.length for i in intervals)
    shares = [i.length / total * period_count for i in intervals]
    counts = [int(share) for share in shares]

    remaining = period_count - sum(counts)
    by_remainder = sorted(range(len(shares)), key=lambda idx: shares[idx] - counts[idx], reverse=True)
    for idx in by_remainder[:remaining]:
        counts[idx] += 1
    return counts


def _rebalance(intervals: list[Interval], counts: list[int], min_minutes: int) -> list[int]:
    """Move periods out of intervals that would make them shorter than min_minutes."""
    counts = list(counts)
    changed = True
    while changed:
        changed = False
        for i, interval in enumerate(intervals):
            if counts[i] <= 0 or interval.length / counts[i] >= min_minutes:
                continue
            counts[i] -= 1

            target, target_len = -1, -1.0
            for j, other in enumerate(intervals):
                possible = other.length / (counts[j] + 1)
                if possible >= min_minutes and possible > target_len:
                    target, target_len = j, possible
            if target < 0:
                raise TimeModelError(
                    f"Break layout leaves no valid period split (min period {min_minutes} min)."
                )
            counts[target] += 1
            changed = True
    return counts


def build_computed_periods(
    day_start_time: str,
    day_end_time: str,
    period_count: int,
    breaks: Sequence[SchoolBreak],
    min_period_minutes: int = MIN_PERIOD_MINUTES,
) -> list[Period]:
    """
    Lay out period_count periods in the school day around the breaks.

    Args:
        day_start_time: School day start, HH:MM
        day_end_time: School day end, HH:MM
        period_count: Number of instructional periods wanted
        breaks: Breaks inside the day
        min_period_minutes: Shortest acceptable period

    Returns:
        Periods p1..pN, sorted, gap-free within each instructional interval

    Raises:
        TimeModelError: If breaks are invalid, there are not enough
            instructional minutes, or no split satisfies the minimum length
    """
    validate_breaks(breaks, day_start_time, day_end_time)
    day_start, day_end = _parse_window(day_start_time, day_end_time)

    intervals = subtract_breaks(day_start, day_end, breaks)
    total_instruction = sum(i.length for i in intervals)

    if period_count <= 0:
        raise TimeModelError("Periods per day must be at least 1.")
    if min_period_minutes <= 0:
        raise TimeModelError("Minimum period length must be at least 1 minute.")
    needed = period_count * min_period_minutes
    if total_instruction < needed:
        raise TimeModelError(
            f"Not enough instructional minutes. Need at least {needed} minutes, "
            f"have {total_instruction} ({needed - total_instruction} short)."
        )

    counts = _allocate_counts(intervals, period_count)
    counts = _rebalance(intervals, counts, min_period_minutes)

    periods: list[Period] = []
    for interval, count in zip(intervals, counts):
        if count <= 0:
            continue
        base, extra = divmod(interval.length, count)
        start = interval.start
        for p in range(count):
            end = start + base + (1 if p < extra else 0)
            index = len(periods) + 1
            periods.append(Period(
                id=f"p{index}",
                label=f"P{index}",
                start=format_hhmm(start),
                end=format_hhmm(end),
                is_break=False,
            ))
            start = end

    if len(periods) != period_count:
        raise TimeModelError("Failed to compute period layout for given breaks.")

    logger.debug(
        "Computed period layout | window=%s-%s periods=%s intervals=%s counts=%s",
        day_start_time, day_end_time, period_count, len(intervals), counts,
    )
    return periods


def build_timeline_rows(periods: Sequence[Period], breaks: Sequence[SchoolBreak]) -> list[TimelineRow]:
    """Merge periods and breaks into one display timeline sorted by start time."""
    rows = [
        TimelineRow("period", p.id, p.label, p.start or "", p.end or "")
        for p in periods
    ]
    rows.extend(
        TimelineRow("break", b.id, b.name, b.start_time, b.end_time)
        for b in breaks
    )
    rows.sort(key=lambda r: parse_hhmm(r.start) or 0)
    return rows


def resolve_periods(
    periods: Sequence[Period],
    day_start_time: str,
    day_end_time: str,
    period_count: int,
    breaks: Sequence[SchoolBreak],
    min_period_minutes: Optional[int] = None,
) -> list[Period]:
    """Use the configured period list, or compute one when there is none."""
    if periods:
        return list(periods)
    return build_computed_periods(
        day_start_time,
        day_end_time,
        period_count,
        breaks,
        min_period_minutes if min_period_minutes is not None else MIN_PERIOD_MINUTES,
    )
