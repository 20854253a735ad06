"""
Stochastic placer: one randomized constructive attempt.

An attempt shuffles the lesson tasks, then places them one at a time. For
each task every open slot of its class is tried with every allowed teacher;
one feasible option is picked uniformly at random. A task with no feasible
option is counted as unplaced. There is no backtracking: running many
independent attempts takes its place.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Collection, Iterable, Mapping, Optional, Sequence, TypeVar

from .constraints import ConstraintEvaluator, TeacherBlocklist
from .data.models import Period, SlotValue, TimetableData
from .expander import LessonTask
from .grid import AssignmentGrid, SlotKey

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Option:
    """A feasible placement for one task."""
    key: SlotKey
    value: SlotValue


@dataclass
class AttemptResult:
    """Final grid of one attempt and how many tasks did not fit."""
    grid: AssignmentGrid
    unplaced: int
    placed: int = 0


# =============================================================================
# Randomness
# =============================================================================

def create_rng(seed: int) -> random.Random:
    """Independent, seeded generator for one attempt."""
    return random.Random(seed)


def shuffled(items: Iterable[T], rng: random.Random) -> list[T]:
    """Shuffled copy (Fisher-Yates); the input is left untouched."""
    out = list(items)
    rng.shuffle(out)
    return out


# =============================================================================
# Grid Setup
# =============================================================================

def initial_grid(
    days: Sequence[str],
    periods: Sequence[Period],
    class_ids: Sequence[str],
    live_slots: Mapping[str, Optional[SlotValue]],
    locked_slots: Iterable[str] = (),
) -> tuple[AssignmentGrid, set[SlotKey]]:
    """
    Empty grid, except locked cells which keep their live value.

    Returns the grid and the locked keys that address one of its cells;
    locked keys for breaks or unknown classes are ignored.
    """
    grid = AssignmentGrid.empty(days, periods, class_ids)
    locked = set()
    for encoded in locked_slots:
        key = SlotKey.parse(encoded)
        if key not in grid:
            continue
        locked.add(key)
        value = live_slots.get(encoded)
        if value is not None:
            grid.assign(key, value)
    return grid, locked


# =============================================================================
# Placement
# =============================================================================

def feasible_options(
    grid: AssignmentGrid,
    task: LessonTask,
    days: Sequence[str],
    periods: Sequence[Period],
    evaluator: ConstraintEvaluator,
    rng: random.Random,
    locked: Collection[SlotKey] = (),
) -> list[Option]:
    """Every (slot, teacher, room) combination the constraints allow for task."""
    options: list[Option] = []

    for day in days:
        for period in periods:
            if period.is_break:
                continue
            key = SlotKey(day, period.id, task.class_id)
            if key not in grid or grid[key] is not None or key in locked:
                continue

            for teacher_id in shuffled(task.allowed_teacher_ids, rng):
                check = evaluator.check(grid, day, period.id, teacher_id, task.preferred_room_id)
                if not check.feasible:
                    continue
                options.append(Option(
                    key=key,
                    value=SlotValue(
                        subject_id=task.subject_id,
                        teacher_id=teacher_id,
                        room_id=check.room_id,
                    ),
                ))

    return options


def seeded_attempt(
    data: TimetableData,
    tasks: Sequence[LessonTask],
    periods: Sequence[Period],
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
    locked_slots: Iterable[str] = (),
    evaluator: Optional[ConstraintEvaluator] = None,
) -> AttemptResult:
    """
    Run one constructive attempt.

    Args:
        data: Timetable configuration (days, classes, live grid, blocklists)
        tasks: Lesson tasks from expand_requirements, in baseline order
        periods: Period list for every day
        seed: Seed for a fresh generator; ignored when rng is given
        rng: Generator to draw from instead of seeding a new one
        locked_slots: Encoded slot keys whose live value must be kept
        evaluator: Constraint evaluator; built from data.teacher_blocked if None

    Returns:
        AttemptResult with the final grid and the unplaced count
    """
    if rng is None:
        if seed is None:
            raise ValueError("seeded_attempt needs a seed or an rng")
        rng = create_rng(seed)
    if evaluator is None:
        evaluator = ConstraintEvaluator(TeacherBlocklist(data.teacher_blocked))

    days = data.settings.days
    grid, locked = initial_grid(days, periods, data.class_ids, data.slots, locked_slots)

    unplaced = 0
    placed = 0
    for task in shuffled(tasks, rng):
        options = feasible_options(grid, task, days, periods, evaluator, rng, locked)
        if not options:
            unplaced += 1
            continue

        pick = options[rng.randrange(len(options))]
        grid.assign(pick.key, pick.value)
        placed += 1

    logger.debug("Attempt finished | seed=%s placed=%s unplaced=%s", seed, placed, unplaced)
    return AttemptResult(grid=grid, unplaced=unplaced, placed=placed)
