"""
Sample data generator for exercising the candidate generator.

Produces complete, valid TimetableData documents with configurable size:
teachers with subjects and blocked slots, classes with subject
requirements, rooms, and a period layout computed around breaks.

Usage:
    from timetabler.data.generator import generate_sample_school, generate_small_school

    # Generate with custom config
    data = generate_sample_school(GeneratorConfig(num_classes=6, seed=7))

    # Quick test data
    small = generate_small_school(seed=1)
"""

from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .models import (
    BreakType,
    Entities,
    Entity,
    Requirement,
    SchoolBreak,
    Settings,
    TimetableData,
    blocked_key,
)
from ..timing import build_computed_periods


# =============================================================================
# Name Data
# =============================================================================

FIRST_NAMES = [
    "James", "Sarah", "Robert", "Emily", "David", "Laura", "Thomas", "Grace",
    "Daniel", "Hannah", "Samuel", "Lucy", "Henry", "Chloe", "Marcus", "Zoe",
    "Patrick", "Amelia", "Simon", "Olivia", "Edward", "Nicole", "Peter", "Mia",
]

LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Miller", "Davis", "Wilson",
    "Anderson", "Taylor", "Moore", "Jackson", "Martin", "Lee", "Thompson", "White",
    "Harris", "Clark", "Lewis", "Walker", "Young", "King", "Wright", "Scott",
]

PALETTE = ["#00d1ff", "#f6c945", "#54f59a", "#ff6b6b", "#7aa2ff", "#ffa7f3", "#ff9d4d", "#91a7b3"]


# =============================================================================
# Subject Definitions
# =============================================================================

SUBJECTS = [
    {"id": "eng", "name": "English", "periods_per_cycle": 5},
    {"id": "mat", "name": "Mathematics", "periods_per_cycle": 5},
    {"id": "sci", "name": "Science", "periods_per_cycle": 4, "room": "lab"},
    {"id": "his", "name": "History", "periods_per_cycle": 2},
    {"id": "geo", "name": "Geography", "periods_per_cycle": 2},
    {"id": "pe", "name": "Physical Education", "periods_per_cycle": 2, "room": "gym"},
    {"id": "art", "name": "Art", "periods_per_cycle": 1, "room": "art"},
    {"id": "mus", "name": "Music", "periods_per_cycle": 1},
    {"id": "fre", "name": "French", "periods_per_cycle": 2},
    {"id": "cmp", "name": "Computing", "periods_per_cycle": 1, "room": "ict"},
]

SPECIALIST_ROOMS = {
    "lab": "Science Lab",
    "gym": "Gymnasium",
    "art": "Art Studio",
    "ict": "Computer Suite",
}


# =============================================================================
# Generator Configuration
# =============================================================================

@dataclass
class GeneratorConfig:
    """Configuration for data generation.

    The defaults leave slack: required lessons per class stay below the
    number of open cells (days x periods), and every subject has at least
    one teacher.
    """
    # Entity counts
    num_teachers: int = 10
    num_classes: int = 4
    num_classrooms: int = 4
    lessons_per_class: int = 25

    # Day structure
    days: list[str] = field(default_factory=lambda: ["Mon", "Tue", "Wed", "Thu", "Fri"])
    day_start_time: str = "08:30"
    day_end_time: str = "15:00"
    period_count: int = 7
    breaks: list[tuple[str, str, str]] = field(
        default_factory=lambda: [("Recess", "10:30", "10:45"), ("Lunch", "12:30", "13:10")]
    )

    # Teacher settings
    teacher_max_subjects: int = 2
    teachers_per_requirement: int = 2  # 0 leaves allowed teachers empty (any teacher)
    min_blocked_slots: int = 0
    max_blocked_slots: int = 3

    # Randomization
    seed: Optional[int] = None


# =============================================================================
# Generator Functions
# =============================================================================

def generate_sample_school(config: GeneratorConfig | None = None) -> TimetableData:
    """
    Generate a sample timetable document.

    Args:
        config: Generator configuration (uses defaults if None)

    Returns:
        TimetableData with generated entities, requirements and blocklists
    """
    if config is None:
        config = GeneratorConfig()

    rng = random.Random(config.seed)

    breaks = [
        SchoolBreak(
            id=f"b{i + 1}",
            name=name,
            type=BreakType.BREAK,
            start_time=start,
            end_time=end,
        )
        for i, (name, start, end) in enumerate(config.breaks)
    ]
    periods = build_computed_periods(
        config.day_start_time, config.day_end_time, config.period_count, breaks
    )

    subjects = _generate_subjects()
    rooms = _generate_rooms(config)
    classes = _generate_classes(config)
    teachers, teacher_subject_map = _generate_teachers(config, rng)
    requirements = _generate_requirements(config, classes, teacher_subject_map, rng)
    teacher_blocked = _generate_blocklists(config, teachers, [p.id for p in periods], rng)

    return TimetableData(
        settings=Settings(
            days=list(config.days),
            periods=periods,
            day_start_time=config.day_start_time,
            day_end_time=config.day_end_time,
            period_count=config.period_count,
            breaks=breaks,
        ),
        entities=Entities(teachers=teachers, classes=classes, rooms=rooms, subjects=subjects),
        requirements=requirements,
        teacher_blocked=teacher_blocked,
        teacher_subject_map=teacher_subject_map,
    )


def generate_small_school(seed: int | None = None) -> TimetableData:
    """
    Generate a small school for quick testing.

    - 6 teachers
    - 2 classes
    - 20 lessons per class
    """
    config = GeneratorConfig(
        num_teachers=6,
        num_classes=2,
        num_classrooms=2,
        lessons_per_class=20,
        seed=seed,
    )
    return generate_sample_school(config)


def generate_medium_school(seed: int | None = None) -> TimetableData:
    """
    Generate a medium-sized school.

    - 16 teachers
    - 8 classes
    - 25 lessons per class (of 35 cells)
    """
    config = GeneratorConfig(
        num_teachers=16,
        num_classes=8,
        num_classrooms=8,
        lessons_per_class=25,
        seed=seed,
    )
    return generate_sample_school(config)


def save_generated_school(data: TimetableData, path: Union[str, Path]) -> None:
    """Write a generated document as editor-style JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data.to_wire(), f, indent=2)


def get_generation_stats(data: TimetableData) -> dict[str, Any]:
    """Size and load figures for a document."""
    cells_per_class = len(data.settings.days) * len(data.settings.schedulable_periods)
    total_cells = cells_per_class * len(data.entities.classes)
    total_required = data.total_required_lessons
    return {
        **data.summary(),
        "cells_per_class": cells_per_class,
        "total_cells": total_cells,
        "utilization": round(total_required / total_cells, 3) if total_cells else 0.0,
        "blocked_slots": sum(len(keys) for keys in data.teacher_blocked.values()),
    }


# =============================================================================
# Private Generator Helpers
# =============================================================================

def _generate_subjects() -> list[Entity]:
    return [
        Entity(id=s["id"], name=s["name"], color=PALETTE[i % len(PALETTE)])
        for i, s in enumerate(SUBJECTS)
    ]


def _generate_rooms(config: GeneratorConfig) -> list[Entity]:
    """Classrooms plus one room per specialist type."""
    rooms = [
        Entity(id=f"r{101 + i}", name=f"Room {101 + i}", color=PALETTE[i % len(PALETTE)])
        for i in range(config.num_classrooms)
    ]
    for room_id, name in SPECIALIST_ROOMS.items():
        rooms.append(Entity(id=room_id, name=name))
    return rooms


def _generate_classes(config: GeneratorConfig) -> list[Entity]:
    """Classes 7A, 7B, 8A, ... two per year group."""
    classes = []
    for i in range(config.num_classes):
        year = 7 + i // 2
        letter = chr(ord("A") + i % 2)
        classes.append(Entity(
            id=f"{year}{letter.lower()}",
            name=f"Year {year}{letter}",
            color=PALETTE[i % len(PALETTE)],
        ))
    return classes


def _generate_teachers(
    config: GeneratorConfig,
    rng: random.Random,
) -> tuple[list[Entity], dict[str, list[str]]]:
    """Teachers with unique names; every subject gets at least one teacher."""
    teachers = []
    subject_map: dict[str, list[str]] = {}
    used_names: set[str] = set()
    subject_ids = [s["id"] for s in SUBJECTS]

    for i in range(config.num_teachers):
        while True:
            full_name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
            if full_name not in used_names:
                used_names.add(full_name)
                break

        teacher_id = f"t{i + 1}"
        # Round-robin first subject so coverage does not depend on luck
        subjects = [subject_ids[i % len(subject_ids)]]
        extra = rng.randint(0, max(0, config.teacher_max_subjects - 1))
        others = [s for s in subject_ids if s not in subjects]
        subjects.extend(rng.sample(others, min(extra, len(others))))

        teachers.append(Entity(id=teacher_id, name=full_name, color=PALETTE[i % len(PALETTE)]))
        subject_map[teacher_id] = subjects

    # Fewer teachers than subjects: the first teacher covers the rest
    covered = {s for subjects in subject_map.values() for s in subjects}
    if teachers:
        first = teachers[0].id
        subject_map[first].extend(s for s in subject_ids if s not in covered)

    return teachers, subject_map


def _generate_requirements(
    config: GeneratorConfig,
    classes: list[Entity],
    teacher_subject_map: dict[str, list[str]],
    rng: random.Random,
) -> list[Requirement]:
    """Subject loads per class, filled in subject order up to lessons_per_class."""
    teachers_by_subject: dict[str, list[str]] = {}
    for teacher_id, subject_ids in teacher_subject_map.items():
        for subject_id in subject_ids:
            teachers_by_subject.setdefault(subject_id, []).append(teacher_id)

    requirements = []
    for cls in classes:
        remaining = config.lessons_per_class
        for subject in SUBJECTS:
            if remaining <= 0:
                break
            count = min(subject["periods_per_cycle"], remaining)
            remaining -= count

            allowed: list[str] = []
            if config.teachers_per_requirement > 0:
                candidates = teachers_by_subject.get(subject["id"], [])
                allowed = rng.sample(candidates, min(config.teachers_per_requirement, len(candidates)))

            requirements.append(Requirement(
                id=f"req_{cls.id}_{subject['id']}",
                class_id=cls.id,
                subject_id=subject["id"],
                periods_per_cycle=count,
                allowed_teacher_ids=allowed,
                preferred_room_id=subject.get("room"),
            ))

    return requirements


def _generate_blocklists(
    config: GeneratorConfig,
    teachers: list[Entity],
    period_ids: list[str],
    rng: random.Random,
) -> dict[str, list[str]]:
    """A few random (day, period) pairs each teacher cannot teach."""
    blocked: dict[str, list[str]] = {}
    all_keys = [blocked_key(day, period_id) for day in config.days for period_id in period_ids]

    for teacher in teachers:
        count = rng.randint(config.min_blocked_slots, config.max_blocked_slots)
        if count:
            blocked[teacher.id] = sorted(rng.sample(all_keys, min(count, len(all_keys))))

    return blocked
