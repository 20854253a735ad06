"""
Pydantic models for the timetable editor's configuration payload.

Mirrors the document the browser editor keeps in memory and exports:
settings, entities, the live slot grid, requirements and teacher blocklists.

Conventions:
- Times of day are "HH:MM" strings (00:00-23:59)
- Days are the editor's day labels, e.g. "Mon", in display order
- Slot keys are "day|periodId|classId"
- Blocklist keys are "day|periodId"

JSON uses camelCase field names; Python attributes are snake_case and both
are accepted on input.
"""

from __future__ import annotations

import json
import re
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# Constants and Enums
# =============================================================================

SCHEMA_VERSION = 1
KEY_SEPARATOR = "|"

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class BreakType(str, Enum):
    """Kind of school break."""
    BREAK = "break"
    NON_INSTRUCTIONAL = "non-instructional"


class ScheduleMode(str, Enum):
    """Whether the grid repeats weekly or over a longer cycle."""
    WEEKLY = "weekly"
    CYCLE = "cycle"


# =============================================================================
# Helper Functions
# =============================================================================

def parse_hhmm(value: Optional[str]) -> Optional[int]:
    """Convert "HH:MM" to minutes from midnight, or None if malformed."""
    if not value:
        return None
    match = _HHMM_RE.match(value)
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def format_hhmm(minutes: int) -> str:
    """Convert minutes from midnight to HH:MM format."""
    h, m = divmod(minutes, 60)
    return f"{h:02d}:{m:02d}"


def blocked_key(day: str, period_id: str) -> str:
    """Blocklist key for a (day, period) pair."""
    return f"{day}{KEY_SEPARATOR}{period_id}"


# =============================================================================
# Base Model
# =============================================================================

class CamelModel(BaseModel):
    """Base for payload models: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys, as the editor stores it."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Core Entity Models
# =============================================================================

class Entity(CamelModel):
    """Teacher, class, room or subject. The editor stores all four alike."""

    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(min_length=1, description="Display name")
    color: Optional[str] = Field(default=None, description="Display colour")

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class Entities(CamelModel):
    """All named entities of a timetable."""

    teachers: list[Entity] = Field(default_factory=list)
    classes: list[Entity] = Field(default_factory=list)
    rooms: list[Entity] = Field(default_factory=list)
    subjects: list[Entity] = Field(default_factory=list)


class Period(CamelModel):
    """Period in the school day. The same period list applies to every day."""

    id: str = Field(min_length=1, description="Unique identifier")
    label: str = Field(description="Display label (e.g. 'P1')")
    start: Optional[str] = Field(default=None, description="Start time HH:MM")
    end: Optional[str] = Field(default=None, description="End time HH:MM")
    is_break: bool = Field(default=False, description="Break row; never schedulable")

    @field_validator("start", "end")
    @classmethod
    def validate_time_format(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and parse_hhmm(value) is None:
            raise ValueError(f"invalid time '{value}', expected HH:MM")
        return value

    @model_validator(mode="after")
    def validate_time_range(self) -> "Period":
        """Ensure start time is before end time when both are given."""
        start, end = self.start_minutes, self.end_minutes
        if start is not None and end is not None and start >= end:
            raise ValueError(f"{self.label}: start ({self.start}) must be before end ({self.end})")
        return self

    @property
    def start_minutes(self) -> Optional[int]:
        return parse_hhmm(self.start)

    @property
    def end_minutes(self) -> Optional[int]:
        return parse_hhmm(self.end)

    @property
    def duration_minutes(self) -> Optional[int]:
        """Period duration, if both times are known."""
        if self.start_minutes is None or self.end_minutes is None:
            return None
        return self.end_minutes - self.start_minutes

    def __str__(self) -> str:
        if self.start and self.end:
            return f"{self.label} ({self.start}-{self.end})"
        return self.label


class SchoolBreak(CamelModel):
    """A break or non-instructional block inside the school day.

    Times are kept as given; `validate_breaks` reports malformed ones with
    the break's name so the editor can show a useful message.
    """

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: BreakType = Field(default=BreakType.BREAK)
    start_time: str
    end_time: str

    @property
    def start_minutes(self) -> Optional[int]:
        return parse_hhmm(self.start_time)

    @property
    def end_minutes(self) -> Optional[int]:
        return parse_hhmm(self.end_time)

    def __str__(self) -> str:
        return f"{self.name} ({self.start_time}-{self.end_time})"


class SlotValue(CamelModel):
    """What occupies one slot: a subject taught by a teacher, maybe in a room."""
    model_config = ConfigDict(frozen=True)

    subject_id: str = Field(min_length=1)
    teacher_id: str = Field(min_length=1)
    room_id: Optional[str] = Field(default=None)


class Requirement(CamelModel):
    """How many periods per cycle a class needs of a subject."""

    id: str = Field(min_length=1)
    class_id: str = Field(min_length=1)
    subject_id: str = Field(min_length=1)
    periods_per_cycle: int = Field(ge=1, le=60, description="Required lessons per cycle")
    allowed_teacher_ids: list[str] = Field(
        default_factory=list,
        description="Teachers who may take the lesson; empty means any teacher",
    )
    preferred_room_id: Optional[str] = Field(default=None)

    def __str__(self) -> str:
        return f"Requirement {self.id}: {self.subject_id} x{self.periods_per_cycle} for {self.class_id}"


class CandidateSchedule(CamelModel):
    """A complete, scored, generated grid. Never modified after creation."""
    model_config = ConfigDict(frozen=True)

    id: str
    score: int = Field(ge=0)
    unplaced: int = Field(ge=0)
    slots: dict[str, Optional[SlotValue]] = Field(default_factory=dict)

    @property
    def filled_count(self) -> int:
        return sum(1 for value in self.slots.values() if value is not None)


# =============================================================================
# Configuration Models
# =============================================================================

class Settings(CamelModel):
    """School day structure."""

    days: list[str] = Field(default_factory=list, description="Day labels in display order")
    periods: list[Period] = Field(default_factory=list)
    mode: ScheduleMode = Field(default=ScheduleMode.WEEKLY)
    day_start_time: str = Field(default="08:30")
    day_end_time: str = Field(default="15:00")
    period_count: int = Field(default=7, ge=1, le=20)
    breaks: list[SchoolBreak] = Field(default_factory=list)

    @property
    def schedulable_periods(self) -> list[Period]:
        return [p for p in self.periods if not p.is_break]


# =============================================================================
# Main Input Model
# =============================================================================

class TimetableData(CamelModel):
    """
    Complete timetable document.

    This is the model the generator reads: everything it needs is in here,
    copied at invocation time.
    """

    schema_version: int = Field(default=SCHEMA_VERSION)
    settings: Settings = Field(default_factory=Settings)
    entities: Entities = Field(default_factory=Entities)
    slots: dict[str, Optional[SlotValue]] = Field(default_factory=dict)
    requirements: list[Requirement] = Field(default_factory=list)
    teacher_blocked: dict[str, list[str]] = Field(default_factory=dict)
    teacher_subject_map: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("schema_version")
    @classmethod
    def validate_schema_version(cls, value: int) -> int:
        if value != SCHEMA_VERSION:
            raise ValueError(f"unsupported schema version {value} (expected {SCHEMA_VERSION})")
        return value

    @model_validator(mode="after")
    def validate_no_duplicate_ids(self) -> "TimetableData":
        """Ensure no duplicate IDs within each entity type."""
        errors: list[str] = []

        def check_duplicates(items: list, entity_name: str) -> None:
            seen: set[str] = set()
            for item in items:
                if item.id in seen:
                    errors.append(f"Duplicate {entity_name} ID: '{item.id}'")
                seen.add(item.id)

        check_duplicates(self.entities.teachers, "teacher")
        check_duplicates(self.entities.classes, "class")
        check_duplicates(self.entities.rooms, "room")
        check_duplicates(self.entities.subjects, "subject")
        check_duplicates(self.settings.periods, "period")
        check_duplicates(self.settings.breaks, "break")
        check_duplicates(self.requirements, "requirement")

        if len(set(self.settings.days)) != len(self.settings.days):
            errors.append("Duplicate day labels in settings.days")

        if errors:
            raise ValueError("Duplicate ID validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

        return self

    @model_validator(mode="after")
    def validate_references(self) -> "TimetableData":
        """Validate requirement and blocklist references."""
        errors: list[str] = []

        teacher_ids = set(self.teacher_ids)
        class_ids = set(self.class_ids)
        subject_ids = {s.id for s in self.entities.subjects}
        room_ids = {r.id for r in self.entities.rooms}

        for req in self.requirements:
            if req.class_id not in class_ids:
                errors.append(f"Requirement {req.id}: unknown class_id '{req.class_id}'")
            if req.subject_id not in subject_ids:
                errors.append(f"Requirement {req.id}: unknown subject_id '{req.subject_id}'")
            for teacher_id in req.allowed_teacher_ids:
                if teacher_id not in teacher_ids:
                    errors.append(f"Requirement {req.id}: unknown teacher '{teacher_id}'")
            if req.preferred_room_id and req.preferred_room_id not in room_ids:
                errors.append(f"Requirement {req.id}: unknown preferred_room '{req.preferred_room_id}'")

        for teacher_id in self.teacher_blocked:
            if teacher_id not in teacher_ids:
                errors.append(f"Teacher blocklist references unknown teacher '{teacher_id}'")

        if errors:
            raise ValueError("Reference validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

        return self

    # -------------------------------------------------------------------------
    # Lookup Methods
    # -------------------------------------------------------------------------

    @property
    def teacher_ids(self) -> list[str]:
        return [t.id for t in self.entities.teachers]

    @property
    def class_ids(self) -> list[str]:
        return [c.id for c in self.entities.classes]

    def names(self, kind: str) -> dict[str, str]:
        """ID to display name for 'teachers', 'classes', 'rooms' or 'subjects'."""
        return {e.id: e.name for e in getattr(self.entities, kind)}

    def get_class_requirements(self, class_id: str) -> list[Requirement]:
        return [r for r in self.requirements if r.class_id == class_id]

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    @property
    def total_required_lessons(self) -> int:
        """Total lesson instances the generator has to place."""
        return sum(r.periods_per_cycle for r in self.requirements)

    def summary(self) -> dict[str, Any]:
        return {
            "days": len(self.settings.days),
            "periods": len(self.settings.periods),
            "schedulable_periods": len(self.settings.schedulable_periods),
            "breaks": len(self.settings.breaks),
            "teachers": len(self.entities.teachers),
            "classes": len(self.entities.classes),
            "rooms": len(self.entities.rooms),
            "subjects": len(self.entities.subjects),
            "requirements": len(self.requirements),
            "total_required_lessons": self.total_required_lessons,
            "filled_slots": sum(1 for v in self.slots.values() if v is not None),
        }


# =============================================================================
# JSON Loading Helper
# =============================================================================

def load_timetable_from_json(path: Union[str, Path]) -> TimetableData:
    """
    Load and validate timetable data from an editor export.

    Args:
        path: Path to the JSON file

    Returns:
        Validated TimetableData model

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If invalid JSON
        pydantic.ValidationError: If validation fails
    """
    with open(Path(path)) as f:
        data = json.load(f)

    # The editor persists its UI state alongside the data; the generator has no use for it
    if isinstance(data, dict):
        data.pop("ui", None)

    return TimetableData.model_validate(data)
