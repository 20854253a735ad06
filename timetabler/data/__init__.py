"""Timetable data model and loading."""

from .models import (
    BreakType,
    CandidateSchedule,
    Entities,
    Entity,
    Period,
    Requirement,
    ScheduleMode,
    SchoolBreak,
    Settings,
    SlotValue,
    TimetableData,
    blocked_key,
    format_hhmm,
    load_timetable_from_json,
    parse_hhmm,
)

__all__ = [
    "BreakType",
    "CandidateSchedule",
    "Entities",
    "Entity",
    "Period",
    "Requirement",
    "ScheduleMode",
    "SchoolBreak",
    "Settings",
    "SlotValue",
    "TimetableData",
    "blocked_key",
    "format_hhmm",
    "load_timetable_from_json",
    "parse_hhmm",
]
