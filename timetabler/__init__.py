"""Timetabler - randomized candidate schedule generator for the timetable editor."""

from .data.models import CandidateSchedule, TimetableData, load_timetable_from_json
from .engine import GenerateRequest, apply_candidate, generate_candidates, run_generation
from .timing import TimeModelError, build_computed_periods
from .worker import GenerationWorker, handle_message
from .cli import app as cli_app

__all__ = [
    # Data
    "TimetableData",
    "CandidateSchedule",
    "load_timetable_from_json",
    # Time model
    "build_computed_periods",
    "TimeModelError",
    # Generation
    "GenerateRequest",
    "generate_candidates",
    "run_generation",
    "apply_candidate",
    # Background execution
    "GenerationWorker",
    "handle_message",
    # CLI
    "cli_app",
]
