"""
Output schema for generation runs.

Wraps the ranked candidates of a run with its status and bookkeeping, and
provides per-class grid views of a candidate for display.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from timetabler.data.models import CandidateSchedule, Period, SlotValue
from timetabler.engine import GenerateRequest, GenerationReport
from timetabler.grid import slot_key


# =============================================================================
# Enums
# =============================================================================

class OutputStatus(str, Enum):
    """Outcome of a generation request."""
    OK = "ok"
    ERROR = "error"


# =============================================================================
# Complete Output
# =============================================================================

class GenerationOutput(BaseModel):
    """Complete output of a generation request."""
    status: OutputStatus
    message: str
    elapsed_seconds: float = Field(default=0.0, alias="elapsedSeconds")
    attempts: int = 0
    keep: int = 0
    duplicates: int = 0
    candidates: list[CandidateSchedule] = Field(default_factory=list)
    error: Optional[str] = None

    model_config = {"populate_by_name": True}

    @property
    def best(self) -> Optional[CandidateSchedule]:
        return self.candidates[0] if self.candidates else None

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return self.model_dump_json(by_alias=True, indent=indent)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return self.model_dump(mode="json", by_alias=True)


def create_generation_output(report: GenerationReport, request: GenerateRequest) -> GenerationOutput:
    """Create a GenerationOutput from a finished run."""
    return GenerationOutput(
        status=OutputStatus.OK,
        message=report.message,
        elapsedSeconds=report.elapsed_seconds,
        attempts=report.attempts,
        keep=request.keep,
        duplicates=report.duplicates,
        candidates=report.candidates,
    )


def output_from_response(response: dict[str, Any], request: GenerateRequest) -> GenerationOutput:
    """Create a GenerationOutput from a worker response message."""
    if response.get("type") == "error":
        return GenerationOutput(
            status=OutputStatus.ERROR,
            message="0 candidates generated",
            keep=request.keep,
            attempts=request.attempts,
            error=response.get("error"),
        )

    stats = response.get("stats", {})
    candidates = [CandidateSchedule.model_validate(c) for c in response.get("candidates", [])]
    return GenerationOutput(
        status=OutputStatus.OK,
        message=response.get("message", f"{len(candidates)} candidates generated"),
        elapsedSeconds=stats.get("elapsedSeconds", 0.0),
        attempts=stats.get("attempts", request.attempts),
        keep=request.keep,
        duplicates=stats.get("duplicates", 0),
        candidates=candidates,
    )


def load_generation_output(path: Union[str, Path]) -> GenerationOutput:
    """Load a saved GenerationOutput JSON file."""
    with open(Path(path)) as f:
        data = json.load(f)
    return GenerationOutput.model_validate(data)


# =============================================================================
# Views
# =============================================================================

class ClassGrid(BaseModel):
    """One class's timetable in a candidate: rows are periods, columns days."""
    class_id: str = Field(alias="classId")
    days: list[str]
    periods: list[Period]
    cells: list[list[Optional[SlotValue]]]

    model_config = {"populate_by_name": True}

    @property
    def filled_count(self) -> int:
        return sum(1 for row in self.cells for cell in row if cell is not None)


def class_grid(
    candidate: CandidateSchedule,
    class_id: str,
    days: list[str],
    periods: list[Period],
) -> ClassGrid:
    """Lay out a candidate's lessons for one class. Break rows are empty."""
    cells = [
        [candidate.slots.get(slot_key(day, period.id, class_id)) for day in days]
        for period in periods
    ]
    return ClassGrid(classId=class_id, days=days, periods=periods, cells=cells)
