"""
Candidate generation run.

A run takes a GenerateRequest (configuration, locked slots, K, attempts),
prepares the static inputs once, then executes `attempts` independent
placement attempts, scoring each one and offering it to a CandidatePool.

Usage:
    request = GenerateRequest(data=data, keep=5, attempts=200)
    candidates = generate_candidates(request)
    data = apply_candidate(data, candidates[0])
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import Field, field_validator

from .constraints import ConstraintEvaluator, EvaluatorStats, TeacherBlocklist
from .data.models import CamelModel, CandidateSchedule, Period, TimetableData
from .expander import expand_requirements
from .grid import SlotKey
from .placer import seeded_attempt
from .scoring import DEFAULT_WEIGHTS, CandidatePool, ScoreWeights, score_schedule
from .timing import MIN_PERIOD_MINUTES, resolve_periods

logger = logging.getLogger(__name__)


# =============================================================================
# Request / Report
# =============================================================================

DEFAULT_KEEP = 5
DEFAULT_ATTEMPTS = 200
DEFAULT_SEED_STEP = 97


class GenerateRequest(CamelModel):
    """Everything one generation run needs, copied in at invocation time."""

    data: TimetableData
    locked_slots: list[str] = Field(default_factory=list, description="Encoded slot keys to preserve")
    keep: int = Field(default=DEFAULT_KEEP, ge=1, le=100, description="Candidates to retain (K)")
    attempts: int = Field(default=DEFAULT_ATTEMPTS, ge=1, le=5000, description="Randomized attempts to run")
    seed: Optional[int] = Field(default=None, description="Base seed; current time in ms if None")
    seed_step: int = Field(default=DEFAULT_SEED_STEP, ge=0, description="Seed increment per attempt")
    min_period_minutes: int = Field(default=MIN_PERIOD_MINUTES, ge=1, le=240)

    @field_validator("locked_slots")
    @classmethod
    def validate_locked_slots(cls, value: list[str]) -> list[str]:
        for key in value:
            SlotKey.parse(key)
        return value


@dataclass
class GenerationReport:
    """Candidates of a run plus what it took to get them."""
    candidates: list[CandidateSchedule]
    attempts: int
    duplicates: int
    task_count: int
    periods: list[Period] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    evaluator_stats: EvaluatorStats = field(default_factory=EvaluatorStats)

    @property
    def distinct(self) -> int:
        return self.attempts - self.duplicates

    @property
    def message(self) -> str:
        return summarize(self.candidates)

    def stats(self) -> dict[str, Any]:
        return {
            "attempts": self.attempts,
            "distinct": self.distinct,
            "duplicates": self.duplicates,
            "tasks": self.task_count,
            "elapsedSeconds": round(self.elapsed_seconds, 3),
            "checks": self.evaluator_stats.checks,
            "rejections": self.evaluator_stats.rejections,
            "roomsDropped": self.evaluator_stats.rooms_dropped,
        }


# =============================================================================
# Generation
# =============================================================================

def attempt_seed(base: int, attempt: int, step: int = DEFAULT_SEED_STEP) -> int:
    """Seed of the n-th attempt; distinct per attempt unless step is 0."""
    return base + attempt * step


def run_generation(request: GenerateRequest, weights: ScoreWeights = DEFAULT_WEIGHTS) -> GenerationReport:
    """
    Run all attempts of a request.

    Raises:
        TimeModelError: If periods have to be computed and the day layout
            is invalid. Raised before any attempt runs.
    """
    data = request.data
    settings = data.settings
    started = time.perf_counter()

    periods = resolve_periods(
        settings.periods,
        settings.day_start_time,
        settings.day_end_time,
        settings.period_count,
        settings.breaks,
        request.min_period_minutes,
    )
    tasks = expand_requirements(data.requirements, data.teacher_ids)
    evaluator = ConstraintEvaluator(TeacherBlocklist(data.teacher_blocked))
    pool = CandidatePool(request.keep)
    base = request.seed if request.seed is not None else time.time_ns() // 1_000_000

    logger.info(
        "Generation started | attempts=%s keep=%s tasks=%s classes=%s days=%s periods=%s locked=%s",
        request.attempts, request.keep, len(tasks), len(data.class_ids),
        len(settings.days), len(periods), len(request.locked_slots),
    )

    for i in range(request.attempts):
        trial = seeded_attempt(
            data,
            tasks,
            periods,
            seed=attempt_seed(base, i, request.seed_step),
            locked_slots=request.locked_slots,
            evaluator=evaluator,
        )
        signature = trial.grid.signature()
        score = score_schedule(trial.grid, data.class_ids, settings.days, periods, trial.unplaced, weights)
        candidate = CandidateSchedule(
            id=f"cand_{i}_{signature[:5]}",
            score=score,
            unplaced=trial.unplaced,
            slots=trial.grid.to_slots(),
        )
        pool.offer(candidate, signature)

    report = GenerationReport(
        candidates=pool.candidates,
        attempts=request.attempts,
        duplicates=pool.duplicates,
        task_count=len(tasks),
        periods=periods,
        elapsed_seconds=time.perf_counter() - started,
        evaluator_stats=evaluator.stats,
    )
    best = pool.best
    logger.info(
        "Generation finished | kept=%s duplicates=%s best_score=%s best_unplaced=%s elapsed=%.3fs",
        len(pool), pool.duplicates,
        best.score if best else None, best.unplaced if best else None,
        report.elapsed_seconds,
    )
    return report


def generate_candidates(
    request: GenerateRequest,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> list[CandidateSchedule]:
    """Ranked, de-duplicated candidates for a request, best first."""
    return run_generation(request, weights).candidates


def apply_candidate(data: TimetableData, candidate: CandidateSchedule) -> TimetableData:
    """Copy of data whose live grid is replaced wholesale by the candidate's."""
    return data.model_copy(update={"slots": dict(candidate.slots)})


def summarize(candidates: list[CandidateSchedule]) -> str:
    return f"{len(candidates)} candidates generated"
