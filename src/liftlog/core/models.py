"""
Data models for liftlog.

Core dataclasses representing logged sets, per-exercise progression
settings, and the derived session/progression records.
Weights are unit-agnostic: they are stored in whatever unit the exercise
is configured with.
"""

import math
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

ProgressionKind = Literal[
    "insufficient_data",
    "maintaining_below_target",
    "progressing_toward_target",
    "ready_to_increase_reps",
    "ready_to_increase_weight",
    "declining_performance",
    "recently_regressed",
]


class InvalidInputError(ValueError):
    """Raised when a value entering the core is out of range or malformed."""

    pass


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


def _require_id(value: str, name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{name} must be a non-empty string, got {value!r}")


def _require_number(value: object, name: str, integer: bool = False) -> None:
    """Reject bools, non-numeric values, NaN and infinities."""
    kinds = (int,) if integer else (int, float)
    if isinstance(value, bool) or not isinstance(value, kinds):
        kind = "a whole number" if integer else "a number"
        raise InvalidInputError(f"{name} must be {kind}, got {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidInputError(f"{name} must be finite, got {value!r}")


@dataclass
class LoggedSet:
    """
    One performed set of one exercise.

    Only the calendar day of ``date`` is meaningful; the time of day is kept
    so that day boundaries can be resolved in the caller's timezone.
    ``order`` is the position within that day's session (dense from 0).
    """

    exercise_id: str
    date: datetime
    weight: float
    reps: int
    order: int = 0
    completed: bool = True
    rpe: float | None = None
    rir: int | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        _require_id(self.id, "id")
        _require_id(self.exercise_id, "exercise_id")
        if not isinstance(self.date, (datetime, date)):
            raise InvalidInputError(f"date must be a date or datetime, got {self.date!r}")
        _require_number(self.weight, "weight")
        _require_number(self.reps, "reps", integer=True)
        _require_number(self.order, "order", integer=True)
        if self.rpe is not None:
            _require_number(self.rpe, "rpe")
        if self.rir is not None:
            _require_number(self.rir, "rir", integer=True)
        if self.weight < 0:
            raise InvalidInputError(f"weight must be non-negative, got {self.weight}")
        if self.reps < 0:
            raise InvalidInputError(f"reps must be non-negative, got {self.reps}")
        if self.order < 0:
            raise InvalidInputError(f"order must be non-negative, got {self.order}")
        if self.rpe is not None and not 0 <= self.rpe <= 10:
            raise InvalidInputError(f"rpe must be between 0 and 10, got {self.rpe}")
        if self.rir is not None and self.rir < 0:
            raise InvalidInputError(f"rir must be non-negative, got {self.rir}")

    @property
    def volume(self) -> float:
        """weight × reps for this set."""
        return self.weight * self.reps


@dataclass
class ExerciseProgressionConfig:
    """
    Per-exercise settings consumed by the progression analyzer.

    Analysis is disabled unless both ``target_rep_min`` and
    ``target_rep_max`` are set.  ``increment_value=None`` falls back to
    ``config.default_increment(unit, category)``.
    """

    exercise_id: str
    target_rep_min: int | None = None
    target_rep_max: int | None = None
    increment_value: float | None = None
    auto_progress: bool = False
    unit: str = "kg"
    category: str | None = None
    default_weight: float | None = None
    use_warmup_set: bool = False
    progression_set_count: int | None = None
    rest_seconds: int = 90
    rest_enabled: bool = True

    def __post_init__(self) -> None:
        """Validate progression settings."""
        _require_id(self.exercise_id, "exercise_id")
        for name in ("target_rep_min", "target_rep_max", "progression_set_count"):
            if getattr(self, name) is not None:
                _require_number(getattr(self, name), name, integer=True)
        for name in ("increment_value", "default_weight"):
            if getattr(self, name) is not None:
                _require_number(getattr(self, name), name)
        _require_number(self.rest_seconds, "rest_seconds", integer=True)
        if self.target_rep_min is not None and self.target_rep_min < 1:
            raise InvalidInputError("target_rep_min must be at least 1")
        if self.target_rep_max is not None and self.target_rep_max < 1:
            raise InvalidInputError("target_rep_max must be at least 1")
        if (
            self.target_rep_min is not None
            and self.target_rep_max is not None
            and self.target_rep_min > self.target_rep_max
        ):
            raise InvalidInputError(
                f"target_rep_min ({self.target_rep_min}) must not exceed "
                f"target_rep_max ({self.target_rep_max})"
            )
        if self.increment_value is not None and self.increment_value <= 0:
            raise InvalidInputError("increment_value must be positive")
        if self.default_weight is not None and self.default_weight < 0:
            raise InvalidInputError("default_weight must be non-negative")
        if self.progression_set_count is not None and self.progression_set_count < 0:
            raise InvalidInputError("progression_set_count must be non-negative")
        if self.rest_seconds < 0:
            raise InvalidInputError("rest_seconds must be non-negative")
        if self.unit.lower() not in ("kg", "lbs"):
            raise InvalidInputError(f"Invalid unit: {self.unit!r}. Must be 'kg' or 'lbs'.")

    @property
    def has_target_range(self) -> bool:
        """True when both ends of the rep range are configured."""
        return self.target_rep_min is not None and self.target_rep_max is not None


@dataclass
class SessionSummary:
    """
    Derived metrics for one session (one exercise, one calendar day).

    ``working_sets`` is the subset used for progression: warm-up set and
    sets beyond the progression set count are excluded.
    """

    date: date
    sets: list[LoggedSet]
    working_sets: list[LoggedSet]
    top_set: LoggedSet | None
    total_volume: float
    estimated_one_rep_max: float | None
    typical_reps: int | None
    hit_target_reps: bool

    @property
    def top_weight(self) -> float:
        return self.top_set.weight if self.top_set is not None else 0.0

    @property
    def top_reps(self) -> int:
        return self.top_set.reps if self.top_set is not None else 0


@dataclass(frozen=True)
class ProgressionStatus:
    """
    Result of comparing the latest sessions against the target rep range.

    Carries only the status kind and the numbers needed to describe it;
    wording, colours and icons belong to the presentation layer.
    ``apply_weight_update`` signals that the caller should store
    ``recommended_weight`` as the exercise's next default weight.
    """

    kind: ProgressionKind
    current_top_weight: float | None = None
    current_top_reps: int | None = None
    previous_top_weight: float | None = None
    previous_top_reps: int | None = None
    weight_delta: float = 0.0
    reps_delta: int = 0
    volume_change: float | None = None  # fractional change vs previous session
    recommended_weight: float | None = None
    recommended_reps: int | None = None
    apply_weight_update: bool = False

    @property
    def is_actionable(self) -> bool:
        """True for the two 'ready to progress' states."""
        return self.kind in ("ready_to_increase_reps", "ready_to_increase_weight")


@dataclass
class PersonalRecords:
    """Best values seen across an exercise's history."""

    best_weight: float | None = None
    best_weight_date: date | None = None
    best_e1rm: float | None = None
    best_e1rm_date: date | None = None
    best_volume: float | None = None
    best_volume_date: date | None = None
