"""
Configuration constants for the progression engine and rest timer.

All adjustable parameters are centralized here for easy tuning.
The bundled settings.yaml mirrors these values and may be overridden
per user (see core/engine/config_loader.py).
"""

from dataclasses import dataclass
from typing import Final

from .models import InvalidInputError

# =============================================================================
# E1RM ESTIMATION
# =============================================================================

EPLEY_DIVISOR: Final[float] = 30.0  # 1RM = weight * (1 + reps/30)

# =============================================================================
# PROGRESSION ANALYSIS
# =============================================================================

DECLINE_TOLERANCE: Final[float] = 0.10  # >10% drop in reps or volume = decline
WEIGHT_TOLERANCE: Final[float] = 0.1  # Weights closer than this are "unchanged"
SESSIONS_TO_ANALYZE: Final[int] = 4  # Most recent sessions considered
CONSECUTIVE_TARGET_SESSIONS: Final[int] = 2  # Sessions at max reps before adding weight
MIN_SESSIONS_FOR_ANALYSIS: Final[int] = 2

# =============================================================================
# WEIGHT INCREMENTS
# =============================================================================

UPPER_BODY_CATEGORIES: Final[frozenset[str]] = frozenset(
    {"Chest", "Back", "Shoulders", "Biceps", "Triceps"}
)

INCREMENTS: Final[dict[str, tuple[float, float]]] = {
    # unit: (upper body, lower body)
    "kg": (2.5, 5.0),
    "lbs": (5.0, 10.0),
}

DEFAULT_UNIT: Final[str] = "kg"

# =============================================================================
# REST TIMER
# =============================================================================

DEFAULT_REST_SECONDS: Final[int] = 90
TIMER_POLL_INTERVAL_SECONDS: Final[float] = 0.1
MAX_POLL_INTERVAL_SECONDS: Final[float] = 0.2  # Above this completion feels late
COMPLETION_GRACE_SECONDS: Final[float] = 2.0  # UI auto-dismiss window after completion


# =============================================================================
# TUNABLE GROUPS (overridable from settings.yaml)
# =============================================================================

@dataclass(frozen=True)
class ProgressionThresholds:
    """Tolerances and windows used by the progression analyzer."""

    decline_tolerance: float = DECLINE_TOLERANCE
    weight_tolerance: float = WEIGHT_TOLERANCE
    sessions_to_analyze: int = SESSIONS_TO_ANALYZE
    consecutive_target_sessions: int = CONSECUTIVE_TARGET_SESSIONS

    def __post_init__(self) -> None:
        if not 0 <= self.decline_tolerance < 1:
            raise InvalidInputError("decline_tolerance must be in [0, 1)")
        if self.weight_tolerance < 0:
            raise InvalidInputError("weight_tolerance must be non-negative")
        if self.sessions_to_analyze < MIN_SESSIONS_FOR_ANALYSIS:
            raise InvalidInputError(
                f"sessions_to_analyze must be at least {MIN_SESSIONS_FOR_ANALYSIS}"
            )
        if not 1 <= self.consecutive_target_sessions <= self.sessions_to_analyze:
            raise InvalidInputError(
                "consecutive_target_sessions must be between 1 and sessions_to_analyze"
            )


@dataclass(frozen=True)
class TimerSettings:
    """Rest timer cadence and defaults."""

    poll_interval_seconds: float = TIMER_POLL_INTERVAL_SECONDS
    completion_grace_seconds: float = COMPLETION_GRACE_SECONDS
    default_rest_seconds: int = DEFAULT_REST_SECONDS

    def __post_init__(self) -> None:
        if not 0 < self.poll_interval_seconds <= MAX_POLL_INTERVAL_SECONDS:
            raise InvalidInputError(
                f"poll_interval_seconds must be in (0, {MAX_POLL_INTERVAL_SECONDS}]"
            )
        if self.completion_grace_seconds < 0:
            raise InvalidInputError("completion_grace_seconds must be non-negative")
        if self.default_rest_seconds < 0:
            raise InvalidInputError("default_rest_seconds must be non-negative")


def default_increment(unit: str, category: str | None = None) -> float:
    """
    Resistance step used when an exercise has no explicit increment.

    Upper-body lifts move in smaller jumps than lower-body lifts:
    kg → 2.5 / 5.0, lbs → 5.0 / 10.0.

    Args:
        unit: Weight unit ("kg" or "lbs", case-insensitive)
        category: Primary muscle category of the exercise (e.g. "Chest")

    Returns:
        Increment in the given unit
    """
    upper, lower = INCREMENTS.get(unit.lower(), INCREMENTS[DEFAULT_UNIT])
    if category in UPPER_BODY_CATEGORIES:
        return upper
    return lower
