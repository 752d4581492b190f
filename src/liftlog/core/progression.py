"""
Progression analysis: compare recent sessions against a target rep range.

The analyzer is a pure function of a session snapshot.  It returns a
ProgressionStatus (kind + numbers) and never writes anything back; when
``auto_progress`` is on it only flags ``apply_weight_update`` for the caller.

Decision order (most recent session vs the one before it):

1. No target range, or fewer than two sessions → insufficient_data
2. Top weight dropped, or is below any older analyzed session → recently_regressed
3. Reps or volume dropped by more than the decline tolerance → declining_performance
   (not applied after a deliberate weight increase that still hits target min)
4. Top reps below target min → maintaining_below_target
5. Top reps in [min, max) → progressing_toward_target
6. Top reps ≥ max for N consecutive sessions at the same weight → ready_to_increase_weight,
   otherwise → ready_to_increase_reps
"""

from dataclasses import replace
from datetime import date
from typing import Sequence

from .config import MIN_SESSIONS_FOR_ANALYSIS, ProgressionThresholds, default_increment
from .grouping import SessionGrouping
from .metrics import summarize_session, volume_change
from .models import (
    ExerciseProgressionConfig,
    LoggedSet,
    ProgressionStatus,
    SessionSummary,
)

INSUFFICIENT_DATA = ProgressionStatus(kind="insufficient_data")


def increment_for(config: ExerciseProgressionConfig) -> float:
    """Configured increment, or the unit/category default."""
    if config.increment_value is not None:
        return config.increment_value
    return default_increment(config.unit, config.category)


def _declined(current: SessionSummary, previous: SessionSummary, tolerance: float) -> bool:
    keep = 1 - tolerance
    reps_dropped = previous.top_reps > 0 and current.top_reps < previous.top_reps * keep
    volume_dropped = (
        previous.total_volume > 0 and current.total_volume < previous.total_volume * keep
    )
    return reps_dropped or volume_dropped


def _at_max_streak(
    sessions: Sequence[SessionSummary],
    weight: float,
    rep_max: int,
    length: int,
    weight_tolerance: float,
) -> bool:
    streak = sessions[:length]
    if len(streak) < length:
        return False
    return all(
        s.top_set is not None
        and s.top_reps >= rep_max
        and abs(s.top_weight - weight) <= weight_tolerance
        for s in streak
    )


def analyze_sessions(
    sessions: Sequence[SessionSummary],
    config: ExerciseProgressionConfig,
    thresholds: ProgressionThresholds | None = None,
) -> ProgressionStatus:
    """
    Determine progression status from session summaries.

    Args:
        sessions: Session summaries, most recent first
        config: Exercise progression settings
        thresholds: Tolerances (defaults from config.py)

    Returns:
        ProgressionStatus
    """
    if thresholds is None:
        thresholds = ProgressionThresholds()

    sessions = [s for s in sessions if s.top_set is not None]
    sessions = sessions[: thresholds.sessions_to_analyze]

    if not config.has_target_range or len(sessions) < MIN_SESSIONS_FOR_ANALYSIS:
        return INSUFFICIENT_DATA

    rep_min: int = config.target_rep_min  # type: ignore[assignment]
    rep_max: int = config.target_rep_max  # type: ignore[assignment]
    tol = thresholds.weight_tolerance

    current, previous = sessions[0], sessions[1]
    cur_w, cur_r = current.top_weight, current.top_reps
    prev_w, prev_r = previous.top_weight, previous.top_reps

    base = ProgressionStatus(
        kind="insufficient_data",
        current_top_weight=cur_w,
        current_top_reps=cur_r,
        previous_top_weight=prev_w,
        previous_top_reps=prev_r,
        weight_delta=cur_w - prev_w,
        reps_delta=cur_r - prev_r,
        volume_change=volume_change(current.total_volume, previous.total_volume),
    )

    if cur_w < prev_w - tol:
        return replace(base, kind="recently_regressed", recommended_weight=prev_w)

    older_heavier = [s.top_weight for s in sessions[2:] if s.top_weight > cur_w + tol]
    if older_heavier:
        return replace(base, kind="recently_regressed", recommended_weight=max(older_heavier))

    weight_increased = cur_w > prev_w + tol
    planned_reset = weight_increased and cur_r >= rep_min
    if not planned_reset and _declined(current, previous, thresholds.decline_tolerance):
        return replace(base, kind="declining_performance")

    if cur_r < rep_min:
        return replace(base, kind="maintaining_below_target", recommended_reps=rep_min)

    if cur_r < rep_max:
        return replace(
            base,
            kind="progressing_toward_target",
            recommended_reps=min(cur_r + 1, rep_max),
        )

    if _at_max_streak(sessions, cur_w, rep_max, thresholds.consecutive_target_sessions, tol):
        return replace(
            base,
            kind="ready_to_increase_weight",
            recommended_weight=cur_w + increment_for(config),
            recommended_reps=rep_min,
            apply_weight_update=config.auto_progress,
        )

    return replace(base, kind="ready_to_increase_reps", recommended_reps=cur_r + 1)


def recent_summaries(
    exercise_id: str,
    all_sets: Sequence[LoggedSet],
    config: ExerciseProgressionConfig,
    grouping: SessionGrouping,
    limit: int,
) -> list[SessionSummary]:
    """
    Summaries of the most recent sessions that contain completed sets.

    Only completed sets are considered, so a day with nothing checked off
    does not count as a session.
    """
    completed = [s for s in all_sets if s.completed]
    return [
        summarize_session(day, day_sets, config)
        for day, day_sets in grouping.history(exercise_id, completed, limit=limit)
    ]


def analyze_progression(
    exercise_id: str,
    all_sets: Sequence[LoggedSet],
    config: ExerciseProgressionConfig,
    grouping: SessionGrouping | None = None,
    thresholds: ProgressionThresholds | None = None,
) -> ProgressionStatus:
    """
    Progression status for one exercise from a flat snapshot of sets.

    Args:
        exercise_id: Exercise to analyze
        all_sets: Snapshot of logged sets (may include other exercises)
        config: Exercise progression settings
        grouping: Day-boundary rules (UTC when omitted)
        thresholds: Tolerances (defaults from config.py)

    Returns:
        ProgressionStatus
    """
    if grouping is None:
        grouping = SessionGrouping()
    if thresholds is None:
        thresholds = ProgressionThresholds()
    if not config.has_target_range:
        return INSUFFICIENT_DATA

    sessions = recent_summaries(
        exercise_id, all_sets, config, grouping, thresholds.sessions_to_analyze
    )
    return analyze_sessions(sessions, config, thresholds)


def analyze_live_progression(
    day: date,
    current_sets: Sequence[LoggedSet],
    prior_sessions: Sequence[SessionSummary],
    config: ExerciseProgressionConfig,
    thresholds: ProgressionThresholds | None = None,
) -> ProgressionStatus:
    """
    Progression status for an in-progress session that is not checked off yet.

    Entered sets are evaluated as if performed, so the recommendation can be
    shown before the athlete marks them complete.

    Args:
        day: Calendar day of the in-progress session
        current_sets: Sets entered for that day
        prior_sessions: Earlier session summaries, most recent first
        config: Exercise progression settings
        thresholds: Tolerances (defaults from config.py)

    Returns:
        ProgressionStatus
    """
    if not current_sets or not config.has_target_range:
        return INSUFFICIENT_DATA

    performed = [replace(s, completed=True) for s in current_sets]
    current = summarize_session(day, performed, config)
    return analyze_sessions([current, *prior_sessions], config, thresholds)
