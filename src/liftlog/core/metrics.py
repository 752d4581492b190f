"""
Pure metric computation functions.

All functions are pure and side-effect free; they never mutate the sets
they are given.

Volume policy: only ``completed`` sets contribute to volume.  Sets that
were entered but not checked off are planned work, not performed work.
"""

import math
from collections import Counter
from datetime import date
from typing import Iterable, Sequence

from .config import EPLEY_DIVISOR
from .models import (
    ExerciseProgressionConfig,
    InvalidInputError,
    LoggedSet,
    PersonalRecords,
    SessionSummary,
)


def total_volume(sets: Iterable[LoggedSet]) -> float:
    """
    Sum of weight × reps over completed sets.

    Args:
        sets: Sets to total (any order)

    Returns:
        Total volume, 0.0 for an empty input
    """
    return float(sum(s.weight * s.reps for s in sets if s.completed))


def epley_1rm(weight: float, reps: int) -> float | None:
    """
    Estimate 1RM using the Epley formula.

    1RM = weight * (1 + reps/30)

    A single rep is already a 1RM, so reps == 1 returns the weight unchanged.

    Args:
        weight: Load lifted
        reps: Reps performed

    Returns:
        Estimated 1RM, or None when reps == 0 (no estimate possible)

    Raises:
        InvalidInputError: If weight or reps is negative or weight is not finite
    """
    if not math.isfinite(weight) or weight < 0 or reps < 0:
        raise InvalidInputError(f"weight and reps must be non-negative, got {weight} x {reps}")
    if reps == 0:
        return None
    if reps == 1:
        return float(weight)
    return weight * (1 + reps / EPLEY_DIVISOR)


def best_e1rm_set(sets: Iterable[LoggedSet]) -> LoggedSet | None:
    """
    Return the set with the highest Epley estimate.

    Ties on the estimate go to the heavier set: a heavy single says more
    about maximal strength than a lighter set with the same projection.
    """
    best: LoggedSet | None = None
    best_key: tuple[float, float] | None = None
    for s in sets:
        est = epley_1rm(s.weight, s.reps)
        if est is None:
            continue
        key = (est, s.weight)
        if best_key is None or key > best_key:
            best, best_key = s, key
    return best


def estimated_one_rep_max(sets: Iterable[LoggedSet]) -> float | None:
    """
    Estimated 1RM of a set list: the best single-set Epley estimate.

    Args:
        sets: Sets to consider (order does not matter)

    Returns:
        Estimated 1RM, or None for an empty list or when every set has 0 reps
    """
    best = best_e1rm_set(sets)
    if best is None:
        return None
    return epley_1rm(best.weight, best.reps)


def top_set(sets: Iterable[LoggedSet]) -> LoggedSet | None:
    """
    Heaviest set, or at equal weight the one with the most reps.

    Args:
        sets: Sets of one session

    Returns:
        The top set, or None for an empty input
    """
    best: LoggedSet | None = None
    for s in sets:
        if best is None or (s.weight, s.reps) > (best.weight, best.reps):
            best = s
    return best


def typical_reps(sets: Iterable[LoggedSet]) -> int | None:
    """
    Most common rep count among completed sets.

    Ties go to the higher rep count so the result does not depend on
    the order sets were logged in.
    """
    counts = Counter(s.reps for s in sets if s.completed)
    if not counts:
        return None
    return max(counts.items(), key=lambda kv: (kv[1], kv[0]))[0]


def working_sets(
    sets: Sequence[LoggedSet],
    use_warmup_set: bool = False,
    progression_set_count: int | None = None,
) -> list[LoggedSet]:
    """
    Select the sets that count toward progression.

    Args:
        sets: Sets of one session
        use_warmup_set: Drop the first set by order (the warm-up)
        progression_set_count: Only keep the first N working sets (None/0 = all)

    Returns:
        Working sets sorted by order
    """
    ordered = sorted(sets, key=lambda s: s.order)
    if use_warmup_set and ordered:
        ordered = ordered[1:]
    if progression_set_count:
        ordered = ordered[:progression_set_count]
    return ordered


def summarize_session(
    day: date,
    sets: Sequence[LoggedSet],
    config: ExerciseProgressionConfig | None = None,
) -> SessionSummary:
    """
    Build the derived metrics for one session.

    Args:
        day: Calendar day of the session
        sets: All sets of the session
        config: Exercise settings (warm-up/set-count selection and target range)

    Returns:
        SessionSummary
    """
    ordered = sorted(sets, key=lambda s: s.order)
    if config is not None:
        working = working_sets(ordered, config.use_warmup_set, config.progression_set_count)
    else:
        working = list(ordered)

    completed = [s for s in working if s.completed]

    hit_target = False
    if config is not None and config.has_target_range and working:
        hit_target = all(
            s.completed and s.reps >= config.target_rep_min  # type: ignore[operator]
            for s in working
        )

    return SessionSummary(
        date=day,
        sets=ordered,
        working_sets=working,
        top_set=top_set(completed),
        total_volume=total_volume(working),
        estimated_one_rep_max=estimated_one_rep_max(completed),
        typical_reps=typical_reps(working),
        hit_target_reps=hit_target,
    )


def volume_change(current: float, previous: float) -> float | None:
    """
    Fractional change of volume relative to the previous session.

    Returns None when the previous volume is zero (no baseline).
    """
    if previous <= 0:
        return None
    return (current - previous) / previous


def personal_records(sessions: Iterable[SessionSummary]) -> PersonalRecords:
    """
    Best weight, best E1RM and best session volume across sessions.

    Earlier sessions win ties so a record keeps the date it was first set.
    """
    records = PersonalRecords()
    for session in sorted(sessions, key=lambda s: s.date):
        if session.top_set is not None and (
            records.best_weight is None or session.top_weight > records.best_weight
        ):
            records.best_weight = session.top_weight
            records.best_weight_date = session.date

        e1rm = session.estimated_one_rep_max
        if e1rm is not None and (records.best_e1rm is None or e1rm > records.best_e1rm):
            records.best_e1rm = e1rm
            records.best_e1rm_date = session.date

        if session.total_volume > 0 and (
            records.best_volume is None or session.total_volume > records.best_volume
        ):
            records.best_volume = session.total_volume
            records.best_volume_date = session.date

    return records


def format_sets_summary(sets: Sequence[LoggedSet], unit: str = "kg") -> str:
    """
    Compact one-line description of a session, e.g. "100 kg × 8/8/6".

    Consecutive sets at the same weight are grouped:
    "100 kg × 8/8, 90 kg × 10".
    """
    ordered = sorted(sets, key=lambda s: s.order)
    if not ordered:
        return "No sets"

    groups: list[tuple[float, list[int]]] = []
    for s in ordered:
        if groups and groups[-1][0] == s.weight:
            groups[-1][1].append(s.reps)
        else:
            groups.append((s.weight, [s.reps]))

    parts = []
    for weight, reps in groups:
        weight_str = f"{weight:g}"
        parts.append(f"{weight_str} {unit} × {'/'.join(str(r) for r in reps)}")
    return ", ".join(parts)
