"""
TrainingLog: the queries and set operations exposed to callers.

Wraps a SetRepository with the pure engine (grouping, metrics,
progression).  Reads degrade to "no data" when storage fails, so a broken
file yields insufficient_data instead of a crash; writes propagate errors.
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Sequence

from .config import ProgressionThresholds
from .grouping import SessionGrouping
from .metrics import (
    estimated_one_rep_max,
    personal_records,
    summarize_session,
    total_volume,
)
from .models import (
    ExerciseProgressionConfig,
    InvalidInputError,
    LoggedSet,
    PersonalRecords,
    ProgressionStatus,
    SessionSummary,
)
from .progression import analyze_live_progression, analyze_progression, recent_summaries
from .repository import RepositoryError, SetRepository
from .rest_timer import Clock, utc_now

logger = logging.getLogger(__name__)


class TrainingLog:
    """Session queries and progression analysis over a set repository."""

    def __init__(
        self,
        repository: SetRepository,
        grouping: SessionGrouping | None = None,
        thresholds: ProgressionThresholds | None = None,
        clock: Clock = utc_now,
    ):
        """
        Initialize the log.

        Args:
            repository: Storage for logged sets
            grouping: Day-boundary rules (UTC when omitted)
            thresholds: Progression tolerances (config.py defaults when omitted)
            clock: Returns the current time
        """
        self.repository = repository
        self.grouping = grouping or SessionGrouping()
        self.thresholds = thresholds or ProgressionThresholds()
        self._clock = clock

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def today(self) -> date:
        """Current calendar day in the grouping's timezone."""
        return self.grouping.calendar_day(self._clock())

    def snapshot(self, exercise_id: str) -> list[LoggedSet]:
        """
        Load one exercise's sets; empty on storage failure.
        """
        try:
            return self.repository.load_sets(exercise_id)
        except (RepositoryError, OSError) as e:
            logger.warning("Could not load sets for %s: %s", exercise_id, e)
            return []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_session(self, exercise_id: str, day: datetime | date) -> list[LoggedSet]:
        """Sets logged on one day, ordered by order."""
        return self.grouping.sets_for_day(exercise_id, self.snapshot(exercise_id), day)

    def get_last_session(
        self,
        exercise_id: str,
        excluding: datetime | date | None = None,
        before: datetime | date | None = None,
    ) -> list[LoggedSet] | None:
        """
        Most recent session, optionally before a day and/or skipping one day.

        Typical use is ``excluding=today`` while today's workout is in
        progress, so "last session" means the previous workout.

        Returns:
            Sets ordered by order, or None when there is no such session
        """
        sets = self.snapshot(exercise_id)
        if before is not None:
            return self.grouping.latest_session_before(exercise_id, sets, before, excluding)

        skip = self.grouping.calendar_day(excluding) if excluding is not None else None
        for day, day_sets in self.grouping.history(exercise_id, sets):
            if day != skip:
                return day_sets
        return None

    def sessions_by_date(self, exercise_id: str) -> dict[date, list[LoggedSet]]:
        return self.grouping.sessions_by_date(exercise_id, self.snapshot(exercise_id))

    def history(
        self,
        exercise_id: str,
        config: ExerciseProgressionConfig | None = None,
        limit: int | None = None,
    ) -> list[SessionSummary]:
        """Session summaries, newest first."""
        sets = self.snapshot(exercise_id)
        return [
            summarize_session(day, day_sets, config)
            for day, day_sets in self.grouping.history(exercise_id, sets, limit=limit)
        ]

    @staticmethod
    def volume(sets: Sequence[LoggedSet]) -> float:
        return total_volume(sets)

    @staticmethod
    def e1rm(sets: Sequence[LoggedSet]) -> float | None:
        return estimated_one_rep_max(sets)

    def progression_status(
        self,
        exercise_id: str,
        config: ExerciseProgressionConfig,
        all_sets: Sequence[LoggedSet] | None = None,
    ) -> ProgressionStatus:
        """
        Progression status from the stored (or supplied) sets.

        Args:
            exercise_id: Exercise to analyze
            config: Exercise progression settings
            all_sets: Snapshot to use instead of reading the repository
        """
        if all_sets is None:
            all_sets = self.snapshot(exercise_id)
        return analyze_progression(
            exercise_id, all_sets, config, self.grouping, self.thresholds
        )

    def live_progression_status(
        self,
        exercise_id: str,
        config: ExerciseProgressionConfig,
        current_sets: Sequence[LoggedSet],
        day: datetime | date | None = None,
    ) -> ProgressionStatus:
        """
        Progression status for sets entered today but not yet checked off.

        Args:
            exercise_id: Exercise to analyze
            config: Exercise progression settings
            current_sets: In-progress sets
            day: Day of the in-progress session (today when omitted)
        """
        session_day = self.grouping.calendar_day(day) if day is not None else self.today()
        earlier = [
            s for s in self.snapshot(exercise_id)
            if self.grouping.calendar_day(s.date) < session_day
        ]
        prior = recent_summaries(
            exercise_id, earlier, config, self.grouping, self.thresholds.sessions_to_analyze
        )
        return analyze_live_progression(
            session_day, current_sets, prior, config, self.thresholds
        )

    def personal_records(
        self,
        exercise_id: str,
        config: ExerciseProgressionConfig | None = None,
    ) -> PersonalRecords:
        completed = [s for s in self.snapshot(exercise_id) if s.completed]
        sessions = [
            summarize_session(day, day_sets, config)
            for day, day_sets in self.grouping.history(exercise_id, completed)
        ]
        return personal_records(sessions)

    # ------------------------------------------------------------------
    # Set operations
    # ------------------------------------------------------------------

    def log_set(
        self,
        exercise_id: str,
        weight: float,
        reps: int,
        when: datetime | None = None,
        completed: bool = True,
        rpe: float | None = None,
        rir: int | None = None,
    ) -> LoggedSet:
        """
        Record a set at the end of that day's session.

        Raises:
            InvalidInputError: If a value is out of range
            RepositoryError: If the set cannot be stored
        """
        now = self._clock()
        when = when or now
        day_sets = self.grouping.sets_for_day(
            exercise_id, self.repository.load_sets(exercise_id), when
        )
        logged = LoggedSet(
            exercise_id=exercise_id,
            date=when,
            weight=weight,
            reps=reps,
            order=len(day_sets),
            completed=completed,
            rpe=rpe,
            rir=rir,
            created_at=now,
            updated_at=now,
        )
        self.repository.save(logged)
        return logged

    def edit_set(
        self,
        exercise_id: str,
        set_id: str,
        weight: float | None = None,
        reps: int | None = None,
        completed: bool | None = None,
        rpe: float | None = None,
        rir: int | None = None,
    ) -> LoggedSet:
        """
        Change a stored set; ``updated_at`` is refreshed.

        Raises:
            InvalidInputError: If the set does not exist or a value is out of range
        """
        existing = next(
            (s for s in self.repository.load_sets(exercise_id) if s.id == set_id), None
        )
        if existing is None:
            raise InvalidInputError(f"No set {set_id!r} for exercise {exercise_id!r}")

        changes: dict = {"updated_at": self._clock()}
        if weight is not None:
            changes["weight"] = weight
        if reps is not None:
            changes["reps"] = reps
        if completed is not None:
            changes["completed"] = completed
        if rpe is not None:
            changes["rpe"] = rpe
        if rir is not None:
            changes["rir"] = rir

        updated = replace(existing, **changes)
        self.repository.save(updated)
        return updated

    def delete_set(self, set_id: str) -> LoggedSet | None:
        """
        Delete a set and close the gap in its session's order.

        Returns:
            The deleted set, or None if no set has that id
        """
        removed = self.repository.delete(set_id)
        if removed is None:
            return None

        now = self._clock()
        remaining = self.grouping.sets_for_day(
            removed.exercise_id,
            self.repository.load_sets(removed.exercise_id),
            removed.date,
        )
        for position, s in enumerate(remaining):
            if s.order != position:
                self.repository.save(replace(s, order=position, updated_at=now))
        logger.debug(
            "Deleted set %s; renumbered %d remaining set(s)", set_id, len(remaining)
        )
        return removed
