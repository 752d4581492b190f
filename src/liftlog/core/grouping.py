"""
Session grouping: logged sets → per-exercise, per-calendar-day sessions.

Day boundaries depend on a timezone, so the grouping is constructed with
an explicit ``tzinfo`` instead of reading the system calendar.  Aware
datetimes are converted into that zone before taking the date; naive
datetimes are taken to already be local to it.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Iterable

from .models import InvalidInputError, LoggedSet


@dataclass(frozen=True)
class SessionGrouping:
    """Groups sets by exercise and calendar day in a fixed timezone."""

    tz: tzinfo = timezone.utc

    def calendar_day(self, value: datetime | date) -> date:
        """
        Return the calendar day of a point in time.

        Args:
            value: datetime (aware or naive) or date

        Returns:
            The date in this grouping's timezone

        Raises:
            InvalidInputError: If value is not a date/datetime
        """
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                return value.astimezone(self.tz).date()
            return value.date()
        if isinstance(value, date):
            return value
        raise InvalidInputError(f"Expected a date or datetime, got {value!r}")

    def _for_exercise(self, exercise_id: str, sets: Iterable[LoggedSet]) -> list[LoggedSet]:
        return [s for s in sets if s.exercise_id == exercise_id]

    def sessions_by_date(
        self,
        exercise_id: str,
        all_sets: Iterable[LoggedSet],
    ) -> dict[date, list[LoggedSet]]:
        """
        Partition one exercise's sets by calendar day.

        Every matching set lands in exactly one bucket; sets within a
        bucket are ordered by ``order``.

        Args:
            exercise_id: Exercise to select
            all_sets: Flat collection of sets (any exercises, any order)

        Returns:
            {day: sets ordered by order}
        """
        buckets: dict[date, list[LoggedSet]] = {}
        for s in self._for_exercise(exercise_id, all_sets):
            buckets.setdefault(self.calendar_day(s.date), []).append(s)
        for day_sets in buckets.values():
            day_sets.sort(key=lambda s: s.order)
        return buckets

    def history(
        self,
        exercise_id: str,
        all_sets: Iterable[LoggedSet],
        limit: int | None = None,
    ) -> list[tuple[date, list[LoggedSet]]]:
        """
        Sessions for one exercise, newest first.

        Args:
            exercise_id: Exercise to select
            all_sets: Flat collection of sets
            limit: Keep only the most recent N sessions

        Returns:
            List of (day, sets) pairs sorted by day descending
        """
        buckets = self.sessions_by_date(exercise_id, all_sets)
        days = sorted(buckets, reverse=True)
        if limit is not None:
            days = days[:limit]
        return [(d, buckets[d]) for d in days]

    def latest_session_before(
        self,
        exercise_id: str,
        all_sets: Iterable[LoggedSet],
        before: datetime | date,
        excluding: datetime | date | None = None,
    ) -> list[LoggedSet] | None:
        """
        Sets of the most recent day strictly earlier than ``before``.

        ``excluding`` removes one more day by exact day equality.  When it
        names the same day as ``before`` it changes nothing: the result is
        still the latest day before the target, not one day further back.

        Args:
            exercise_id: Exercise to select
            all_sets: Flat collection of sets
            before: Target point in time
            excluding: Optional day to leave out

        Returns:
            Sets ordered by order, or None if no earlier day has sets
        """
        target = self.calendar_day(before)
        skip = self.calendar_day(excluding) if excluding is not None else None

        buckets = self.sessions_by_date(exercise_id, all_sets)
        candidates = [d for d in buckets if d < target and d != skip]
        if not candidates:
            return None
        return buckets[max(candidates)]

    def sets_for_day(
        self,
        exercise_id: str,
        all_sets: Iterable[LoggedSet],
        day: datetime | date,
    ) -> list[LoggedSet]:
        """
        Sets of one exercise on exactly one calendar day, ordered by order.

        Returns an empty list when nothing was logged that day.
        """
        target = self.calendar_day(day)
        matching = [
            s for s in self._for_exercise(exercise_id, all_sets)
            if self.calendar_day(s.date) == target
        ]
        return sorted(matching, key=lambda s: s.order)
