"""
Storage contract for logged sets.

The engine only depends on this capability interface; any storage that
can load an exercise's sets, save one set and delete one set will do.
"""

from typing import Protocol

from .models import LoggedSet


class RepositoryError(Exception):
    """Raised when the underlying storage cannot be read or written."""

    pass


class SetRepository(Protocol):
    """Read/write contract for logged sets."""

    def load_sets(self, exercise_id: str) -> list[LoggedSet]:
        """Return every stored set of one exercise (any order)."""
        ...

    def save(self, logged_set: LoggedSet) -> None:
        """Insert a new set or replace the stored set with the same id."""
        ...

    def delete(self, set_id: str) -> LoggedSet | None:
        """Remove a set by id; return the removed set, or None if unknown."""
        ...


class InMemorySetRepository:
    """Dictionary-backed repository, used for tests and scratch sessions."""

    def __init__(self, sets: list[LoggedSet] | None = None):
        self._sets: dict[str, LoggedSet] = {}
        for s in sets or []:
            self._sets[s.id] = s

    def load_sets(self, exercise_id: str) -> list[LoggedSet]:
        return [s for s in self._sets.values() if s.exercise_id == exercise_id]

    def save(self, logged_set: LoggedSet) -> None:
        self._sets[logged_set.id] = logged_set

    def delete(self, set_id: str) -> LoggedSet | None:
        return self._sets.pop(set_id, None)
