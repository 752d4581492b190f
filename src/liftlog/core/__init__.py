"""
Core engine for liftlog.

Pure computation over logged sets (grouping, metrics, progression), the
rest timer, and the TrainingLog service that ties them to a repository.
"""

from .grouping import SessionGrouping
from .models import (
    ExerciseProgressionConfig,
    InvalidInputError,
    LoggedSet,
    PersonalRecords,
    ProgressionStatus,
    SessionSummary,
)
from .repository import InMemorySetRepository, RepositoryError, SetRepository
from .rest_timer import RestTimer, RestTimerService, TimerWatcher
from .service import TrainingLog

__all__ = [
    "ExerciseProgressionConfig",
    "InMemorySetRepository",
    "InvalidInputError",
    "LoggedSet",
    "PersonalRecords",
    "ProgressionStatus",
    "RepositoryError",
    "RestTimer",
    "RestTimerService",
    "SessionGrouping",
    "SessionSummary",
    "SetRepository",
    "TimerWatcher",
    "TrainingLog",
]
