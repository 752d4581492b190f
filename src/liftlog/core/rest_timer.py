"""
Rest timer: a single countdown between sets.

State machine: idle → running → completed → idle.  Starting a timer at
any point replaces the live one with a fresh instance (new id).  Completion
is derived from the clock (``now >= ends_at``), so it is correct whenever it
is evaluated; polling only bounds how quickly a watcher notices it.

The service owns at most one timer.  Mutations go through one lock so a
skip or acknowledge can never interleave with a start and leave stale state.
"""

import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Literal

from .config import TimerSettings
from .models import InvalidInputError, new_id

logger = logging.getLogger(__name__)

TimerPhase = Literal["idle", "running", "completed"]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def format_countdown(seconds: float) -> str:
    """Format remaining seconds as m:ss, rounding partial seconds up."""
    total = max(0, math.ceil(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"


@dataclass(frozen=True)
class RestTimer:
    """One rest interval.  Every started timer gets a new ``id``."""

    exercise_id: str
    set_number: int
    duration_seconds: float
    started_at: datetime
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        """Validate timer parameters."""
        if not self.exercise_id:
            raise InvalidInputError("exercise_id must be non-empty")
        if self.set_number < 0:
            raise InvalidInputError(f"set_number must be non-negative, got {self.set_number}")
        if self.duration_seconds < 0:
            raise InvalidInputError(
                f"duration_seconds must be non-negative, got {self.duration_seconds}"
            )

    @property
    def ends_at(self) -> datetime:
        return self.started_at + timedelta(seconds=self.duration_seconds)

    def is_completed(self, now: datetime) -> bool:
        return now >= self.ends_at

    def time_remaining(self, now: datetime) -> float:
        return max(0.0, (self.ends_at - now).total_seconds())

    def progress(self, now: datetime) -> float:
        """Elapsed fraction of the interval, clamped to [0, 1]."""
        if self.duration_seconds <= 0:
            return 1.0
        elapsed = (now - self.started_at).total_seconds()
        return min(1.0, max(0.0, elapsed / self.duration_seconds))


@dataclass(frozen=True)
class TimerDisplay:
    """Snapshot of the live timer for rendering (Live Activity, CLI)."""

    timer_id: str
    exercise_id: str
    set_number: int
    phase: TimerPhase
    remaining_seconds: float
    progress: float
    ends_at: datetime

    @property
    def label(self) -> str:
        return format_countdown(self.remaining_seconds)


class RestTimerService:
    """
    Owns the single live rest timer.

    Callers hold a reference to the service; there is no module-level
    instance.  Any number of readers may poll while one component starts,
    skips and acknowledges.
    """

    def __init__(self, clock: Clock = utc_now, settings: TimerSettings | None = None):
        """
        Initialize the service.

        Args:
            clock: Returns the current time (inject a fake for tests)
            settings: Poll cadence and default duration
        """
        self._clock = clock
        self.settings = settings or TimerSettings()
        self._lock = threading.Lock()
        self._timer: RestTimer | None = None

    def start(
        self,
        exercise_id: str,
        set_number: int,
        duration_seconds: float | None = None,
    ) -> RestTimer:
        """
        Start a new timer, replacing any live one.

        Args:
            exercise_id: Exercise the rest belongs to
            set_number: Set that was just completed
            duration_seconds: Rest length (settings default when None)

        Returns:
            The new timer
        """
        if duration_seconds is None:
            duration_seconds = self.settings.default_rest_seconds
        with self._lock:
            timer = RestTimer(
                exercise_id=exercise_id,
                set_number=set_number,
                duration_seconds=duration_seconds,
                started_at=self._clock(),
            )
            previous, self._timer = self._timer, timer
        if previous is not None:
            logger.debug("Rest timer %s superseded by %s", previous.id, timer.id)
        logger.debug(
            "Started rest timer %s: %s set %d, %.0fs",
            timer.id, exercise_id, set_number, duration_seconds,
        )
        return timer

    def skip(self) -> bool:
        """
        Discard the live timer.  Idempotent.

        Returns:
            True if a timer was cleared
        """
        with self._lock:
            cleared, self._timer = self._timer, None
        if cleared is not None:
            logger.debug("Skipped rest timer %s", cleared.id)
        return cleared is not None

    def acknowledge_completion(self, timer_id: str | None = None) -> bool:
        """
        Clear a completed timer.

        A running timer is left alone.  With ``timer_id`` the timer is only
        cleared if it is still that one, so a late acknowledgement for an old
        timer cannot dismiss a newer one.

        Returns:
            True if the timer was cleared
        """
        with self._lock:
            timer = self._timer
            if timer is None:
                return False
            if timer_id is not None and timer.id != timer_id:
                return False
            if not timer.is_completed(self._clock()):
                return False
            self._timer = None
        logger.debug("Acknowledged rest timer %s", timer.id)
        return True

    @property
    def active(self) -> RestTimer | None:
        """The live timer (running or completed), or None when idle."""
        with self._lock:
            return self._timer

    def phase(self) -> TimerPhase:
        with self._lock:
            timer = self._timer
            if timer is None:
                return "idle"
            return "completed" if timer.is_completed(self._clock()) else "running"

    def is_completed(self, timer_id: str | None = None) -> bool:
        """
        Whether the live timer has run out.

        With ``timer_id``, only reports completion if that timer is still the
        live one; a replaced timer never reports as completed.
        """
        with self._lock:
            timer = self._timer
            if timer is None:
                return False
            if timer_id is not None and timer.id != timer_id:
                return False
            return timer.is_completed(self._clock())

    def time_remaining(self) -> float | None:
        with self._lock:
            if self._timer is None:
                return None
            return self._timer.time_remaining(self._clock())

    def display(self) -> TimerDisplay | None:
        """Render-ready snapshot of the live timer, or None when idle."""
        with self._lock:
            timer = self._timer
            if timer is None:
                return None
            now = self._clock()
            return TimerDisplay(
                timer_id=timer.id,
                exercise_id=timer.exercise_id,
                set_number=timer.set_number,
                phase="completed" if timer.is_completed(now) else "running",
                remaining_seconds=timer.time_remaining(now),
                progress=timer.progress(now),
                ends_at=timer.ends_at,
            )

    def watch(
        self,
        on_complete: Callable[[RestTimer], None],
        poll_interval: float | None = None,
        exercise_id: str | None = None,
    ) -> "TimerWatcher":
        """
        Start a background poller that reports each timer's completion once.

        Args:
            on_complete: Called with the completed timer
            poll_interval: Seconds between polls (settings default when None)
            exercise_id: Only report timers for this exercise

        Returns:
            The running watcher; call ``close()`` to stop it
        """
        watcher = TimerWatcher(
            self,
            on_complete,
            poll_interval or self.settings.poll_interval_seconds,
            exercise_id=exercise_id,
        )
        watcher.start()
        return watcher


class TimerWatcher:
    """
    Polls a RestTimerService and fires ``on_complete`` once per timer id.

    ``check()`` performs a single poll and can be driven directly.
    """

    def __init__(
        self,
        service: RestTimerService,
        on_complete: Callable[[RestTimer], None],
        poll_interval: float,
        exercise_id: str | None = None,
    ):
        if poll_interval <= 0:
            raise InvalidInputError("poll_interval must be positive")
        self.service = service
        self.on_complete = on_complete
        self.poll_interval = poll_interval
        self.exercise_id = exercise_id
        self._notified_id: str | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def check(self) -> bool:
        """
        Poll once.

        Returns:
            True if a completion was reported by this call
        """
        timer = self.service.active
        if timer is None:
            return False
        if self.exercise_id is not None and timer.exercise_id != self.exercise_id:
            return False
        if timer.id == self._notified_id:
            return False
        if not self.service.is_completed(timer.id):
            return False
        self._notified_id = timer.id
        self.on_complete(timer)
        return True

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="rest-timer-watch", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.check()
            except Exception:
                logger.exception("Rest timer completion callback failed")
            self._stop.wait(self.poll_interval)

    def close(self) -> None:
        """Stop polling and wait for the poller thread to exit."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
