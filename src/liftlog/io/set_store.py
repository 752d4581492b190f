"""
JSONL-based storage for logged sets and per-exercise settings.

Implements the SetRepository contract on top of two files in one data
directory:
- sets.jsonl      one LoggedSet per line
- exercises.json  {exercise_id: settings}
"""

import json
import logging
import os
from pathlib import Path

from ..core.models import ExerciseProgressionConfig, LoggedSet
from ..core.repository import RepositoryError
from .serializers import (
    ValidationError,
    config_to_dict,
    dict_to_config,
    json_line_to_logged_set,
    logged_set_to_json_line,
)

logger = logging.getLogger(__name__)


class SetStore:
    """
    Manages logged sets stored in JSONL format.

    Every write rewrites the file, keeping sets sorted by date and order so
    the file reads chronologically.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding sets.jsonl and exercises.json
        """
        self.data_dir = Path(data_dir)
        self.sets_path = self.data_dir / "sets.jsonl"
        self.exercises_path = self.data_dir / "exercises.json"

    def exists(self) -> bool:
        """Check if the sets file exists."""
        return self.sets_path.exists()

    def init(self) -> None:
        """
        Create the data directory and an empty sets file if missing.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if not self.sets_path.exists():
            self.sets_path.touch()

    # ------------------------------------------------------------------
    # Sets
    # ------------------------------------------------------------------

    def load_all(self) -> list[LoggedSet]:
        """
        Load every stored set.

        Returns:
            Sets sorted by (date, order); empty if the file does not exist

        Raises:
            ValidationError: If a line cannot be parsed
        """
        if not self.sets_path.exists():
            return []

        sets: list[LoggedSet] = []
        with open(self.sets_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    sets.append(json_line_to_logged_set(line))
                except ValidationError as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.sets_path}: {e}"
                    ) from e

        sets.sort(key=lambda s: (s.date.isoformat(), s.order))
        return sets

    def load_sets(self, exercise_id: str) -> list[LoggedSet]:
        """
        Return every stored set of one exercise.

        Raises:
            RepositoryError: If the sets file cannot be read or parsed
        """
        return [s for s in self._load_checked() if s.exercise_id == exercise_id]

    def _load_checked(self) -> list[LoggedSet]:
        """load_all() with read and parse failures raised as RepositoryError."""
        try:
            return self.load_all()
        except (OSError, ValidationError) as e:
            raise RepositoryError(str(e)) from e

    def get(self, set_id: str) -> LoggedSet | None:
        """Look up one set by id."""
        for s in self.load_all():
            if s.id == set_id:
                return s
        return None

    def save(self, logged_set: LoggedSet) -> None:
        """
        Insert a set, or replace the stored set with the same id.

        Args:
            logged_set: Set to store
        """
        self.init()
        sets = self._load_checked()
        for i, existing in enumerate(sets):
            if existing.id == logged_set.id:
                sets[i] = logged_set
                break
        else:
            sets.append(logged_set)
        self._write_sets(sets)
        logger.debug("Saved set %s (%s)", logged_set.id, logged_set.exercise_id)

    def delete(self, set_id: str) -> LoggedSet | None:
        """
        Remove a set by id.

        Returns:
            The removed set, or None if no set has that id
        """
        sets = self._load_checked()
        remaining = [s for s in sets if s.id != set_id]
        if len(remaining) == len(sets):
            return None
        removed = next(s for s in sets if s.id == set_id)
        self._write_sets(remaining)
        logger.debug("Deleted set %s", set_id)
        return removed

    def _write_sets(self, sets: list[LoggedSet]) -> None:
        """
        Write all sets to the sets file.

        Writes to a temporary file first so a crash never leaves a
        half-written history behind.
        """
        ordered = sorted(sets, key=lambda s: (s.date.isoformat(), s.order))
        tmp_path = self.sets_path.with_suffix(".jsonl.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            for s in ordered:
                f.write(logged_set_to_json_line(s) + "\n")
        os.replace(tmp_path, self.sets_path)

    # ------------------------------------------------------------------
    # Exercise settings
    # ------------------------------------------------------------------

    def load_configs(self) -> dict[str, ExerciseProgressionConfig]:
        """
        Load all exercise settings.

        Raises:
            ValidationError: If the file is not valid JSON or an entry is invalid
        """
        if not self.exercises_path.exists():
            return {}
        try:
            with open(self.exercises_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON in {self.exercises_path}: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError(f"{self.exercises_path} must contain a JSON object")
        return {k: dict_to_config({**v, "exercise_id": k}) for k, v in data.items()}

    def load_config(self, exercise_id: str) -> ExerciseProgressionConfig:
        """
        Settings for one exercise; defaults (no target range) if never saved.
        """
        configs = self.load_configs()
        return configs.get(exercise_id, ExerciseProgressionConfig(exercise_id=exercise_id))

    def save_config(self, config: ExerciseProgressionConfig) -> None:
        """Store settings for one exercise, keeping the others."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        configs = self.load_configs()
        configs[config.exercise_id] = config
        data = {}
        for ex_id, cfg in sorted(configs.items()):
            entry = config_to_dict(cfg)
            del entry["exercise_id"]
            data[ex_id] = entry
        with open(self.exercises_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)


def get_default_data_dir() -> Path:
    """
    Default data directory: $LIFTLOG_HOME, else ~/.liftlog.
    """
    env = os.environ.get("LIFTLOG_HOME")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".liftlog"
