"""
JSON serialization for liftlog data models.

Handles conversion between dataclasses and JSON-compatible dicts, and
parsing of the sets strings accepted on the command line.
"""

import json
import math
import re
from datetime import date, datetime
from typing import Any

from ..core.models import ExerciseProgressionConfig, InvalidInputError, LoggedSet


class ValidationError(Exception):
    """Raised when stored data or user input fails validation."""

    pass


def validate_date(date_str: str) -> date:
    """
    Parse a YYYY-MM-DD string.

    Args:
        date_str: Date string to validate

    Returns:
        The parsed date

    Raises:
        ValidationError: If date format is invalid
    """
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")

    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp (a bare YYYY-MM-DD is accepted as midnight).

    Raises:
        ValidationError: If the value is not a valid timestamp
    """
    if not isinstance(value, str):
        raise ValidationError(f"Invalid timestamp: {value!r}")
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp: {value}") from e


def validate_non_negative(value: int | float, name: str, integer: bool = False) -> int | float:
    """
    Validate that a value is a finite, non-negative number.

    Args:
        value: Value to validate
        name: Name for error message
        integer: Require a whole number (JSON integer)

    Returns:
        The value if valid

    Raises:
        ValidationError: If value is negative, NaN, infinite or not a number
    """
    kinds = (int,) if integer else (int, float)
    if not isinstance(value, kinds) or isinstance(value, bool):
        kind = "a whole number" if integer else "a number"
        raise ValidationError(f"{name} must be {kind}, got {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"{name} must be finite, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def logged_set_to_dict(logged_set: LoggedSet) -> dict[str, Any]:
    """
    Convert LoggedSet to JSON-compatible dict.

    Optional fields are only written when set.
    """
    d: dict[str, Any] = {
        "id": logged_set.id,
        "exercise_id": logged_set.exercise_id,
        "date": logged_set.date.isoformat(),
        "order": logged_set.order,
        "weight": logged_set.weight,
        "reps": logged_set.reps,
        "completed": logged_set.completed,
    }
    if logged_set.rpe is not None:
        d["rpe"] = logged_set.rpe
    if logged_set.rir is not None:
        d["rir"] = logged_set.rir
    if logged_set.created_at is not None:
        d["created_at"] = logged_set.created_at.isoformat()
    if logged_set.updated_at is not None:
        d["updated_at"] = logged_set.updated_at.isoformat()
    return d


def dict_to_logged_set(data: dict[str, Any]) -> LoggedSet:
    """
    Convert dict to LoggedSet.

    Args:
        data: Dict representation

    Returns:
        LoggedSet instance

    Raises:
        ValidationError: If data is invalid
    """
    for key in ("id", "exercise_id", "date", "weight", "reps"):
        if key not in data:
            raise ValidationError(f"Logged set is missing '{key}'")

    validate_non_negative(data["weight"], "weight")
    validate_non_negative(data["reps"], "reps", integer=True)
    validate_non_negative(data.get("order", 0), "order", integer=True)
    if data.get("rpe") is not None:
        validate_non_negative(data["rpe"], "rpe")
    if data.get("rir") is not None:
        validate_non_negative(data["rir"], "rir", integer=True)

    created = data.get("created_at")
    updated = data.get("updated_at")
    try:
        return LoggedSet(
            id=str(data["id"]),
            exercise_id=str(data["exercise_id"]),
            date=parse_timestamp(data["date"]),
            order=int(data.get("order", 0)),
            weight=float(data["weight"]),
            reps=int(data["reps"]),
            completed=bool(data.get("completed", True)),
            rpe=float(data["rpe"]) if data.get("rpe") is not None else None,
            rir=int(data["rir"]) if data.get("rir") is not None else None,
            created_at=parse_timestamp(created) if created else None,
            updated_at=parse_timestamp(updated) if updated else None,
        )
    except InvalidInputError as e:
        raise ValidationError(str(e)) from e


def logged_set_to_json_line(logged_set: LoggedSet) -> str:
    """Serialize a set to a single JSON line (no trailing newline)."""
    return json.dumps(logged_set_to_dict(logged_set), separators=(",", ":"))


def json_line_to_logged_set(line: str) -> LoggedSet:
    """
    Deserialize a JSON line to a LoggedSet.

    Raises:
        ValidationError: If JSON is invalid or data validation fails
    """
    try:
        data = json.loads(line.strip())
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object")
    return dict_to_logged_set(data)


def config_to_dict(config: ExerciseProgressionConfig) -> dict[str, Any]:
    """Convert ExerciseProgressionConfig to JSON-compatible dict."""
    return {
        "exercise_id": config.exercise_id,
        "target_rep_min": config.target_rep_min,
        "target_rep_max": config.target_rep_max,
        "increment_value": config.increment_value,
        "auto_progress": config.auto_progress,
        "unit": config.unit,
        "category": config.category,
        "default_weight": config.default_weight,
        "use_warmup_set": config.use_warmup_set,
        "progression_set_count": config.progression_set_count,
        "rest_seconds": config.rest_seconds,
        "rest_enabled": config.rest_enabled,
    }


def dict_to_config(data: dict[str, Any]) -> ExerciseProgressionConfig:
    """
    Convert dict to ExerciseProgressionConfig.

    Raises:
        ValidationError: If data is invalid
    """
    if "exercise_id" not in data:
        raise ValidationError("Exercise settings are missing 'exercise_id'")

    def _opt_int(key: str) -> int | None:
        v = data.get(key)
        return int(v) if v is not None else None

    def _opt_float(key: str) -> float | None:
        v = data.get(key)
        return float(v) if v is not None else None

    try:
        return ExerciseProgressionConfig(
            exercise_id=str(data["exercise_id"]),
            target_rep_min=_opt_int("target_rep_min"),
            target_rep_max=_opt_int("target_rep_max"),
            increment_value=_opt_float("increment_value"),
            auto_progress=bool(data.get("auto_progress", False)),
            unit=str(data.get("unit", "kg")),
            category=data.get("category"),
            default_weight=_opt_float("default_weight"),
            use_warmup_set=bool(data.get("use_warmup_set", False)),
            progression_set_count=_opt_int("progression_set_count"),
            rest_seconds=int(data.get("rest_seconds", 90)),
            rest_enabled=bool(data.get("rest_enabled", True)),
        )
    except (InvalidInputError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid settings for {data['exercise_id']!r}: {e}") from e


def parse_sets_string(sets_str: str) -> list[tuple[float, int]]:
    """
    Parse a sets string into (weight, reps) pairs.

    Comma-separated groups, each one of:
        WxR      e.g. "100x8"      one set of 8 reps at 100
        WxRxS    e.g. "100x8x3"    three sets of 8 reps at 100
        R@W      e.g. "8@100"      one set of 8 reps at 100
        R        e.g. "12"         one set of 12 reps, no added load

    "x", "X" and "×" are all accepted.

    Args:
        sets_str: Sets string to parse

    Returns:
        List of (weight, reps) tuples in entry order

    Raises:
        ValidationError: If format is invalid
    """
    if not sets_str or not sets_str.strip():
        raise ValidationError("Sets string cannot be empty")

    number = r"(\d+(?:\.\d+)?)"
    sets: list[tuple[float, int]] = []
    parts = [p.strip() for p in sets_str.split(",") if p.strip()]

    for part in parts:
        match_wrs = re.fullmatch(number + r"\s*[xX×]\s*(\d+)\s*[xX×]\s*(\d+)", part)
        match_wr = re.fullmatch(number + r"\s*[xX×]\s*(\d+)", part)
        match_at = re.fullmatch(r"(\d+)\s*@\s*\+?" + number, part)
        match_bare = re.fullmatch(r"(\d+)", part)

        if match_wrs:
            weight = float(match_wrs.group(1))
            reps = int(match_wrs.group(2))
            count = int(match_wrs.group(3))
            if count < 1:
                raise ValidationError(f"Set count must be at least 1: '{part}'")
            sets.extend([(weight, reps)] * count)
        elif match_wr:
            sets.append((float(match_wr.group(1)), int(match_wr.group(2))))
        elif match_at:
            sets.append((float(match_at.group(2)), int(match_at.group(1))))
        elif match_bare:
            sets.append((0.0, int(match_bare.group(1))))
        else:
            raise ValidationError(
                f"Invalid set format: '{part}'.\n"
                f"Use: weightxreps (e.g. 100x8), weightxrepsxsets (e.g. 100x8x3),\n"
                f"     reps@weight (e.g. 8@100) or bare reps (e.g. 12)."
            )

    if not sets:
        raise ValidationError("No valid sets found in sets string")

    return sets
