"""Shared Typer app object, shared option types, and store/log utilities."""

from datetime import date, datetime, time
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.engine.config_loader import load_settings, load_thresholds, load_timer_settings
from ..core.grouping import SessionGrouping
from ..core.models import ExerciseProgressionConfig, InvalidInputError
from ..core.rest_timer import RestTimerService
from ..core.service import TrainingLog
from ..io.serializers import ValidationError, validate_date
from ..io.set_store import SetStore, get_default_data_dir
from . import views

# Shared --exercise option type used across all commands
ExerciseOption = Annotated[
    str,
    typer.Option("--exercise", "-e", help="Exercise ID, e.g. bench_press"),
]

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-p", help="Data directory (default: $LIFTLOG_HOME or ~/.liftlog)"),
]

# Shared --json option type
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="liftlog",
    help="Strength-training log with rep-range progression advice and a rest timer.",
    no_args_is_help=True,
)


def local_tz():
    """The machine's local timezone; sessions are split at local midnight."""
    return datetime.now().astimezone().tzinfo


def get_store(data_dir: Path | None) -> SetStore:
    """Get set store from path or default location."""
    if data_dir is None:
        data_dir = get_default_data_dir()
    return SetStore(data_dir)


def get_config(store: SetStore, exercise_id: str) -> ExerciseProgressionConfig:
    """Load one exercise's settings, exiting with an error if the file is invalid."""
    try:
        return store.load_config(exercise_id)
    except (OSError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def get_log(store: SetStore) -> TrainingLog:
    """Build a TrainingLog over the store using local day boundaries."""
    try:
        thresholds = load_thresholds(_user_settings(store))
    except InvalidInputError as e:
        views.print_error(f"Invalid progression settings: {e}")
        raise typer.Exit(1)
    return TrainingLog(store, grouping=SessionGrouping(tz=local_tz()), thresholds=thresholds)


def get_timer(store: SetStore) -> RestTimerService:
    """Build a rest timer service with the configured poll cadence."""
    try:
        settings = load_timer_settings(_user_settings(store))
    except InvalidInputError as e:
        views.print_error(f"Invalid rest timer settings: {e}")
        raise typer.Exit(1)
    return RestTimerService(settings=settings)


def _user_settings(store: SetStore) -> dict:
    """Bundled settings merged with <data-dir>/settings.yaml when present."""
    override = store.data_dir / "settings.yaml"
    return load_settings(override if override.exists() else None)


def resolve_day(date_str: str | None) -> date | None:
    """Parse --date, exiting with an error message when it is malformed."""
    if date_str is None:
        return None
    try:
        return validate_date(date_str)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def timestamp_for(day: date | None) -> datetime | None:
    """Local-noon timestamp for a back-dated entry; None means now."""
    if day is None:
        return None
    return datetime.combine(day, time(12, 0), tzinfo=local_tz())
