"""Exercise settings command."""

import json
from dataclasses import replace
from typing import Annotated, Optional

import typer

from ...core.models import ExerciseProgressionConfig, InvalidInputError
from ...core.progression import increment_for
from ...core.rest_timer import format_countdown
from ...io.serializers import ValidationError, config_to_dict
from .. import views
from ..app import DataDirOption, ExerciseOption, JsonOption, app, get_config, get_store


def _format_settings(config: ExerciseProgressionConfig) -> str:
    if config.has_target_range:
        target = f"{config.target_rep_min}-{config.target_rep_max} reps"
    else:
        target = "not set (progression advice disabled)"
    increment = views.fmt_weight(increment_for(config), config.unit)
    if config.increment_value is None:
        increment += " (default)"
    rest = format_countdown(config.rest_seconds) if config.rest_enabled else "off"
    working = (
        str(config.progression_set_count) if config.progression_set_count else "all"
    )
    return "\n".join([
        f"[bold]{config.exercise_id}[/bold]",
        f"- Target: {target}",
        f"- Increment: {increment}",
        f"- Auto-progress: {'on' if config.auto_progress else 'off'}",
        f"- Default weight: {views.fmt_weight(config.default_weight, config.unit)}",
        f"- Category: {config.category or '-'}",
        f"- First set is warm-up: {'yes' if config.use_warmup_set else 'no'}",
        f"- Working sets analyzed: {working}",
        f"- Rest: {rest}",
    ])


@app.command()
def settings(
    exercise_id: ExerciseOption,
    rep_min: Annotated[
        Optional[int],
        typer.Option("--min", help="Bottom of the target rep range"),
    ] = None,
    rep_max: Annotated[
        Optional[int],
        typer.Option("--max", help="Top of the target rep range"),
    ] = None,
    clear_range: Annotated[
        bool,
        typer.Option("--clear-range", help="Remove the target rep range"),
    ] = False,
    increment: Annotated[
        Optional[float],
        typer.Option("--increment", "-i", help="Weight added when progressing"),
    ] = None,
    auto_progress: Annotated[
        Optional[bool],
        typer.Option("--auto-progress/--no-auto-progress", help="Store new weights automatically"),
    ] = None,
    unit: Annotated[
        Optional[str],
        typer.Option("--unit", "-u", help="kg or lbs"),
    ] = None,
    category: Annotated[
        Optional[str],
        typer.Option("--category", "-c", help="Muscle group, e.g. Chest, Legs"),
    ] = None,
    default_weight: Annotated[
        Optional[float],
        typer.Option("--default-weight", "-w", help="Weight used when log-set omits --weight"),
    ] = None,
    warmup: Annotated[
        Optional[bool],
        typer.Option("--warmup/--no-warmup", help="Treat each session's first set as a warm-up"),
    ] = None,
    working_sets: Annotated[
        Optional[int],
        typer.Option("--working-sets", help="Analyze only the first N working sets (0 = all)"),
    ] = None,
    rest_seconds: Annotated[
        Optional[int],
        typer.Option("--rest-seconds", "-r", help="Rest between sets in seconds"),
    ] = None,
    rest_enabled: Annotated[
        Optional[bool],
        typer.Option("--rest/--no-rest", help="Suggest the rest timer after logging"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show or change an exercise's progression and rest settings.

    Without options the current settings are shown.

      liftlog settings -e bench_press --min 8 --max 12 --category Chest
    """
    store = get_store(data_dir)
    config = get_config(store, exercise_id)

    changes: dict = {}
    if clear_range:
        changes["target_rep_min"] = None
        changes["target_rep_max"] = None
    if rep_min is not None:
        changes["target_rep_min"] = rep_min
    if rep_max is not None:
        changes["target_rep_max"] = rep_max
    if increment is not None:
        changes["increment_value"] = increment
    if auto_progress is not None:
        changes["auto_progress"] = auto_progress
    if unit is not None:
        changes["unit"] = unit.lower()
    if category is not None:
        changes["category"] = category
    if default_weight is not None:
        changes["default_weight"] = default_weight
    if warmup is not None:
        changes["use_warmup_set"] = warmup
    if working_sets is not None:
        changes["progression_set_count"] = working_sets or None
    if rest_seconds is not None:
        changes["rest_seconds"] = rest_seconds
    if rest_enabled is not None:
        changes["rest_enabled"] = rest_enabled

    if changes:
        try:
            config = replace(config, **changes)
        except InvalidInputError as e:
            views.print_error(str(e))
            raise typer.Exit(1)
        try:
            store.save_config(config)
        except (OSError, ValidationError) as e:
            views.print_error(f"Could not save settings: {e}")
            raise typer.Exit(1)

    if json_out:
        print(json.dumps(config_to_dict(config), indent=2))
        return

    if changes:
        views.print_success(f"Saved settings for {exercise_id}")
    views.console.print(_format_settings(config))
