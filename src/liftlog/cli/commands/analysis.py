"""Analysis commands: status, stats."""

import json
from dataclasses import replace
from typing import Annotated

import typer

from ...core.models import ExerciseProgressionConfig, ProgressionStatus
from ...io.serializers import ValidationError
from ...io.set_store import SetStore
from .. import views
from ..app import DataDirOption, ExerciseOption, JsonOption, app, get_config, get_log, get_store


def _apply_weight_update(
    store: SetStore,
    config: ExerciseProgressionConfig,
    status: ProgressionStatus,
) -> ExerciseProgressionConfig | None:
    """
    Store the recommended weight as the exercise's default when auto-progress asks for it.

    Returns:
        The updated settings, or None when nothing was written
    """
    if not status.apply_weight_update or status.recommended_weight is None:
        return None
    if config.default_weight is not None and config.default_weight >= status.recommended_weight:
        return None
    updated = replace(config, default_weight=status.recommended_weight)
    store.save_config(updated)
    return updated


def _status_to_dict(status: ProgressionStatus) -> dict:
    return {
        "kind": status.kind,
        "current_top_weight": status.current_top_weight,
        "current_top_reps": status.current_top_reps,
        "previous_top_weight": status.previous_top_weight,
        "previous_top_reps": status.previous_top_reps,
        "weight_delta": status.weight_delta,
        "reps_delta": status.reps_delta,
        "volume_change": (
            round(status.volume_change, 4) if status.volume_change is not None else None
        ),
        "recommended_weight": status.recommended_weight,
        "recommended_reps": status.recommended_reps,
        "apply_weight_update": status.apply_weight_update,
    }


@app.command()
def status(
    exercise_id: ExerciseOption,
    live: Annotated[
        bool,
        typer.Option("--live", help="Include today's sets even if not yet checked off"),
    ] = False,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show progression advice for an exercise.

    With auto-progress enabled, a "ready to increase weight" result also
    stores the new weight as the exercise's default.
    """
    store = get_store(data_dir)
    config = get_config(store, exercise_id)
    log = get_log(store)

    if live:
        today = log.today()
        current = log.get_session(exercise_id, today)
        status_info = log.live_progression_status(exercise_id, config, current, day=today)
    else:
        status_info = log.progression_status(exercise_id, config)

    updated = None
    if not live:
        try:
            updated = _apply_weight_update(store, config, status_info)
        except (OSError, ValidationError) as e:
            views.print_error(f"Could not store new default weight: {e}")
            raise typer.Exit(1)

    if json_out:
        output = _status_to_dict(status_info)
        output["default_weight"] = (updated or config).default_weight
        print(json.dumps(output, indent=2))
        return

    if not config.has_target_range:
        views.print_warning(
            f"No target rep range for {exercise_id}; "
            f"set one with 'liftlog settings -e {exercise_id} --min 8 --max 12'."
        )

    views.console.print()
    views.console.print(views.format_status_display(status_info, config))
    views.console.print()

    if updated is not None:
        views.print_success(
            f"Default weight updated to {views.fmt_weight(updated.default_weight, config.unit)}"
        )


@app.command()
def stats(
    exercise_id: ExerciseOption,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show session count, last session metrics and personal records.
    """
    store = get_store(data_dir)
    config = get_config(store, exercise_id)
    log = get_log(store)

    sessions = log.history(exercise_id, config)
    records = log.personal_records(exercise_id, config)
    last = sessions[0] if sessions else None

    if json_out:
        print(json.dumps({
            "exercise_id": exercise_id,
            "unit": config.unit,
            "sessions": len(sessions),
            "last_session": None if last is None else {
                "date": last.date.isoformat(),
                "total_volume": last.total_volume,
                "estimated_one_rep_max": (
                    round(last.estimated_one_rep_max, 2)
                    if last.estimated_one_rep_max is not None else None
                ),
            },
            "records": {
                "best_weight": records.best_weight,
                "best_weight_date": (
                    records.best_weight_date.isoformat() if records.best_weight_date else None
                ),
                "best_e1rm": round(records.best_e1rm, 2) if records.best_e1rm is not None else None,
                "best_e1rm_date": (
                    records.best_e1rm_date.isoformat() if records.best_e1rm_date else None
                ),
                "best_volume": records.best_volume,
                "best_volume_date": (
                    records.best_volume_date.isoformat() if records.best_volume_date else None
                ),
            },
        }, indent=2))
        return

    if not sessions:
        views.print_info(f"No sessions of {exercise_id} recorded yet.")
        return

    views.console.print()
    views.console.print(f"[bold]{exercise_id}[/bold]: {len(sessions)} session(s)")
    e1rm = (
        f"{last.estimated_one_rep_max:.1f} {config.unit}"
        if last.estimated_one_rep_max is not None else "-"
    )
    views.console.print(
        f"- Last session {last.date.isoformat()}: "
        f"volume {last.total_volume:g} {config.unit}, E1RM {e1rm}"
    )
    views.console.print(views.format_records(records, config.unit))
    views.console.print()
