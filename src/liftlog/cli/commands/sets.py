"""Set commands: log-set, log-sets, show-history, show-session, edit-set, delete-set."""

import json
from datetime import date
from typing import Annotated, Optional

import typer

from ...core.metrics import format_sets_summary
from ...core.models import ExerciseProgressionConfig, InvalidInputError, LoggedSet
from ...core.repository import RepositoryError
from ...core.rest_timer import format_countdown
from ...core.service import TrainingLog
from ...io.serializers import ValidationError, logged_set_to_dict, parse_sets_string
from .. import views
from ..app import (
    DataDirOption,
    ExerciseOption,
    JsonOption,
    app,
    get_config,
    get_log,
    get_store,
    resolve_day,
    timestamp_for,
)

DateOption = Annotated[
    Optional[str],
    typer.Option("--date", "-d", help="Session date (YYYY-MM-DD, default: today)"),
]

PendingOption = Annotated[
    bool,
    typer.Option("--pending", help="Record as entered but not yet performed"),
]


def _print_live_status(
    log: TrainingLog,
    config: ExerciseProgressionConfig,
    day: date,
) -> None:
    """Show what today's sets (checked off or not) mean for progression."""
    if not config.has_target_range:
        return
    current = log.get_session(config.exercise_id, day)
    status = log.live_progression_status(config.exercise_id, config, current, day=day)
    if status.kind == "insufficient_data":
        return
    title, message, color = views.describe_status(status, config.unit)
    views.console.print(f"[{color}]{title}:[/{color}] {message}")


def _print_rest_hint(config: ExerciseProgressionConfig) -> None:
    if config.rest_enabled:
        views.print_info(
            f"Rest {format_countdown(config.rest_seconds)}: "
            f"run 'liftlog rest -e {config.exercise_id}' to start the timer."
        )


@app.command("log-set")
def log_set(
    exercise_id: ExerciseOption,
    reps: Annotated[int, typer.Option("--reps", "-r", help="Reps performed")],
    weight: Annotated[
        Optional[float],
        typer.Option("--weight", "-w", help="Load (default: the exercise's default weight)"),
    ] = None,
    date_str: DateOption = None,
    rpe: Annotated[
        Optional[float],
        typer.Option("--rpe", help="Rate of perceived exertion (0-10)"),
    ] = None,
    rir: Annotated[
        Optional[int],
        typer.Option("--rir", help="Reps in reserve (0=failure)"),
    ] = None,
    pending: PendingOption = False,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Log one set.

      liftlog log-set -e bench_press -w 100 -r 8
    """
    store = get_store(data_dir)
    config = get_config(store, exercise_id)
    log = get_log(store)
    day = resolve_day(date_str)

    if weight is None:
        weight = config.default_weight
    if weight is None:
        views.print_error("No default weight for this exercise; pass --weight")
        raise typer.Exit(1)

    try:
        logged = log.log_set(
            exercise_id,
            weight=weight,
            reps=reps,
            when=timestamp_for(day),
            completed=not pending,
            rpe=rpe,
            rir=rir,
        )
    except InvalidInputError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    except (RepositoryError, OSError) as e:
        views.print_error(f"Could not save set: {e}")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(logged_set_to_dict(logged), indent=2))
        return

    views.print_success(
        f"Logged {exercise_id}: {views.fmt_weight(weight, config.unit)} × {reps}"
        f" (set {logged.order + 1}{', pending' if pending else ''})"
    )
    session_day = day or log.today()
    _print_live_status(log, config, session_day)
    if not pending:
        _print_rest_hint(config)


@app.command("log-sets")
def log_sets(
    exercise_id: ExerciseOption,
    sets: Annotated[
        str,
        typer.Option("--sets", "-s", help="Sets: 100x8,100x8,95x10 or 100x8x3 or 8@100"),
    ],
    date_str: DateOption = None,
    pending: PendingOption = False,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Log several sets at once.

      liftlog log-sets -e squat -s "140x5x3, 120x8"
    """
    store = get_store(data_dir)
    config = get_config(store, exercise_id)
    log = get_log(store)
    day = resolve_day(date_str)

    try:
        parsed = parse_sets_string(sets)
    except ValidationError as e:
        views.print_error(f"Invalid sets format: {e}")
        raise typer.Exit(1)

    logged: list[LoggedSet] = []
    try:
        for weight, reps in parsed:
            logged.append(
                log.log_set(
                    exercise_id,
                    weight=weight,
                    reps=reps,
                    when=timestamp_for(day),
                    completed=not pending,
                )
            )
    except InvalidInputError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    except (RepositoryError, OSError) as e:
        views.print_error(f"Could not save set {len(logged) + 1}: {e}")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([logged_set_to_dict(s) for s in logged], indent=2))
        return

    views.print_success(
        f"Logged {len(logged)} set(s) of {exercise_id}: "
        f"{format_sets_summary(logged, config.unit)}"
    )
    _print_live_status(log, config, day or log.today())
    if not pending:
        _print_rest_hint(config)


@app.command("show-history")
def show_history(
    exercise_id: ExerciseOption,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-n", help="Show only the N most recent sessions"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Display an exercise's sessions, newest first.
    """
    store = get_store(data_dir)
    config = get_config(store, exercise_id)
    log = get_log(store)

    if limit is not None and limit < 1:
        views.print_error("--limit must be at least 1")
        raise typer.Exit(1)

    sessions = log.history(exercise_id, config, limit=limit)

    if json_out:
        output = []
        for s in sessions:
            output.append({
                "date": s.date.isoformat(),
                "summary": format_sets_summary(s.sets, config.unit),
                "top_weight": s.top_weight if s.top_set is not None else None,
                "top_reps": s.top_reps if s.top_set is not None else None,
                "typical_reps": s.typical_reps,
                "total_volume": s.total_volume,
                "estimated_one_rep_max": (
                    round(s.estimated_one_rep_max, 2)
                    if s.estimated_one_rep_max is not None else None
                ),
                "hit_target_reps": s.hit_target_reps,
                "sets": [logged_set_to_dict(x) for x in s.sets],
            })
        print(json.dumps(output, indent=2))
        return

    views.print_history(sessions, config)


@app.command("show-session")
def show_session(
    exercise_id: ExerciseOption,
    date_str: DateOption = None,
    last: Annotated[
        bool,
        typer.Option("--last", "-l", help="Show the most recent session before the given day"),
    ] = False,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the sets of one session, with the IDs used by edit-set and delete-set.
    """
    store = get_store(data_dir)
    config = get_config(store, exercise_id)
    log = get_log(store)
    day = resolve_day(date_str) or log.today()

    if last:
        found = log.get_last_session(exercise_id, excluding=day, before=day)
        sets = found or []
        if sets:
            day = log.grouping.calendar_day(sets[0].date)
    else:
        sets = log.get_session(exercise_id, day)

    if json_out:
        print(json.dumps({
            "date": day.isoformat() if sets else None,
            "sets": [logged_set_to_dict(s) for s in sets],
            "total_volume": log.volume(sets),
            "estimated_one_rep_max": log.e1rm(sets),
        }, indent=2))
        return

    if last and not sets:
        views.print_info(f"No session of {exercise_id} before {day.isoformat()}.")
        return
    views.print_session(day, sets, config.unit)


@app.command("edit-set")
def edit_set(
    set_id: Annotated[str, typer.Argument(help="Set ID (see show-session)")],
    exercise_id: ExerciseOption,
    weight: Annotated[Optional[float], typer.Option("--weight", "-w", help="New load")] = None,
    reps: Annotated[Optional[int], typer.Option("--reps", "-r", help="New rep count")] = None,
    done: Annotated[
        Optional[bool],
        typer.Option("--done/--pending", help="Mark the set performed or not"),
    ] = None,
    rpe: Annotated[Optional[float], typer.Option("--rpe", help="New RPE")] = None,
    rir: Annotated[Optional[int], typer.Option("--rir", help="New reps in reserve")] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Change a logged set.
    """
    store = get_store(data_dir)
    config = get_config(store, exercise_id)
    log = get_log(store)

    if all(v is None for v in (weight, reps, done, rpe, rir)):
        views.print_warning("Nothing to change.")
        raise typer.Exit(0)

    try:
        updated = log.edit_set(
            exercise_id, set_id, weight=weight, reps=reps, completed=done, rpe=rpe, rir=rir
        )
    except InvalidInputError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    except (RepositoryError, OSError) as e:
        views.print_error(f"Could not save set: {e}")
        raise typer.Exit(1)

    views.print_success(
        f"Updated set {updated.order + 1}: "
        f"{views.fmt_weight(updated.weight, config.unit)} × {updated.reps}"
        f"{'' if updated.completed else ' (pending)'}"
    )


@app.command("delete-set")
def delete_set(
    set_id: Annotated[str, typer.Argument(help="Set ID (see show-session)")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Delete a logged set.  Later sets of that session move up one place.
    """
    store = get_store(data_dir)
    log = get_log(store)

    try:
        target = store.get(set_id)
    except (OSError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if target is None:
        views.print_error(f"No set with ID {set_id}")
        raise typer.Exit(1)

    config = get_config(store, target.exercise_id)
    day = log.grouping.calendar_day(target.date)
    description = (
        f"{target.exercise_id} {day.isoformat()} set {target.order + 1}: "
        f"{views.fmt_weight(target.weight, config.unit)} × {target.reps}"
    )
    views.console.print(f"Set to delete: [bold]{description}[/bold]")

    if not force and not views.confirm_action("Delete this set?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        log.delete_set(set_id)
    except (RepositoryError, OSError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Deleted {description}")
