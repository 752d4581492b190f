"""Rest timer command."""

import threading
import time
from typing import Annotated, Optional

import typer
from rich.live import Live

from ...core.models import InvalidInputError
from ...core.rest_timer import format_countdown
from .. import views
from ..app import DataDirOption, app, get_config, get_store, get_timer


@app.command()
def rest(
    exercise_id: Annotated[
        Optional[str],
        typer.Option("--exercise", "-e", help="Use this exercise's rest length"),
    ] = None,
    seconds: Annotated[
        Optional[int],
        typer.Option("--seconds", "-s", help="Rest length in seconds"),
    ] = None,
    set_number: Annotated[
        int,
        typer.Option("--set-number", "-n", help="Set just completed"),
    ] = 1,
    data_dir: DataDirOption = None,
) -> None:
    """
    Count down the rest before the next set.  Ctrl-C skips the rest.
    """
    store = get_store(data_dir)
    service = get_timer(store)

    if seconds is None:
        if exercise_id is not None:
            seconds = get_config(store, exercise_id).rest_seconds
        else:
            seconds = service.settings.default_rest_seconds

    try:
        timer = service.start(exercise_id or "workout", set_number, seconds)
    except InvalidInputError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    done = threading.Event()
    watcher = service.watch(lambda _timer: done.set())
    interval = service.settings.poll_interval_seconds

    views.print_info(f"Resting {format_countdown(seconds)} after set {set_number}")
    try:
        with Live(
            views.render_timer(service.display(), seconds),
            console=views.console,
            transient=True,
        ) as live:
            while not done.wait(interval):
                live.update(views.render_timer(service.display(), seconds))
            live.update(views.render_timer(service.display(), seconds))
            if views.console.is_terminal:
                time.sleep(service.settings.completion_grace_seconds)
    except KeyboardInterrupt:
        if not done.is_set():
            service.skip()
            views.print_info("Rest skipped.")
            return
    finally:
        watcher.close()

    service.acknowledge_completion(timer.id)
    views.print_success(f"Rest over: go for set {set_number + 1}!")
