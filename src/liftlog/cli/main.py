"""
CLI entry point using Typer.

Commands:
- log-set / log-sets: Record sets
- show-history / show-session: Browse sessions
- edit-set / delete-set: Correct mistakes
- status: Progression advice
- stats: Personal records
- settings: Target rep range, increments, rest
- rest: Rest countdown
"""

import logging
from typing import Annotated

import typer

from .app import app
from .commands import analysis, sets, settings, timer  # noqa: F401  (register commands)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug output to stderr"),
    ] = False,
) -> None:
    """
    Strength-training log with rep-range progression advice and a rest timer.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


if __name__ == "__main__":
    app()
