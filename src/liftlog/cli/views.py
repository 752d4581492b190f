"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and the wording of progression statuses.
"""

from datetime import date

from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..core.metrics import format_sets_summary
from ..core.models import (
    ExerciseProgressionConfig,
    LoggedSet,
    PersonalRecords,
    ProgressionStatus,
    SessionSummary,
)
from ..core.rest_timer import TimerDisplay

console = Console()

STATUS_TITLES = {
    "insufficient_data": "Not enough data",
    "maintaining_below_target": "Below target",
    "progressing_toward_target": "Progressing",
    "ready_to_increase_reps": "Add a rep",
    "ready_to_increase_weight": "Add weight",
    "declining_performance": "Declining",
    "recently_regressed": "Weight dropped",
}

STATUS_COLORS = {
    "insufficient_data": "dim",
    "maintaining_below_target": "yellow",
    "progressing_toward_target": "cyan",
    "ready_to_increase_reps": "green",
    "ready_to_increase_weight": "bold green",
    "declining_performance": "red",
    "recently_regressed": "magenta",
}


def fmt_weight(weight: float | None, unit: str = "kg") -> str:
    """100.0 -> "100 kg", 102.5 -> "102.5 kg"."""
    if weight is None:
        return "-"
    return f"{weight:g} {unit}"


def describe_status(status: ProgressionStatus, unit: str = "kg") -> tuple[str, str, str]:
    """
    Human wording for a progression status.

    Args:
        status: Result of the progression analysis
        unit: Weight unit for the message

    Returns:
        (title, message, rich colour)
    """
    kind = status.kind
    w = fmt_weight(status.current_top_weight, unit)

    if kind == "insufficient_data":
        msg = "Log at least two sessions with a target rep range to get advice."
    elif kind == "maintaining_below_target":
        msg = (
            f"{status.current_top_reps} reps at {w}; "
            f"build up to {status.recommended_reps} reps at this weight."
        )
    elif kind == "progressing_toward_target":
        msg = f"{status.current_top_reps} reps at {w}; aim for {status.recommended_reps} next time."
    elif kind == "ready_to_increase_reps":
        msg = f"Top of the range at {w}; try {status.recommended_reps} reps next time."
    elif kind == "ready_to_increase_weight":
        msg = (
            f"Target hit at {w}; move to {fmt_weight(status.recommended_weight, unit)} "
            f"for {status.recommended_reps} reps."
        )
    elif kind == "declining_performance":
        msg = (
            f"Performance dropped since last session "
            f"({status.previous_top_reps} → {status.current_top_reps} reps). "
            "Consider extra rest or a lighter day."
        )
    else:
        msg = (
            f"Working weight fell to {w}; "
            f"earlier best was {fmt_weight(status.recommended_weight, unit)}."
        )

    return STATUS_TITLES[kind], msg, STATUS_COLORS[kind]


def format_status_display(
    status: ProgressionStatus,
    config: ExerciseProgressionConfig,
) -> str:
    """
    Format progression status as a text block.

    Args:
        status: ProgressionStatus to display
        config: Exercise settings (unit and target range)

    Returns:
        Formatted string with Rich markup
    """
    title, message, color = describe_status(status, config.unit)
    lines = [f"[{color}]{title}[/{color}]", f"- {message}"]

    if config.has_target_range:
        lines.append(f"- Target: {config.target_rep_min}-{config.target_rep_max} reps")

    if status.current_top_weight is not None:
        lines.append(
            f"- Last top set: {fmt_weight(status.current_top_weight, config.unit)}"
            f" × {status.current_top_reps}"
        )
    if status.previous_top_weight is not None:
        lines.append(
            f"- Previous top set: {fmt_weight(status.previous_top_weight, config.unit)}"
            f" × {status.previous_top_reps}"
        )
    if status.volume_change is not None:
        lines.append(f"- Volume change: {status.volume_change:+.0%}")

    return "\n".join(lines)


def format_history_table(
    sessions: list[SessionSummary],
    config: ExerciseProgressionConfig,
) -> Table:
    """
    Create a Rich table with one row per session.

    Args:
        sessions: Session summaries, newest first
        config: Exercise settings (unit and target range)

    Returns:
        Rich Table object
    """
    table = Table(title=f"History: {config.exercise_id}")

    table.add_column("Date", style="cyan")
    table.add_column("Sets")
    table.add_column("Top set", justify="right", style="bold")
    table.add_column("Reps", justify="right")
    table.add_column(f"Volume({config.unit})", justify="right")
    table.add_column("E1RM", justify="right")
    if config.has_target_range:
        table.add_column("Target", justify="center")

    for s in sessions:
        top = f"{s.top_weight:g} × {s.top_reps}" if s.top_set is not None else "-"
        e1rm = f"{s.estimated_one_rep_max:.1f}" if s.estimated_one_rep_max is not None else "-"
        row = [
            s.date.isoformat(),
            format_sets_summary(s.sets, config.unit),
            top,
            str(s.typical_reps) if s.typical_reps is not None else "-",
            f"{s.total_volume:g}",
            e1rm,
        ]
        if config.has_target_range:
            row.append("[green]✓[/green]" if s.hit_target_reps else "")
        table.add_row(*row)

    return table


def print_history(sessions: list[SessionSummary], config: ExerciseProgressionConfig) -> None:
    """
    Print session history to console.

    Args:
        sessions: Session summaries, newest first
        config: Exercise settings
    """
    if not sessions:
        console.print("[yellow]No sessions recorded yet.[/yellow]")
        return

    console.print(format_history_table(sessions, config))


def print_session(day: date, sets: list[LoggedSet], unit: str = "kg") -> None:
    """Print the sets of one session with their ids (for edit/delete)."""
    if not sets:
        console.print("[yellow]No sets recorded for that day.[/yellow]")
        return

    table = Table(title=f"Session {day.isoformat()}")
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("ID", style="dim")
    table.add_column("Weight", justify="right")
    table.add_column("Reps", justify="right", style="bold")
    table.add_column("Done", justify="center")
    table.add_column("RPE", justify="right")

    for s in sets:
        table.add_row(
            str(s.order + 1),
            s.id,
            fmt_weight(s.weight, unit),
            str(s.reps),
            "[green]✓[/green]" if s.completed else "[dim]·[/dim]",
            f"{s.rpe:g}" if s.rpe is not None else "-",
        )

    console.print(table)


def format_records(records: PersonalRecords, unit: str = "kg") -> str:
    """Personal records as a text block."""
    def _line(label: str, value: str, when) -> str:
        suffix = f"  ({when.isoformat()})" if when is not None else ""
        return f"- {label}: {value}{suffix}"

    e1rm = f"{records.best_e1rm:.1f} {unit}" if records.best_e1rm is not None else "-"
    volume = f"{records.best_volume:g} {unit}" if records.best_volume is not None else "-"
    return "\n".join([
        "Personal records",
        _line("Heaviest top set", fmt_weight(records.best_weight, unit), records.best_weight_date),
        _line("Best E1RM", e1rm, records.best_e1rm_date),
        _line("Best session volume", volume, records.best_volume_date),
    ])


def render_timer(display: TimerDisplay | None, total_seconds: float) -> Text:
    """One-line countdown for the rest command's live display."""
    if display is None:
        return Text("Rest skipped", style="dim")
    if display.phase == "completed":
        return Text(f"Rest over: go for set {display.set_number + 1}!", style="bold green")

    width = 30
    filled = int(round(display.progress * width))
    bar = "█" * filled + "░" * (width - filled)
    text = Text()
    text.append(f"Rest {display.label} ", style="bold cyan")
    text.append(bar, style="cyan")
    text.append(f"  of {total_seconds:g}s", style="dim")
    return text


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
