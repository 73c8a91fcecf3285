"""Focus history commands."""

import typer

from flowtimer.exceptions import AppError
from flowtimer.services.history_log import STATS_PERIODS
from flowtimer.services.router import get_router
from flowtimer.utils.exit_codes import ERROR_INVALID_ARGS
from flowtimer.utils.typer_helpers import SuggestingGroup
from flowtimer.utils.ui.formatters import format_history, format_stats

from .decorators import command_wrapper
from .timer import output_format, output_option

app = typer.Typer(cls=SuggestingGroup, help="Completed focus sessions and statistics")


@app.command("list")
@command_wrapper
def list_history(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of sessions to show"),
    output: str | None = output_option(),
) -> None:
    """Show the most recent completed focus sessions."""
    history = get_router().history
    format_history(history.get_recent(limit), output_format(output))


@app.command("stats")
@command_wrapper
def history_stats(
    period: str = typer.Option("day", "--period", help="day, week, month, year or all"),
    output: str | None = output_option(),
) -> None:
    """Show focus totals for a period."""
    if period not in STATS_PERIODS:
        raise AppError(
            f"Invalid period '{period}'. Must be one of: {', '.join(STATS_PERIODS)}",
            ERROR_INVALID_ARGS,
        )
    stats = get_router().history.get_stats(period)
    format_stats(stats, output_format(output))
