"""Settings commands."""

import typer

from flowtimer.models.commands import CommandName
from flowtimer.services.router import get_router
from flowtimer.utils.typer_helpers import SuggestingGroup
from flowtimer.utils.ui.formatters import format_settings, format_snapshot, format_success

from .decorators import command_wrapper
from .timer import output_format, output_option

app = typer.Typer(cls=SuggestingGroup, help="Focus/break durations and session count")


@app.command("show")
@command_wrapper
async def show_settings(output: str | None = output_option()) -> None:
    """Show the current durations and session count."""
    snapshot = await get_router().status()
    format_settings(snapshot, output_format(output))


@app.command("set")
@command_wrapper
async def set_settings(
    focus: int | None = typer.Option(None, "--focus", "-f", help="Focus minutes (1-60)"),
    break_minutes: int | None = typer.Option(None, "--break", "-b", help="Break minutes (1-30)"),
    sessions: int | None = typer.Option(None, "--sessions", "-s", help="Sessions per cycle (1-12)"),
    output: str | None = output_option(),
) -> None:
    """Change settings. Out-of-range values are clamped; a running phase keeps its deadline."""
    router = get_router()
    # Omitted options keep their current value
    payload = {
        key: value
        for key, value in (("focus", focus), ("break", break_minutes), ("sessions", sessions))
        if value is not None
    }
    snapshot = await router.dispatch(CommandName.UPDATE_SETTINGS, payload)

    fmt = output_format(output)
    if fmt == "pretty":
        format_success("Settings updated")
    format_settings(snapshot, fmt)
    if fmt == "pretty":
        format_snapshot(snapshot, router.clock())
