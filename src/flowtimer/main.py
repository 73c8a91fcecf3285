"""Main entry point for the Flow timer CLI."""

import typer

from flowtimer import __version__
from flowtimer.commands import config, history, settings, timer
from flowtimer.utils.typer_helpers import SuggestingGroup
from flowtimer.utils.ui.console import get_console

# Create main app with custom group class
app = typer.Typer(
    name="flow",
    cls=SuggestingGroup,
    help="Persistent focus/break interval timer",
    no_args_is_help=True,
)

console = get_console()

# Timer commands live at the top level
app.command("start")(timer.start_timer)
app.command("stop")(timer.stop_timer)
app.command("pause", help="Alias of stop.")(timer.stop_timer)
app.command("reset")(timer.reset_timer)
app.command("status")(timer.show_status)
app.command("send")(timer.send_command)
app.command("run")(timer.run_daemon)

# Add subcommands
app.add_typer(settings.app, name="settings", help="Focus/break durations and session count")
app.add_typer(history.app, name="history", help="Completed focus sessions and statistics")
app.add_typer(config.app, name="config", help="Configuration management")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]Flow timer[/bold] version [cyan]{__version__}[/cyan]")


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
