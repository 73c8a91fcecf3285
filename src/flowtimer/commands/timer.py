"""Timer commands: start, stop/pause, reset, status, send and run."""

import asyncio
import json

import typer

from flowtimer.core.scheduler import StoreScheduler, WakeDispatcher
from flowtimer.exceptions import AppError
from flowtimer.models.commands import CommandName
from flowtimer.services.config_service import get_config_service
from flowtimer.services.router import get_router
from flowtimer.utils.exit_codes import ERROR_GENERAL, ERROR_INVALID_ARGS
from flowtimer.utils.ui.console import get_console
from flowtimer.utils.ui.formatters import format_snapshot

from .decorators import command_wrapper

console = get_console()


def output_option():
    """Shared --output option."""
    return typer.Option(None, "--output", "-o", help="Output format: pretty or json")


def output_format(output: str | None) -> str:
    """Explicit --output, else the configured default."""
    return output or get_config_service().config.output.format


async def _run_and_show(command: CommandName, output: str | None) -> None:
    router = get_router()
    snapshot = await router.dispatch(command)
    format_snapshot(snapshot, router.clock(), output_format(output))


@command_wrapper
async def start_timer(output: str | None = output_option()) -> None:
    """Start (or resume) the current phase."""
    await _run_and_show(CommandName.START, output)


@command_wrapper
async def stop_timer(output: str | None = output_option()) -> None:
    """Pause the running phase, keeping its remaining time."""
    await _run_and_show(CommandName.STOP, output)


@command_wrapper
async def reset_timer(
    defaults: bool = typer.Option(
        False, "--defaults", help="Also restore the default durations and session count"
    ),
    output: str | None = output_option(),
) -> None:
    """Back to focus, session 1, stopped."""
    if not defaults:
        await _run_and_show(CommandName.RESET, output)
        return

    router = get_router()
    snapshot = await router.reset_to_defaults()
    format_snapshot(snapshot, router.clock(), output_format(output))


@command_wrapper
async def show_status(output: str | None = output_option()) -> None:
    """Show the live timer state."""
    await _run_and_show(CommandName.GET_STATUS, output)


@command_wrapper
async def send_command(
    action: str = typer.Argument(..., help="START, STOP, PAUSE, RESET, UPDATE_SETTINGS or GET_STATUS"),
    payload: str | None = typer.Option(
        None, "--payload", "-p", help='JSON payload, e.g. \'{"focus": 50}\''
    ),
) -> None:
    """Send a raw protocol command and print the resulting snapshot as JSON."""
    message: dict = {"action": action}
    if payload:
        try:
            message["payload"] = json.loads(payload)
        except json.JSONDecodeError as e:
            raise AppError(f"Payload is not valid JSON: {e}", ERROR_INVALID_ARGS) from e
        if not isinstance(message["payload"], dict):
            raise AppError("Payload must be a JSON object", ERROR_INVALID_ARGS)

    response = await get_router().handle_message(message)
    console.print_json(json.dumps(response))


async def _serve(poll_interval: float | None) -> None:
    router = get_router()
    if not isinstance(router.scheduler, StoreScheduler):
        raise AppError("Wake dispatch needs the persistent scheduler", ERROR_GENERAL)

    async def on_wake(name: str) -> None:
        updated = await router.on_wake(name)
        format_snapshot(updated, router.clock())

    dispatcher = WakeDispatcher(
        router.scheduler,
        on_wake,
        clock=router.clock,
        poll_interval=poll_interval or get_config_service().config.timer.poll_interval,
    )
    # A wake that came due while nothing was watching is delivered first
    if not await dispatcher.run_once():
        format_snapshot(await router.status(), router.clock())
    await dispatcher.run_forever()


@command_wrapper
def run_daemon(
    poll_interval: float | None = typer.Option(
        None, "--poll-interval", help="Seconds between wake checks"
    ),
) -> None:
    """Watch for phase deadlines and advance the timer when they pass."""
    console.print("[dim]Watching the timer. Press Ctrl+C to stop.[/dim]")
    try:
        asyncio.run(_serve(poll_interval))
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped watching. The timer state is saved.[/dim]")
