"""Configuration management commands."""

import json

import typer

from flowtimer.exceptions import AppError
from flowtimer.services.config_service import get_config_service
from flowtimer.utils.exit_codes import ERROR_INVALID_ARGS
from flowtimer.utils.typer_helpers import SuggestingGroup
from flowtimer.utils.ui.console import get_console
from flowtimer.utils.ui.formatters import format_success

from .decorators import command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Configuration management commands")
console = get_console()


def parse_value(value: str) -> str | int | float | bool | None:
    """Convert a CLI string to the most specific JSON scalar it spells."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("null", "none"):
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        return value
    return parsed if isinstance(parsed, (int, float)) else value


@app.command("view")
@command_wrapper
def view_config() -> None:
    """View the current configuration."""
    console.print_json(get_config_service().config.model_dump_json())


@app.command("get")
@command_wrapper
def get_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., timer.phase_policy)"),
) -> None:
    """Get a configuration value."""
    svc = get_config_service()
    if not svc.has_key(key):
        raise AppError(f"Configuration key '{key}' not found", ERROR_INVALID_ARGS)
    console.print(svc.get(key))


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., timer.phase_policy)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    parsed_value = parse_value(value)
    get_config_service().set(key, parsed_value)
    format_success(f"Configuration '{key}' set to '{parsed_value}'")


@app.command("reset")
@command_wrapper
def reset_config(
    key: str | None = typer.Argument(None, help="Configuration key to reset"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        msg = "entire configuration" if not key else f"'{key}'"
        if not typer.confirm(f"Are you sure you want to reset {msg}?"):
            console.print("Cancelled")
            raise typer.Exit(0)

    get_config_service().reset(key)
    if key:
        format_success(f"Configuration '{key}' reset to default")
    else:
        format_success("Configuration reset to defaults")
