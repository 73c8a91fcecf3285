"""Output formatters for timer snapshots, history and stats."""

import json
from typing import Any

from rich.table import Table

from flowtimer.models.timer import HistoryEntry, TimerSnapshot
from flowtimer.utils.clock import parse_iso
from flowtimer.utils.ui.console import get_console


def format_error(message: str) -> None:
    """Format and display an error message."""
    get_console().print(f"[red]Error:[/red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    get_console().print(f"[green]✓[/green] {message}")


def format_clock(remaining_ms: int) -> str:
    """Milliseconds as ``MM:SS`` (rounded up to the next whole second)."""
    seconds = max(0, (remaining_ms + 999) // 1000)
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def progress_dots(session_count: int, total_sessions: int) -> str:
    """One dot per session: completed, current, upcoming."""
    dots = []
    for i in range(1, total_sessions + 1):
        if i < session_count:
            dots.append("●")
        elif i == session_count:
            dots.append("◉")
        else:
            dots.append("○")
    return " ".join(dots)


def format_snapshot(snapshot: TimerSnapshot, now: int, output_format: str = "pretty") -> None:
    """Display the live timer state."""
    console = get_console()
    if output_format == "json":
        console.print_json(json.dumps(snapshot.to_dict()))
        return

    remaining = snapshot.display_remaining(now)
    label = "Focus" if snapshot.phase == "focus" else "Break"
    color = "red" if snapshot.phase == "focus" else "green"
    state = "[bold]running[/bold]" if snapshot.is_running else "[dim]paused[/dim]"

    console.print(f"[bold {color}]{label}[/bold {color}]  {format_clock(remaining)}  {state}")
    console.print(
        f"Session {snapshot.session_count} of {snapshot.settings.sessions}  "
        f"{progress_dots(snapshot.session_count, snapshot.settings.sessions)}"
    )


def format_settings(snapshot: TimerSnapshot, output_format: str = "pretty") -> None:
    """Display the configured durations."""
    console = get_console()
    settings = snapshot.settings
    if output_format == "json":
        console.print_json(json.dumps(settings.model_dump(by_alias=True)))
        return

    table = Table(title="Timer settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Focus", f"{settings.focus} min")
    table.add_row("Break", f"{settings.break_} min")
    table.add_row("Sessions", str(settings.sessions))
    console.print(table)


def format_history(entries: list[HistoryEntry], output_format: str = "pretty") -> None:
    """Display history entries (already ordered by the caller)."""
    console = get_console()
    if output_format == "json":
        console.print_json(json.dumps([entry.to_dict() for entry in entries]))
        return

    if not entries:
        console.print("[yellow]No focus sessions recorded yet[/yellow]")
        return

    table = Table(title=f"Focus history ({len(entries)})", show_header=True)
    table.add_column("Date", style="cyan")
    table.add_column("Duration", justify="right")
    for entry in entries:
        try:
            date_str = parse_iso(entry.date).astimezone().strftime("%Y-%m-%d %H:%M")
        except ValueError:
            date_str = entry.date
        table.add_row(date_str, f"{entry.duration_minutes}m")
    console.print(table)


def format_stats(stats: dict[str, Any], output_format: str = "pretty") -> None:
    """Display focus statistics."""
    console = get_console()
    if output_format == "json":
        console.print_json(json.dumps(stats))
        return

    console.print(f"\n[bold]Focus statistics ({stats['period']})[/bold]\n")
    console.print(f"Total focus time: {stats['hours']}h {stats['minutes']}m")
    console.print(f"Sessions completed: {stats['sessions_completed']}")
    goal_hours = stats["goal_minutes"] // 60
    console.print(
        f"Goal ({goal_hours}h): {get_progress_bar(stats['goal_percent'])} {stats['goal_percent']}%"
    )


def get_progress_bar(percentage: float) -> str:
    """Ten-cell text progress bar."""
    filled = int(min(max(percentage, 0), 100) / 10)
    return "█" * filled + "░" * (10 - filled)
