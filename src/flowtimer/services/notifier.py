"""Phase-end notifications shown in the terminal."""

from __future__ import annotations

from rich.console import Console

from flowtimer.constants import NOTIFICATION_TITLE
from flowtimer.utils.logger import get_logger
from flowtimer.utils.ui.console import get_console


class Notifier:
    """Prints a phase-end banner and optionally rings the terminal bell."""

    def __init__(
        self,
        console: Console | None = None,
        enabled: bool = True,
        bell: bool = True,
    ):
        self.console = console or get_console()
        self.enabled = enabled
        self.bell = bell
        self.logger = get_logger("notifier")

    def notify(self, message: str, title: str = NOTIFICATION_TITLE) -> None:
        """Show *message*. May raise; callers treat delivery as best-effort."""
        self.logger.info("notification: %s - %s", title, message)
        if not self.enabled:
            return
        self.console.print(f"\n[bold magenta]{title}[/bold magenta]  {message}")
        if self.bell:
            self.console.bell()
