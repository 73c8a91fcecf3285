"""Append-only log of completed focus intervals, plus read-only analytics."""

from __future__ import annotations

import calendar
from datetime import datetime
from typing import Any, Literal

from flowtimer.adapters.sqlite.state_store import StateStore
from flowtimer.constants import DAILY_GOAL_MINUTES
from flowtimer.models.timer import HistoryEntry
from flowtimer.utils.clock import parse_iso

StatsPeriod = Literal["day", "week", "month", "year", "all"]
STATS_PERIODS: tuple[str, ...] = ("day", "week", "month", "year", "all")


def _in_period(entry_dt: datetime, now: datetime, period: StatsPeriod) -> bool:
    local = entry_dt.astimezone(now.tzinfo)
    if period == "day":
        return local.date() == now.date()
    if period == "week":
        return local.isocalendar()[:2] == now.isocalendar()[:2]
    if period == "month":
        return (local.year, local.month) == (now.year, now.month)
    if period == "year":
        return local.year == now.year
    return True


def _days_in_period(now: datetime, period: StatsPeriod, first: datetime | None) -> int:
    if period == "day":
        return 1
    if period == "week":
        return 7
    if period == "month":
        return calendar.monthrange(now.year, now.month)[1]
    if period == "year":
        return 366 if calendar.isleap(now.year) else 365
    if first is None:
        return 1
    # Every calendar day from the first recorded session through today
    return max(1, (now.date() - first.astimezone(now.tzinfo).date()).days + 1)


class HistoryLog:
    """Focus history stored under the ``history`` key of the state store."""

    def __init__(self, store: StateStore):
        self.store = store

    def append(self, entry: HistoryEntry) -> None:
        """Append one entry. Never rewrites existing entries."""
        with self.store.transaction():
            entries = self.store.load_history()
            entries.append(entry)
            self.store.save_history(entries)

    def list_all(self) -> list[HistoryEntry]:
        """All entries, oldest first."""
        return self.store.load_history()

    def get_recent(self, limit: int = 20) -> list[HistoryEntry]:
        """Most recent entries, newest first."""
        entries = self.list_all()
        return list(reversed(entries))[:limit]

    def get_stats(
        self, period: StatsPeriod = "day", now: datetime | None = None
    ) -> dict[str, Any]:
        """
        Focus statistics for the period containing *now*.

        Args:
            period: One of day, week, month, year, all
            now: Reference time (defaults to local now)

        Returns:
            Dictionary with statistics. The 4 h daily goal is scaled to
            the number of days in the period.
        """
        if period not in STATS_PERIODS:
            raise ValueError(f"Unknown period {period!r}; expected one of {STATS_PERIODS}")
        if now is None:
            now = datetime.now().astimezone()

        selected = []
        first: datetime | None = None
        for entry in self.list_all():
            try:
                entry_dt = parse_iso(entry.date)
            except ValueError:
                continue
            if _in_period(entry_dt, now, period):
                selected.append(entry)
                if first is None or entry_dt < first:
                    first = entry_dt

        total_minutes = sum(entry.duration_minutes for entry in selected)
        goal_minutes = DAILY_GOAL_MINUTES * _days_in_period(now, period, first)
        return {
            "period": period,
            "sessions_completed": len(selected),
            "total_focus_minutes": total_minutes,
            "hours": total_minutes // 60,
            "minutes": total_minutes % 60,
            "goal_minutes": goal_minutes,
            "goal_percent": round(min(total_minutes / goal_minutes * 100, 100), 1),
        }
