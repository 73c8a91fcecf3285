"""Wake-up scheduling.

``StoreScheduler`` keeps pending wakes in the state store, so an armed
deadline outlives the process that armed it. ``WakeDispatcher`` is the
asyncio loop (``flow run``) that polls the table, claims due wakes and hands
them to the router. Wakes are delivered at or after their deadline, within
one poll interval; a deadline missed entirely (nothing was polling) is
completed once, by the next wake or mutating command that sees
``targetTime`` in the past.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from flowtimer.adapters.sqlite.state_store import StateStore
from flowtimer.utils.clock import now_ms
from flowtimer.utils.logger import get_logger

WakeHandler = Callable[[str], Awaitable[object]]


class Scheduler(ABC):
    """At most one pending wake per name."""

    @abstractmethod
    def schedule_wake(self, name: str, when_ms: int) -> None:
        """Arm *name* at *when_ms*, replacing any pending wake of that name."""

    @abstractmethod
    def cancel_wake(self, name: str) -> None:
        """Drop the pending wake for *name*; no-op if none."""

    @abstractmethod
    def pending(self) -> dict[str, int]:
        """Pending wakes as ``{name: when_ms}``."""


class StoreScheduler(Scheduler):
    """Scheduler whose pending wakes are persisted in the state store."""

    def __init__(self, store: StateStore):
        self.store = store
        self.logger = get_logger("scheduler")

    def schedule_wake(self, name: str, when_ms: int) -> None:
        with self.store.transaction():
            alarms = self.store.load_alarms()
            alarms[name] = int(when_ms)
            self.store.save_alarms(alarms)
        self.logger.debug("wake %r armed for %d", name, when_ms)

    def cancel_wake(self, name: str) -> None:
        with self.store.transaction():
            alarms = self.store.load_alarms()
            if alarms.pop(name, None) is None:
                return
            self.store.save_alarms(alarms)
        self.logger.debug("wake %r cancelled", name)

    def pending(self) -> dict[str, int]:
        return self.store.load_alarms()

    def claim_due(self, now: int) -> list[str]:
        """Remove and return the names of wakes due at *now*, earliest first."""
        with self.store.transaction():
            alarms = self.store.load_alarms()
            due = sorted((when, name) for name, when in alarms.items() if when <= now)
            if not due:
                return []
            for _, name in due:
                del alarms[name]
            self.store.save_alarms(alarms)
        return [name for _, name in due]


class WakeDispatcher:
    """Polls a ``StoreScheduler`` and delivers due wakes to *on_wake*."""

    def __init__(
        self,
        scheduler: StoreScheduler,
        on_wake: WakeHandler,
        clock: Callable[[], int] = now_ms,
        poll_interval: float = 1.0,
    ):
        self.scheduler = scheduler
        self.on_wake = on_wake
        self.clock = clock
        self.poll_interval = poll_interval
        self.logger = get_logger("dispatcher")

    async def run_once(self) -> list[str]:
        """Deliver every wake due now. Returns the names delivered."""
        due = self.scheduler.claim_due(self.clock())
        for name in due:
            self.logger.info("delivering wake %r", name)
            try:
                await self.on_wake(name)
            except Exception:
                # Keep the loop alive; the next command re-derives state anyway
                self.logger.exception("wake handler failed for %r", name)
        return due

    async def run_forever(self, stop_event: asyncio.Event | None = None) -> None:
        """Poll until *stop_event* is set (or the task is cancelled)."""
        stop_event = stop_event or asyncio.Event()
        self.logger.info("wake dispatcher started (poll every %.2fs)", self.poll_interval)
        try:
            while not stop_event.is_set():
                await self.run_once()
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=self.poll_interval)
                except TimeoutError:
                    pass
        finally:
            self.logger.info("wake dispatcher stopped")
