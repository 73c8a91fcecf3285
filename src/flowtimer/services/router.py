"""Command router: the single serialization point for timer mutations.

User commands and scheduler wakes both pass through ``CommandRouter``:

    load snapshot -> engine transition -> persist (snapshot, history,
    pending wake) -> notify -> respond

An ``asyncio.Lock`` serializes events inside one process; the state store's
exclusive transaction serializes them across processes (a CLI command racing
the ``flow run`` dispatcher). Notifications run after the transaction has
committed and their failures are only logged.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from flowtimer.adapters.sqlite.state_store import StateStore
from flowtimer.core.engine import CancelWake, ScheduleWake, TimerEngine, Transition
from flowtimer.core.scheduler import Scheduler, StoreScheduler
from flowtimer.models.commands import Command, CommandName
from flowtimer.models.timer import TimerSnapshot
from flowtimer.services.config_service import ConfigService, get_config_service
from flowtimer.services.history_log import HistoryLog
from flowtimer.services.notifier import Notifier
from flowtimer.utils.clock import now_ms
from flowtimer.utils.logger import get_logger


class CommandRouter:
    """Dispatches commands and wakes to the engine against the stored snapshot."""

    def __init__(
        self,
        store: StateStore,
        engine: TimerEngine,
        scheduler: Scheduler,
        history: HistoryLog,
        notifier: Notifier | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.engine = engine
        self.scheduler = scheduler
        self.history = history
        self.notifier = notifier
        self.clock = clock
        self.logger = get_logger("router")
        self._lock = asyncio.Lock()

    async def dispatch(
        self, command: Command | CommandName | str, payload: dict[str, Any] | None = None
    ) -> TimerSnapshot:
        """Run one command and return the resulting snapshot.

        Raises:
            UnknownCommandError: If *command* names no timer command.
        """
        if not isinstance(command, Command):
            command = Command.parse(command, payload)

        self.logger.debug("dispatching %s", command.name.value)
        return await self._run(
            lambda snapshot, now: self.engine.apply(snapshot, command, now)
        )

    async def handle_message(self, message: dict[str, Any]) -> dict[str, Any]:
        """Protocol entry point: ``{"action", "payload"}`` in, persisted snapshot out."""
        command = Command.from_message(message)
        snapshot = await self.dispatch(command)
        return snapshot.to_dict()

    async def on_wake(self, name: str) -> TimerSnapshot:
        """Scheduler callback; re-checks the stored snapshot before acting."""
        return await self._run(
            lambda snapshot, now: self.engine.handle_wake(snapshot, name, now)
        )

    async def status(self) -> TimerSnapshot:
        return await self.dispatch(CommandName.GET_STATUS)

    async def reset_to_defaults(self) -> TimerSnapshot:
        """Factory reset: default snapshot and settings, pending wake dropped."""
        async with self._lock:
            with self.store.transaction():
                snapshot = self.store.reset_to_defaults()
                self.scheduler.cancel_wake(self.engine.wake_name)
        self.logger.info("timer and settings reset to defaults")
        return snapshot

    async def _run(
        self, step: Callable[[TimerSnapshot, int], Transition]
    ) -> TimerSnapshot:
        async with self._lock:
            with self.store.transaction():
                now = self.clock()
                transition = step(self.store.load_snapshot(), now)
                if transition.changed:
                    self.store.save_snapshot(transition.snapshot)
                for entry in transition.history:
                    self.history.append(entry)
                self._apply_wake_effects(transition)

        self._notify(transition)
        return transition.snapshot

    def _apply_wake_effects(self, transition: Transition) -> None:
        for effect in transition.effects:
            if isinstance(effect, ScheduleWake):
                self.scheduler.schedule_wake(effect.name, effect.when)
            elif isinstance(effect, CancelWake):
                self.scheduler.cancel_wake(effect.name)

    def _notify(self, transition: Transition) -> None:
        if self.notifier is None:
            return
        for completed in transition.notifications:
            try:
                self.notifier.notify(completed.message)
            except Exception as e:
                self.logger.warning("notification failed (state already saved): %s", e)


def build_router(
    config_service: ConfigService | None = None,
    clock: Callable[[], int] = now_ms,
) -> CommandRouter:
    """Wire a router from configuration, creating the default state on first use."""
    config_service = config_service or get_config_service()
    config = config_service.config

    store = StateStore(config_service.db_path)
    store.initialize()

    notifier = Notifier(
        enabled=config.notifications.enabled,
        bell=config.notifications.bell,
    )
    return CommandRouter(
        store=store,
        engine=TimerEngine(policy=config.timer.phase_policy),
        scheduler=StoreScheduler(store),
        history=HistoryLog(store),
        notifier=notifier,
        clock=clock,
    )


def get_router() -> CommandRouter:
    """Router for the current configuration."""
    return build_router()
