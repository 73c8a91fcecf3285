"""Shared test fixtures and configuration.

Keeps logs, config and the SQLite state store inside *tmp_path* and provides
a controllable wall clock for the timer.
"""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest

from flowtimer.adapters.sqlite.state_store import StateStore
from flowtimer.core.engine import TimerEngine
from flowtimer.core.scheduler import StoreScheduler
from flowtimer.services.history_log import HistoryLog
from flowtimer.services.notifier import Notifier
from flowtimer.services.router import CommandRouter


class FakeClock:
    """Manually advanced epoch-ms clock."""

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


# ---------------------------------------------------------------------------
# Filesystem isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolate_logging(tmp_path):
    """Send the rotating log file to tmp_path and reset the root logger."""
    import flowtimer.utils.logger as logger_mod

    logger_mod._root = None
    logging.getLogger("flowtimer").handlers.clear()
    with patch("flowtimer.utils.logger.user_log_dir", return_value=str(tmp_path / "logs")):
        yield
    for handler in logging.getLogger("flowtimer").handlers:
        handler.close()
    logging.getLogger("flowtimer").handlers.clear()
    logger_mod._root = None


@pytest.fixture(autouse=True)
def isolate_config(tmp_path):
    """Point ConfigService at tmp dirs and drop the cached instance."""
    from flowtimer.services.config_service import get_config_service

    get_config_service.cache_clear()
    with patch(
        "flowtimer.services.config_service.user_config_dir",
        return_value=str(tmp_path / "config"),
    ):
        with patch(
            "flowtimer.services.config_service.user_data_dir",
            return_value=str(tmp_path / "data"),
        ):
            yield
    get_config_service.cache_clear()


# ---------------------------------------------------------------------------
# Timer fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    """Wall clock starting at epoch 0."""
    return FakeClock()


@pytest.fixture()
def store(tmp_path) -> StateStore:
    """State store backed by a temporary SQLite file."""
    return StateStore(tmp_path / "state.db")


@pytest.fixture()
def notifier() -> MagicMock:
    return MagicMock(spec=Notifier)


@pytest.fixture()
def make_router(store, clock, notifier):
    """Factory for routers sharing one store, clock and notifier."""

    def _make(policy: str = "auto_continue") -> CommandRouter:
        return CommandRouter(
            store=store,
            engine=TimerEngine(policy=policy),
            scheduler=StoreScheduler(store),
            history=HistoryLog(store),
            notifier=notifier,
            clock=clock,
        )

    return _make


@pytest.fixture()
def router(make_router) -> CommandRouter:
    return make_router()
