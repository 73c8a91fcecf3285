"""Services module for the Flow timer - command routing, history, configuration."""

from .config_service import ConfigService, get_config_service
from .history_log import HistoryLog
from .notifier import Notifier
from .router import CommandRouter, build_router, get_router

__all__ = [
    "CommandRouter",
    "ConfigService",
    "HistoryLog",
    "Notifier",
    "build_router",
    "get_config_service",
    "get_router",
]
