"""SQLite-backed state store."""

from .state_store import StateStore

__all__ = ["StateStore"]
