"""Durable key/value store for the timer snapshot, history and pending wakes.

Every value is a whole JSON document stored under one key of the
``kv_store`` table, so readers never observe a partially written snapshot.
``transaction()`` opens a ``BEGIN IMMEDIATE`` transaction, which takes the
database write lock up front: two processes (or two coroutines on separate
connections) can never interleave their load -> compute -> save cycles.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from flowtimer.constants import ALARMS_KEY, APP_NAME, HISTORY_KEY, TIMER_STATE_KEY
from flowtimer.exceptions import StorageError
from flowtimer.models.timer import HistoryEntry, TimerSnapshot
from flowtimer.utils.logger import get_logger

DEFAULT_DB_NAME = "flowtimer.db"


class StateStore:
    """SQLite-backed persistence for the timer.

    Not meant to be shared between threads; each thread gets its own
    transaction connection.
    """

    def __init__(self, db_path: Path | str | None = None):
        """Initialize the store and create the schema if needed."""
        if db_path is None:
            from platformdirs import user_data_dir

            db_path = Path(user_data_dir(APP_NAME)) / DEFAULT_DB_NAME

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()
        self.logger = get_logger("store")
        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                    )
                    """
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open state store at {self.db_path}: {e}") from e

        # Owner read/write only
        self.db_path.chmod(0o600)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[StateStore]:
        """Exclusive read-modify-write window. Re-entrant within a thread."""
        conn: sqlite3.Connection | None = getattr(self._local, "conn", None)
        if conn is not None:
            yield self
            return

        conn = sqlite3.connect(self.db_path, timeout=30.0, isolation_level=None)
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            conn.close()
            raise StorageError(f"Cannot lock state store: {e}") from e

        self._local.conn = conn
        try:
            yield self
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        else:
            conn.execute("COMMIT")
        finally:
            self._local.conn = None
            conn.close()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn: sqlite3.Connection | None = getattr(self._local, "conn", None)
        if conn is not None:
            yield conn
            return
        with self.transaction():
            yield self._local.conn

    # ------------------------------------------------------------------
    # Raw key/value access
    # ------------------------------------------------------------------

    def get(self, key: str) -> Any | None:
        """Decoded JSON value for *key*, or None if absent or not valid JSON."""
        try:
            with self._connection() as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read {key!r}: {e}") from e

        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            self.logger.warning("stored value for %r is not valid JSON", key)
            return None

    def set(self, key: str, value: Any) -> None:
        """Replace the whole value stored under *key*."""
        try:
            with self._connection() as conn:
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, json.dumps(value)),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write {key!r}: {e}") from e

    # ------------------------------------------------------------------
    # Timer snapshot
    # ------------------------------------------------------------------

    def load_snapshot(self) -> TimerSnapshot:
        """Load the snapshot, substituting defaults if missing or corrupt."""
        data = self.get(TIMER_STATE_KEY)
        if data is None:
            return TimerSnapshot.default()
        try:
            return TimerSnapshot.from_dict(data)
        except (ValidationError, TypeError) as e:
            self.logger.warning("corrupt timer state, using defaults: %s", e)
            return TimerSnapshot.default()

    def save_snapshot(self, snapshot: TimerSnapshot) -> None:
        """Persist the whole snapshot."""
        self.set(TIMER_STATE_KEY, snapshot.to_dict())

    def initialize(self) -> TimerSnapshot:
        """Write the default snapshot unless one is already stored."""
        with self.transaction():
            if self.get(TIMER_STATE_KEY) is None:
                self.logger.info("no timer state found, writing defaults")
                self.save_snapshot(TimerSnapshot.default())
            return self.load_snapshot()

    def reset_to_defaults(self) -> TimerSnapshot:
        """Replace the stored snapshot with the defaults (settings included)."""
        snapshot = TimerSnapshot.default()
        with self.transaction():
            self.save_snapshot(snapshot)
        return snapshot

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def load_history(self) -> list[HistoryEntry]:
        """Load history entries; malformed data yields an empty list."""
        data = self.get(HISTORY_KEY)
        if data is None:
            return []
        if not isinstance(data, list):
            self.logger.warning("corrupt history (expected a list), ignoring it")
            return []

        entries = []
        for item in data:
            try:
                entries.append(HistoryEntry.from_dict(item))
            except (KeyError, TypeError, ValueError):
                self.logger.warning("skipping malformed history entry: %r", item)
        return entries

    def save_history(self, entries: list[HistoryEntry]) -> None:
        """Persist the whole history list."""
        self.set(HISTORY_KEY, [entry.to_dict() for entry in entries])

    # ------------------------------------------------------------------
    # Pending wakes
    # ------------------------------------------------------------------

    def load_alarms(self) -> dict[str, int]:
        """Pending wake table ``{name: when_ms}``."""
        data = self.get(ALARMS_KEY)
        if not isinstance(data, dict):
            return {}
        alarms = {}
        for name, when in data.items():
            if isinstance(when, int) and not isinstance(when, bool):
                alarms[str(name)] = when
        return alarms

    def save_alarms(self, alarms: dict[str, int]) -> None:
        """Persist the whole pending wake table."""
        self.set(ALARMS_KEY, alarms)
