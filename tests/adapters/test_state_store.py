"""Tests for the SQLite-backed StateStore."""

from __future__ import annotations

import json
import sqlite3

import pytest

from flowtimer.adapters.sqlite.state_store import StateStore
from flowtimer.exceptions import StorageError
from flowtimer.models.timer import HistoryEntry, TimerSettings, TimerSnapshot


def _raw_set(store: StateStore, key: str, raw: str) -> None:
    with sqlite3.connect(store.db_path) as conn:
        conn.execute(
            "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)", (key, raw)
        )


def _raw_get(store: StateStore, key: str):
    with sqlite3.connect(store.db_path) as conn:
        row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
    return json.loads(row[0]) if row else None


# ---------------------------------------------------------------------------
# Schema and file
# ---------------------------------------------------------------------------


def test_creates_database_file(tmp_path):
    db = tmp_path / "nested" / "state.db"
    StateStore(db)

    assert db.exists()
    assert oct(db.stat().st_mode & 0o777) == "0o600"


def test_unopenable_path_raises_storage_error(tmp_path):
    # A directory cannot be opened as a database file
    directory = tmp_path / "dir.db"
    directory.mkdir()

    with pytest.raises(StorageError):
        StateStore(directory)


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


class TestSnapshot:
    def test_missing_snapshot_yields_defaults(self, store):
        snapshot = store.load_snapshot()

        assert snapshot == TimerSnapshot.default()
        assert snapshot.remaining_time == 25 * 60 * 1000

    def test_round_trip(self, store):
        snapshot = TimerSnapshot(
            is_running=True,
            target_time=123_456,
            remaining_time=60_000,
            phase="break",
            session_count=3,
            settings=TimerSettings(focus=50, break_=10, sessions=6),
        )
        store.save_snapshot(snapshot)

        assert store.load_snapshot() == snapshot

    def test_persisted_layout(self, store):
        """The stored document uses the camelCase keys."""
        store.save_snapshot(TimerSnapshot.default())

        assert _raw_get(store, "timerState") == {
            "isRunning": False,
            "targetTime": None,
            "remainingTime": 1_500_000,
            "phase": "focus",
            "sessionCount": 1,
            "settings": {"focus": 25, "break": 5, "sessions": 4},
        }

    def test_invalid_json_yields_defaults(self, store):
        _raw_set(store, "timerState", "{not json")
        assert store.load_snapshot() == TimerSnapshot.default()

    def test_wrong_shape_yields_defaults(self, store):
        _raw_set(store, "timerState", json.dumps({"phase": "nap"}))
        assert store.load_snapshot() == TimerSnapshot.default()

    def test_running_without_target_yields_defaults(self, store):
        _raw_set(store, "timerState", json.dumps({"isRunning": True, "targetTime": None}))
        assert store.load_snapshot() == TimerSnapshot.default()

    def test_non_object_document_yields_defaults(self, store):
        _raw_set(store, "timerState", json.dumps([1, 2, 3]))
        assert store.load_snapshot() == TimerSnapshot.default()

    def test_initialize_writes_defaults_once(self, store):
        store.initialize()
        assert _raw_get(store, "timerState")["phase"] == "focus"

        store.save_snapshot(TimerSnapshot(phase="break"))
        store.initialize()
        assert store.load_snapshot().phase == "break"

    def test_reset_to_defaults_drops_custom_settings(self, store):
        store.save_snapshot(TimerSnapshot.default(TimerSettings(focus=50)))
        snapshot = store.reset_to_defaults()

        assert snapshot.settings.focus == 25
        assert store.load_snapshot().settings.focus == 25


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class TestTransactions:
    def test_commit_on_success(self, store):
        with store.transaction():
            store.save_snapshot(TimerSnapshot(phase="break"))

        assert store.load_snapshot().phase == "break"

    def test_rollback_on_error(self, store):
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.save_snapshot(TimerSnapshot(phase="break"))
                store.save_history([HistoryEntry("2024-01-01T00:00:00.000Z", 25)])
                raise RuntimeError("crash mid-update")

        assert store.load_snapshot().phase == "focus"
        assert store.load_history() == []

    def test_nested_transactions_share_connection(self, store):
        with store.transaction():
            with store.transaction():
                store.save_snapshot(TimerSnapshot(phase="break"))
            # Still inside the outer transaction: visible to ourselves
            assert store.load_snapshot().phase == "break"

        assert store.load_snapshot().phase == "break"

    def test_other_connection_sees_nothing_until_commit(self, store):
        with store.transaction():
            store.save_snapshot(TimerSnapshot(phase="break"))
            assert _raw_get(store, "timerState") is None

        assert _raw_get(store, "timerState")["phase"] == "break"


# ---------------------------------------------------------------------------
# History and alarms
# ---------------------------------------------------------------------------


class TestHistoryAndAlarms:
    def test_history_round_trip(self, store):
        entries = [
            HistoryEntry("2024-01-01T09:25:00.000Z", 25),
            HistoryEntry("2024-01-01T10:00:00.000Z", 50),
        ]
        store.save_history(entries)

        assert store.load_history() == entries
        assert _raw_get(store, "history")[1] == {
            "date": "2024-01-01T10:00:00.000Z",
            "durationMinutes": 50,
        }

    def test_malformed_history_entries_are_skipped(self, store):
        _raw_set(
            store,
            "history",
            json.dumps(
                [
                    {"date": "2024-01-01T09:25:00.000Z", "durationMinutes": 25},
                    {"date": "2024-01-01T10:00:00.000Z"},
                    "garbage",
                    {"date": "2024-01-01T11:00:00.000Z", "durationMinutes": "x"},
                ]
            ),
        )
        assert store.load_history() == [HistoryEntry("2024-01-01T09:25:00.000Z", 25)]

    def test_non_list_history_is_empty(self, store):
        _raw_set(store, "history", json.dumps({"oops": True}))
        assert store.load_history() == []

    def test_alarms_round_trip(self, store):
        store.save_alarms({"flowTimerEnd": 1_500_000})
        assert store.load_alarms() == {"flowTimerEnd": 1_500_000}

    def test_invalid_alarm_values_are_dropped(self, store):
        _raw_set(store, "alarms", json.dumps({"a": 1, "b": "soon", "c": True, "d": 2.5}))
        assert store.load_alarms() == {"a": 1}
