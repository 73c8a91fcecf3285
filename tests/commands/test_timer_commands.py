"""CLI tests for the top-level timer commands (start, stop, pause, reset,
status, send, run) and the app-level helpers.
"""

from __future__ import annotations

import json
import re
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from flowtimer.core.scheduler import WakeDispatcher
from flowtimer.main import app
from flowtimer.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_UNKNOWN_COMMAND

runner = CliRunner()

FOCUS_MS = 25 * 60 * 1000


def strip_ansi(text: str) -> str:
    ansi = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    return ansi.sub("", text)


@pytest.fixture(autouse=True)
def patched_router(make_router):
    """Every command builds a fresh router over the shared tmp store."""
    with patch("flowtimer.commands.timer.get_router", side_effect=lambda: make_router()):
        yield


# ---------------------------------------------------------------------------
# start / stop / pause / reset / status
# ---------------------------------------------------------------------------


def test_start_shows_running_focus(store):
    result = runner.invoke(app, ["start"])

    assert result.exit_code == 0, result.output
    output = strip_ansi(result.output)
    assert "Focus" in output
    assert "25:00" in output
    assert "running" in output
    assert "Session 1 of 4" in output
    assert store.load_snapshot().is_running is True


def test_status_json(store):
    runner.invoke(app, ["start"])
    result = runner.invoke(app, ["status", "--output", "json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["isRunning"] is True
    assert data["targetTime"] == FOCUS_MS


def test_pause_keeps_remaining_time(store, clock):
    runner.invoke(app, ["start"])
    clock.advance(60_000)
    result = runner.invoke(app, ["pause"])

    assert result.exit_code == 0, result.output
    assert "24:00" in result.output
    assert "paused" in result.output
    assert store.load_snapshot().remaining_time == FOCUS_MS - 60_000


def test_stop_then_start_resumes(store, clock):
    runner.invoke(app, ["start"])
    clock.advance(1_000)
    runner.invoke(app, ["stop"])
    clock.advance(10_000_000)
    runner.invoke(app, ["start"])

    assert store.load_snapshot().target_time == clock() + FOCUS_MS - 1_000


def test_reset(store):
    runner.invoke(app, ["send", "UPDATE_SETTINGS", "--payload", '{"focus": 40}'])
    runner.invoke(app, ["start"])
    result = runner.invoke(app, ["reset"])

    assert result.exit_code == 0, result.output
    snapshot = store.load_snapshot()
    assert snapshot.is_running is False
    assert snapshot.remaining_time == 40 * 60 * 1000


def test_reset_defaults_restores_settings(store):
    runner.invoke(app, ["send", "UPDATE_SETTINGS", "--payload", '{"focus": 40}'])
    runner.invoke(app, ["start"])
    result = runner.invoke(app, ["reset", "--defaults"])

    assert result.exit_code == 0, result.output
    assert "25:00" in result.output
    assert store.load_snapshot().settings.focus == 25


def test_status_after_deadline_does_not_advance(store, clock):
    runner.invoke(app, ["start"])
    clock.advance(FOCUS_MS + 60_000)

    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0, result.output
    assert "00:00" in strip_ansi(result.output)
    assert store.load_snapshot().phase == "focus"
    assert store.load_history() == []


def test_status_uses_configured_output_format():
    from flowtimer.services.config_service import get_config_service

    get_config_service().set("output.format", "json")
    result = runner.invoke(app, ["status"])

    assert json.loads(result.output)["phase"] == "focus"


# ---------------------------------------------------------------------------
# send
# ---------------------------------------------------------------------------


class TestSend:
    def test_send_start(self):
        result = runner.invoke(app, ["send", "start"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["isRunning"] is True

    def test_send_update_settings_payload(self, store):
        result = runner.invoke(
            app, ["send", "UPDATE_SETTINGS", "-p", '{"focus": 50, "sessions": 20}']
        )

        assert result.exit_code == 0, result.output
        settings = json.loads(result.output)["settings"]
        assert settings["focus"] == 50
        assert settings["sessions"] == 12

    def test_send_unknown_command(self, store):
        result = runner.invoke(app, ["send", "SNOOZE"])

        assert result.exit_code == ERROR_UNKNOWN_COMMAND
        assert "Unknown command" in result.output
        assert store.get("timerState") is None

    def test_send_invalid_json_payload(self):
        result = runner.invoke(app, ["send", "UPDATE_SETTINGS", "-p", "{nope"])

        assert result.exit_code == ERROR_INVALID_ARGS
        assert "not valid JSON" in result.output

    def test_send_non_object_payload(self):
        result = runner.invoke(app, ["send", "UPDATE_SETTINGS", "-p", "[1, 2]"])
        assert result.exit_code == ERROR_INVALID_ARGS


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


class TestRun:
    def test_run_delivers_overdue_wake_then_watches(self, store, clock):
        runner.invoke(app, ["start"])
        clock.advance(FOCUS_MS + 5)

        with patch.object(WakeDispatcher, "run_forever", new=AsyncMock()) as run_forever:
            result = runner.invoke(app, ["run", "--poll-interval", "0.5"])

        assert result.exit_code == 0, result.output
        run_forever.assert_awaited_once()
        assert "Watching the timer" in result.output
        # The pending wake was delivered before watching started
        snapshot = store.load_snapshot()
        assert snapshot.phase == "break"
        assert snapshot.target_time == clock() + 5 * 60 * 1000
        assert len(store.load_history()) == 1

    def test_run_with_nothing_due_shows_status(self, store):
        runner.invoke(app, ["start"])
        before = store.load_snapshot()

        with patch.object(WakeDispatcher, "run_forever", new=AsyncMock()):
            result = runner.invoke(app, ["run"])

        assert result.exit_code == 0, result.output
        assert "25:00" in result.output
        assert store.load_snapshot() == before

    def test_run_stops_on_ctrl_c(self):
        with patch.object(
            WakeDispatcher, "run_forever", new=AsyncMock(side_effect=KeyboardInterrupt)
        ):
            result = runner.invoke(app, ["run"])

        assert result.exit_code == 0, result.output
        assert "Stopped watching" in result.output


# ---------------------------------------------------------------------------
# App-level
# ---------------------------------------------------------------------------


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_mistyped_command_suggests():
    result = runner.invoke(app, ["statu"])

    assert result.exit_code == ERROR_INVALID_ARGS
    assert "Did you mean" in result.output
    assert "status" in result.output
