"""Tests for the application logger utility.

The autouse ``isolate_logging`` fixture in conftest resets the root logger and
points user_log_dir at ``tmp_path / "logs"``.
"""

from __future__ import annotations

import logging

from flowtimer.utils.logger import get_logger


def _flush(logger: logging.Logger) -> None:
    for handler in logging.getLogger("flowtimer").handlers:
        handler.flush()


def test_get_logger_creates_log_file(tmp_path):
    """Logger creates the log file inside user_log_dir."""
    logger = get_logger()

    assert (tmp_path / "logs" / "flowtimer.log").exists()
    assert isinstance(logger, logging.Logger)
    assert logger.name == "flowtimer"


def test_component_logger_is_child(tmp_path):
    logger = get_logger("engine")

    assert logger.name == "flowtimer.engine"
    assert logger.parent is get_logger()


def test_repeated_calls_share_one_handler():
    get_logger()
    get_logger("store")
    get_logger()

    assert len(logging.getLogger("flowtimer").handlers) == 1


def test_child_messages_reach_the_file(tmp_path):
    logger = get_logger("router")
    logger.info("hello from test")
    _flush(logger)

    content = (tmp_path / "logs" / "flowtimer.log").read_text()
    assert "hello from test" in content
    assert "[flowtimer.router]" in content


def test_level_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("FLOWTIMER_LOG_LEVEL", "warning")
    logger = get_logger("engine")
    logger.info("quiet")
    logger.warning("loud")
    _flush(logger)

    content = (tmp_path / "logs" / "flowtimer.log").read_text()
    assert "quiet" not in content
    assert "loud" in content


def test_does_not_propagate_to_root():
    assert get_logger().propagate is False


def test_creates_nested_log_dir(tmp_path):
    """user_log_dir is created with parents on first use."""
    get_logger()
    assert (tmp_path / "logs").is_dir()
