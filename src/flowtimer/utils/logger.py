"""Application-wide logging to a rotating file in platformdirs user_log_dir.

Components ask for a child logger (``get_logger("engine")`` ->
``flowtimer.engine``); all children share the single file handler installed on
the ``flowtimer`` root logger the first time any logger is requested.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

from platformdirs import user_log_dir

_APP_NAME = "flowtimer"
_LOG_FILE = "flowtimer.log"
_LEVEL_ENV = "FLOWTIMER_LOG_LEVEL"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3

_root: logging.Logger | None = None


def _configure_root() -> logging.Logger:
    global _root
    if _root is not None:
        return _root

    log_dir = Path(user_log_dir(_APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_dir / _LOG_FILE,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )

    root = logging.getLogger(_APP_NAME)
    level_name = os.environ.get(_LEVEL_ENV, "DEBUG").upper()
    root.setLevel(getattr(logging, level_name, logging.DEBUG))
    if not root.handlers:
        root.addHandler(handler)
    root.propagate = False

    _root = root
    return _root


def get_logger(component: str | None = None) -> logging.Logger:
    """Return the application logger, or the child logger for *component*."""
    root = _configure_root()
    if component is None:
        return root
    return root.getChild(component)
