"""Configuration service for the Flow timer.

The ConfigService is the single source of truth for configuration. It handles:

- Loading and saving config.json (pydantic ``AppConfig``)
- Falling back to defaults when the file is missing or corrupt
- Dotted-key get/set/reset used by ``flow config``
- Resolving the state store location
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir
from pydantic import BaseModel, ValidationError

from flowtimer.adapters.sqlite.state_store import DEFAULT_DB_NAME
from flowtimer.constants import APP_NAME
from flowtimer.exceptions import AppError
from flowtimer.models.config_models import AppConfig
from flowtimer.utils.exit_codes import ERROR_INVALID_ARGS
from flowtimer.utils.logger import get_logger


class ConfigService:
    """Service for loading, saving and editing the application configuration."""

    def __init__(self):
        self.config_dir = Path(user_config_dir(APP_NAME))
        self.config_path = self.config_dir / "config.json"
        self.data_dir = Path(user_data_dir(APP_NAME))

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None
        self.logger = get_logger("config")

    @property
    def config(self) -> AppConfig:
        """Configuration, loaded from disk on first access."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> AppConfig:
        """Read config.json, writing defaults on first run."""
        if self._config is not None:
            return self._config

        try:
            self._config = AppConfig.model_validate_json(
                self.config_path.read_text(encoding="utf-8")
            )
        except FileNotFoundError:
            # Expected on first run
            self._config = AppConfig()
            self.save_config()
        except (OSError, ValidationError) as e:
            self.logger.warning("corrupt config at %s, using defaults: %s", self.config_path, e)
            self._config = AppConfig()

        return self._config

    def save_config(self) -> None:
        """Write config.json atomically (temp file, then replace), owner-only."""
        tmp_path = self.config_path.with_suffix(".json.tmp")
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(self.config.model_dump_json(indent=4), encoding="utf-8")
            tmp_path.chmod(0o600)
            os.replace(tmp_path, self.config_path)
        except OSError as e:
            raise AppError(f"Failed to save config: {e}") from e

    @property
    def db_path(self) -> Path:
        """Where the state store lives."""
        if self.config.storage.db_path:
            return Path(self.config.storage.db_path).expanduser()
        return self.data_dir / DEFAULT_DB_NAME

    def has_key(self, key: str) -> bool:
        """Whether *key* names a configuration field."""
        return self._lookup(self.config, key) is not _MISSING

    def get(self, key: str) -> Any:
        """Get a configuration value by dot-separated key (None if unknown)."""
        value = self._lookup(self.config, key)
        return None if value is _MISSING else value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-separated key and save."""
        if not self.has_key(key):
            raise AppError(f"Unknown configuration key '{key}'", ERROR_INVALID_ARGS)

        keys = key.split(".")
        config_dict = self.config.model_dump()
        current = config_dict
        for k in keys[:-1]:
            current = current[k]
        current[keys[-1]] = value

        try:
            self._config = AppConfig.model_validate(config_dict)
        except ValidationError as e:
            raise AppError(f"Invalid value for '{key}': {value!r}", ERROR_INVALID_ARGS) from e
        self.save_config()

    def reset(self, key: str | None = None) -> None:
        """Reset the whole configuration, or one key, to defaults."""
        if key is None:
            self._config = AppConfig()
            self.save_config()
            return

        defaults = self._lookup(AppConfig(), key)
        if defaults is _MISSING:
            raise AppError(f"Unknown configuration key '{key}'", ERROR_INVALID_ARGS)
        self.set(key, defaults)

    @staticmethod
    def _lookup(config: AppConfig, key: str) -> Any:
        value: Any = config
        for k in key.split("."):
            if isinstance(value, BaseModel) and k in type(value).model_fields:
                value = getattr(value, k)
            else:
                return _MISSING
        return value.model_dump() if isinstance(value, BaseModel) else value


_MISSING = object()


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get the process-wide ConfigService."""
    return ConfigService()
