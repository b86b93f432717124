"""Configuration service for focustimer.

ConfigService is the single owner of ``config.json``. It handles:

- Loading and saving the file (created lazily with defaults)
- Dotted-key get/set/reset used by ``focustimer config``
- Environment overrides for the remote history service
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir
from pydantic import BaseModel, ValidationError

from focustimer.models.config_models import AppConfig

ENV_API_ENDPOINT = "FOCUSTIMER_API_ENDPOINT"
ENV_API_KEY = "FOCUSTIMER_API_KEY"


class ConfigService:
    """Service for loading, saving and editing application configuration."""

    def __init__(self):
        self.config_dir = Path(user_config_dir("focustimer"))
        self.config_path = self.config_dir / "config.json"
        self.data_dir = Path(user_data_dir("focustimer"))

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        # What config.json holds, and the same values with env overrides applied
        self._file_config: AppConfig | None = None
        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> AppConfig:
        """Load configuration from disk, applying environment overrides."""
        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # First run
            config = AppConfig()
        except (ValidationError, OSError) as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        self._use(config)
        return self._config

    def _use(self, file_config: AppConfig) -> None:
        self._file_config = file_config
        self._config = self._apply_env(file_config.model_copy(deep=True))

    @staticmethod
    def _apply_env(config: AppConfig) -> AppConfig:
        endpoint = os.environ.get(ENV_API_ENDPOINT)
        key = os.environ.get(ENV_API_KEY)
        if endpoint:
            config.api.endpoint = endpoint
        if key:
            config.api.key = key
        return config

    def save_config(self) -> None:
        """Save the current configuration to disk.

        Environment overrides are never written to the file.
        """
        if self._file_config is None:
            self.load_config()
        data = self._file_config.model_dump_json(indent=4)
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(data)

            self.config_path.chmod(0o600)
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def get(self, key: str) -> Any:
        """Get a configuration value by dot-separated key."""
        value: Any = self.config
        for k in key.split("."):
            if isinstance(value, BaseModel) and k in type(value).model_fields:
                value = getattr(value, k)
            else:
                raise KeyError(key)
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-separated key and persist it."""
        self.get(key)  # raises KeyError for unknown keys

        keys = key.split(".")
        config_dict = self._file_config.model_dump()
        current = config_dict
        for k in keys[:-1]:
            current = current[k]
        current[keys[-1]] = _coerce(value)

        self._use(AppConfig.model_validate(config_dict))
        self.save_config()

    def reset(self, key: str | None = None) -> None:
        """Reset the whole configuration, or a single key, to defaults."""
        if key is None:
            self._use(AppConfig())
            self.save_config()
            return

        defaults = ConfigService._lookup(AppConfig(), key)
        self.set(key, defaults)

    @staticmethod
    def _lookup(config: AppConfig, key: str) -> Any:
        value: Any = config
        for k in key.split("."):
            value = getattr(value, k)
        return value


def _coerce(value: Any) -> Any:
    """Turn CLI strings like ``"false"`` or ``"45"`` into JSON values."""
    if not isinstance(value, str):
        return value
    if value.lower() in ("none", "null"):
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Return the process-wide ConfigService."""
    return ConfigService()
