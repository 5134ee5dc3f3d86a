"""Local key-value settings for the assistant panel.

Hides where the assistant configuration lives. The store is a small JSON
file whose keys mirror the panel's config fields:

    apiKey, serverUrl, systemPrompt, model, temperature, maxTokens

Environment variables:
    MARKNOTE_SETTINGS: Settings file path (default: ~/.marknote/assistant.json)
    MARKNOTE_API_KEY / OPENAI_API_KEY: API key used when none is stored
    MARKNOTE_SERVER_URL: Endpoint base URL used when none is stored
    MARKNOTE_MODEL: Model used when none is stored
"""

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .llm.models import SessionConfig

SETTINGS_PATH_ENV = "MARKNOTE_SETTINGS"
DEFAULT_SETTINGS_PATH = Path.home() / ".marknote" / "assistant.json"

RECOGNIZED_KEYS = ("apiKey", "serverUrl", "systemPrompt", "model", "temperature", "maxTokens")


def default_settings_path() -> Path:
    """Resolve the settings file path from the environment."""
    override = os.getenv(SETTINGS_PATH_ENV)
    return Path(override).expanduser() if override else DEFAULT_SETTINGS_PATH


def environment_defaults() -> dict[str, Any]:
    """Config values seeded from environment variables."""
    values: dict[str, Any] = {}
    api_key = os.getenv("MARKNOTE_API_KEY") or os.getenv("OPENAI_API_KEY")
    if api_key:
        values["apiKey"] = api_key
    server_url = os.getenv("MARKNOTE_SERVER_URL")
    if server_url:
        values["serverUrl"] = server_url
    model = os.getenv("MARKNOTE_MODEL")
    if model:
        values["model"] = model
    return values


class SettingsStore:
    """JSON-file backed store for SessionConfig.

    A missing file yields defaults. A corrupt file is reported through
    ``warn`` and also yields defaults, so the panel stays usable.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        warn: Callable[[str], None] | None = None,
    ):
        self._path = Path(path) if path is not None else default_settings_path()
        self._warn = warn

    @property
    def path(self) -> Path:
        return self._path

    def _warning(self, message: str) -> None:
        if self._warn:
            self._warn(message)

    def read_raw(self) -> dict[str, Any]:
        """Read the recognized keys from the settings file."""
        if not self._path.exists():
            return {}

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self._warning(f"Error loading assistant settings from {self._path}: {e}")
            return {}

        if not isinstance(data, dict):
            self._warning(f"Ignoring assistant settings in {self._path}: not a JSON object")
            return {}
        return {key: data[key] for key in RECOGNIZED_KEYS if key in data}

    def _merged(self, stored: dict[str, Any]) -> dict[str, Any]:
        values = environment_defaults()
        values.update({k: v for k, v in stored.items() if v not in (None, "")})
        return values

    def _write(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )

    def load(self) -> SessionConfig:
        """Build a SessionConfig from stored values, environment and defaults."""
        try:
            return SessionConfig.model_validate(self._merged(self.read_raw()))
        except ValidationError as e:
            self._warning(f"Invalid assistant settings, using defaults: {e}")
            return SessionConfig.model_validate(environment_defaults())

    def save(self, config: SessionConfig) -> None:
        """Persist ``config`` under the store keys.

        Values that only came from the environment are left out of the
        file, so changing the environment later still takes effect.
        """
        data = config.to_storage_dict()
        stored = self.read_raw()
        for key, env_value in environment_defaults().items():
            if stored.get(key) in (None, "") and data.get(key) == env_value:
                del data[key]
        self._write(data)

    def set_value(self, key: str, value: Any) -> SessionConfig:
        """Update a single stored key and save.

        Only ``key`` changes in the file; other keys keep their stored
        values, and environment-only values are never written.

        Raises:
            KeyError: If ``key`` is not a recognized settings key
            ValidationError: If the resulting config is invalid
        """
        if key not in RECOGNIZED_KEYS:
            raise KeyError(
                f"Unknown setting: {key}. Recognized keys: {', '.join(RECOGNIZED_KEYS)}"
            )

        stored = self.read_raw()
        stored[key] = value
        config = SessionConfig.model_validate(self._merged(stored))
        if value not in (None, ""):
            stored[key] = config.to_storage_dict()[key]
        self._write(stored)
        return config
