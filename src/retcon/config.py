"""Settings file loading, validation, and persistence.

Schema on disk (~/.config/retcon/config.json):

    {
        "limit": 50,
        "sync_author_to_committer": true,
        "editor": "nvim",
        "theme": "textual-dark"
    }

Every key is optional. Keys prefixed with "_" are reserved for comments and
are stripped on load.
"""

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from retcon.constants import DEFAULT_LIMIT

CONFIG_PATH = Path("~/.config/retcon/config.json").expanduser()

LOG_PATH = Path("~/.config/retcon/retcon.log").expanduser()


class Settings(BaseModel):
    """User preferences; command-line flags take precedence over these."""

    limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    sync_author_to_committer: bool = True
    editor: str | None = None
    theme: str | None = None


class ConfigError(Exception):
    """Raised when config.json exists but cannot be parsed or validated."""


def load_settings() -> Settings:
    """Load and validate the settings file.

    Writes a file with the defaults on first run. Raises ConfigError if the
    file exists but is malformed.
    """
    if not CONFIG_PATH.exists():
        settings = Settings()
        save_settings(settings)
        return settings

    try:
        raw: object = json.loads(CONFIG_PATH.read_text() or "{}")
    except json.JSONDecodeError as exc:
        raise ConfigError(f"config.json is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("config.json must be a JSON object at the top level")

    data = {k: v for k, v in raw.items() if not k.startswith("_")}
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config: {exc}") from exc


def save_settings(settings: Settings) -> None:
    """Persist settings to disk, creating directories as needed."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(json.dumps(settings.model_dump(), indent=2))


def load_theme() -> str | None:
    """Return the saved theme name, or None if unset or unreadable."""
    try:
        return load_settings().theme
    except ConfigError:
        return None


def save_theme(theme: str) -> None:
    """Save the theme preference, keeping the other settings intact."""
    try:
        settings = load_settings()
    except ConfigError:
        return
    if settings.theme != theme:
        save_settings(settings.model_copy(update={"theme": theme}))
