"""Unit tests for settings loading, validation, and persistence."""

import json
from pathlib import Path

import pytest

from retcon.config import (
    ConfigError,
    Settings,
    load_settings,
    load_theme,
    save_settings,
    save_theme,
)


def _write(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


@pytest.fixture
def cfg_path(tmp_path: Path, monkeypatch) -> Path:
    path = tmp_path / "retcon" / "config.json"
    monkeypatch.setattr("retcon.config.CONFIG_PATH", path)
    return path


class TestSettings:
    def test_defaults(self):
        """
        Given no values
        When Settings is constructed
        Then the documented defaults apply
        """
        settings = Settings()
        assert settings.limit == 50
        assert settings.sync_author_to_committer is True
        assert settings.editor is None
        assert settings.theme is None

    def test_limit_must_be_positive(self):
        """
        Given a zero limit
        When validated
        Then a ValidationError is raised
        """
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            Settings(limit=0)


class TestLoadSettings:
    def test_bootstraps_defaults_when_missing(self, cfg_path):
        """
        Given no settings file
        When load_settings is called
        Then defaults are returned and written to disk
        """
        settings = load_settings()
        assert settings == Settings()
        assert json.loads(cfg_path.read_text())["limit"] == 50

    def test_reads_values_and_strips_comment_keys(self, cfg_path):
        """
        Given a file with values and an underscore comment key
        When loaded
        Then the values apply and the comment is ignored
        """
        _write(cfg_path, {"_comment": "hi", "limit": 200, "editor": "nano"})
        settings = load_settings()
        assert settings.limit == 200
        assert settings.editor == "nano"

    def test_invalid_json_raises(self, cfg_path):
        """
        Given a file that is not JSON
        When loaded
        Then ConfigError is raised
        """
        cfg_path.parent.mkdir(parents=True)
        cfg_path.write_text("{not json")
        with pytest.raises(ConfigError, match="not valid JSON"):
            load_settings()

    def test_non_object_raises(self, cfg_path):
        """
        Given a JSON array at the top level
        When loaded
        Then ConfigError is raised
        """
        _write(cfg_path, [1, 2])
        with pytest.raises(ConfigError, match="JSON object"):
            load_settings()

    def test_invalid_value_raises(self, cfg_path):
        """
        Given a negative limit
        When loaded
        Then ConfigError wraps the validation failure
        """
        _write(cfg_path, {"limit": -1})
        with pytest.raises(ConfigError, match="Invalid config"):
            load_settings()


class TestTheme:
    def test_save_theme_keeps_other_settings(self, cfg_path):
        """
        Given a settings file with a custom limit
        When a theme is saved
        Then the theme is stored and the limit survives
        """
        save_settings(Settings(limit=10))
        save_theme("nord")
        assert load_theme() == "nord"
        assert load_settings().limit == 10

    def test_load_theme_on_broken_file_is_none(self, cfg_path):
        """
        Given a malformed settings file
        When the theme is loaded
        Then None is returned instead of raising
        """
        cfg_path.parent.mkdir(parents=True)
        cfg_path.write_text("[")
        assert load_theme() is None
