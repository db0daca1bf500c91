"""Tests for engine settings."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from taika.classroom import DEFAULT_STORE_DB
from taika.config import EngineSettings, load_settings


class TestEngineSettings:

    def test_defaults(self):
        settings = load_settings()
        assert settings.store_path == DEFAULT_STORE_DB
        assert settings.catalog_path is None
        assert settings.save_delay == 0.25
        assert settings.favorites_debounce == 0.2
        assert settings.lesson_probe_limit == 99
        assert settings.log_level == "INFO"

    def test_blank_store_path_means_memory(self):
        assert EngineSettings(store_path="  ").store_path is None

    def test_log_level_normalized(self):
        assert EngineSettings(log_level=" debug ").log_level == "DEBUG"

    def test_invalid_values(self):
        with pytest.raises(ValidationError):
            EngineSettings(log_level="chatty")
        with pytest.raises(ValidationError):
            EngineSettings(save_delay=-1)
        with pytest.raises(ValidationError):
            EngineSettings(lesson_probe_limit=0)

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("TAIKA_LOG_LEVEL", "warning")
        monkeypatch.setenv("TAIKA_CATALOG_PATH", "content/courses.yaml")
        settings = EngineSettings()
        assert settings.log_level == "WARNING"
        assert settings.catalog_path == Path("content/courses.yaml")

    def test_unprefixed_variables_ignored(self, monkeypatch):
        monkeypatch.setenv("SAVE_DELAY", "9")
        assert EngineSettings().save_delay == 0.25


class TestLoadSettings:

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "taika.yaml"
        path.write_text(yaml.safe_dump({
            "catalog_path": "content/courses.yaml",
            "save_delay": 0.5,
        }))
        settings = load_settings(path)
        assert settings.catalog_path == Path("content/courses.yaml")
        assert settings.save_delay == 0.5

    def test_empty_yaml_file(self, tmp_path):
        path = tmp_path / "taika.yaml"
        path.write_text("")
        assert load_settings(path).lesson_probe_limit == 99

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "taika.yaml"
        path.write_text(yaml.safe_dump({"save_delay": 0.5, "log_level": "WARNING"}))
        monkeypatch.setenv("TAIKA_SAVE_DELAY", "1.5")
        monkeypatch.setenv("TAIKA_STORE_PATH", "")
        monkeypatch.setenv("TAIKA_LESSON_PROBE_LIMIT", "12")

        settings = load_settings(path)
        assert settings.save_delay == 1.5
        assert settings.store_path is None
        assert settings.lesson_probe_limit == 12
        assert settings.log_level == "WARNING"

    def test_invalid_environment_value(self, monkeypatch):
        monkeypatch.setenv("TAIKA_SAVE_DELAY", "soon")
        with pytest.raises(ValidationError):
            load_settings()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml")
