"""Tests for application settings."""

from pathlib import Path

import pytest

from src.config import PORTABLE_MARKER, Settings, default_data_directory


def test_home_data_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)

    assert default_data_directory() == Path.home() / ".namegame"


def test_portable_data_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """A portable.txt marker keeps data beside the app."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / PORTABLE_MARKER).write_text("")

    assert default_data_directory() == tmp_path / "data"


def test_settings_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("IMAGES_DIRECTORY", str(tmp_path / "photos"))
    monkeypatch.setenv("DATA_DIRECTORY", str(tmp_path / "data"))
    monkeypatch.setenv("AUTO_ACCEPT_STRONG_MATCHES", "false")

    settings = Settings(_env_file=None)

    assert settings.images_directory == tmp_path / "photos"
    assert settings.overrides_path == tmp_path / "data" / "mappings.json"
    assert settings.auto_accept_strong_matches is False


def test_default_overrides_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DATA_DIRECTORY", raising=False)

    settings = Settings(_env_file=None)

    assert settings.overrides_path == Path.home() / ".namegame" / "mappings.json"
    assert settings.watch_debounce_ms == 1600
