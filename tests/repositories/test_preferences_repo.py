"""Tests for PreferencesRepository."""

import json
from pathlib import Path

import pytest

from src.repositories.preferences_repo import PreferencesRepository


@pytest.fixture
def path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "preferences.json"


def test_missing_file_has_no_directory(path: Path):
    assert PreferencesRepository(path).images_directory is None


def test_saved_directory_survives_new_instance(path: Path, tmp_path: Path):
    """The next launch reopens the directory chosen in this one."""
    repo = PreferencesRepository(path)

    assert repo.save_images_directory(tmp_path / "period4") is True

    assert PreferencesRepository(path).images_directory == tmp_path / "period4"
    assert json.loads(path.read_text()) == {"images_directory": str(tmp_path / "period4")}


def test_unreadable_file_is_ignored(path: Path):
    path.parent.mkdir(parents=True)
    path.write_text("images_directory=/photos")

    assert PreferencesRepository(path).images_directory is None


def test_save_failure_returns_false(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    repo = PreferencesRepository(blocker / "preferences.json")

    assert repo.save_images_directory(tmp_path / "period4") is False
    assert repo.images_directory is None
