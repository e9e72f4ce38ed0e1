"""Repository for user preferences that outlive the process.

Currently holds the images directory chosen through the API, so the
next launch reopens the same folder.
"""

import json
import logging
from pathlib import Path

from src.repositories.json_file import write_json_atomic

logger = logging.getLogger(__name__)

IMAGES_DIRECTORY_KEY = "images_directory"


class PreferencesRepository:
    """Small JSON key/value store in the data directory."""

    def __init__(self, path: Path):
        self._path = Path(path)
        self._values: dict[str, str] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def images_directory(self) -> Path | None:
        """Last images directory that was switched to successfully."""
        value = self._values.get(IMAGES_DIRECTORY_KEY)
        return Path(value) if value else None

    def save_images_directory(self, directory: Path) -> bool:
        """Remember the images directory for the next launch.

        Args:
            directory: Directory that was just reconciled successfully

        Returns:
            True if saved, False if the file could not be written
        """
        updated = dict(self._values)
        updated[IMAGES_DIRECTORY_KEY] = str(directory)
        try:
            write_json_atomic(self._path, updated)
        except OSError as e:
            logger.error(f"Failed to save preferences to {self._path}: {e}")
            return False
        self._values = updated
        return True

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable preferences {self._path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring preferences {self._path}: not a JSON object")
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}
