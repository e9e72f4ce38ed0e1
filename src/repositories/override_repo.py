"""Repository for persisting manual filename -> roster name overrides.

Stores user-confirmed photo assignments as a JSON object keyed by
filename. Every mutation is written to disk before the call returns.
"""

import json
import logging
from pathlib import Path

from src.repositories.json_file import quarantine, write_json_atomic

logger = logging.getLogger(__name__)


class OverridePersistenceError(Exception):
    """Raised when an override could not be written to disk."""


class OverrideRepository:
    """Repository for manual photo overrides.

    Overrides are consulted before any automatic matching. They never
    expire: deleting a photo does not delete its override.

    A file that exists but cannot be parsed is moved aside to
    mappings.json.corrupt before anything new is written. If it cannot
    be moved, the store refuses writes until reload() succeeds.
    """

    def __init__(self, path: Path):
        """Initialize repository and load any existing overrides.

        Args:
            path: JSON file holding the overrides (created on first write)
        """
        self._path = Path(path)
        self._overrides: dict[str, str] = {}
        self._load_error: str | None = None
        self.reload()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def load_error(self) -> str | None:
        """Why the store is refusing writes, or None if it is usable."""
        return self._load_error

    def reload(self) -> None:
        """Re-read overrides from disk, discarding in-memory state.

        Call after anything outside this process rewrites the file,
        such as a backup import. A missing file is an empty store.
        """
        self._overrides = {}
        self._load_error = None
        if not self._path.exists():
            return

        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            self._set_aside(f"unreadable ({e})")
            return

        if not isinstance(data, dict):
            self._set_aside("not a JSON object")
            return

        self._overrides = {str(k): str(v) for k, v in data.items()}
        logger.info(f"Loaded {len(self._overrides)} overrides from {self._path}")

    def get(self, filename: str) -> str | None:
        """Get the override for a filename.

        Args:
            filename: Photo filename (no directory)

        Returns:
            Roster name in "Last, First" form, or None if not overridden
        """
        return self._overrides.get(filename)

    def set(self, filename: str, roster_name: str) -> None:
        """Save an override (upsert).

        Setting the pair that is already stored does not touch the file.

        Args:
            filename: Photo filename (no directory)
            roster_name: Roster name in "Last, First" form

        Raises:
            OverridePersistenceError: If the write did not complete. The
                override is not kept in memory in that case.
        """
        if self._overrides.get(filename) == roster_name:
            return

        updated = dict(self._overrides)
        updated[filename] = roster_name
        self._write(updated)
        self._overrides = updated

    def remove(self, filename: str) -> bool:
        """Delete an override.

        Returns:
            True if an override was deleted, False if not found
        """
        if filename not in self._overrides:
            return False
        updated = dict(self._overrides)
        del updated[filename]
        self._write(updated)
        self._overrides = updated
        return True

    def clear(self) -> None:
        """Delete all overrides."""
        self._write({})
        self._overrides = {}

    def all(self) -> dict[str, str]:
        """Copy of every override, independent of later changes."""
        return dict(self._overrides)

    def __len__(self) -> int:
        return len(self._overrides)

    def _set_aside(self, problem: str) -> None:
        """Keep an unparseable file from being overwritten."""
        try:
            moved_to = quarantine(self._path)
        except OSError as e:
            self._load_error = (
                f"Overrides file {self._path} is {problem} and could not "
                f"be moved aside: {e}"
            )
            logger.error(self._load_error)
            return
        logger.error(
            f"Overrides file {self._path} is {problem}; moved to {moved_to}, "
            "starting with no overrides"
        )

    def _write(self, overrides: dict[str, str]) -> None:
        if self._load_error is not None:
            raise OverridePersistenceError(self._load_error)
        try:
            write_json_atomic(self._path, overrides)
        except OSError as e:
            logger.error(f"Failed to save overrides to {self._path}: {e}")
            raise OverridePersistenceError(
                f"Could not save overrides to {self._path}: {e}"
            ) from e
