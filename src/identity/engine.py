"""ReconciliationEngine binds the photos in a directory to roster identities.

One full pass:
1. Load roster names for the directory (roster_loading)
2. Run every image file through the IdentityResolver (reconciling)
3. Swap in the new snapshot in a single assignment (loaded)

A failed pass (missing directory, unreadable or empty roster) leaves the
previous snapshot in place.

The engine is single-writer: only the foreground (event loop) context
may call reconcile(), assign() or assign_all_strong_suggestions().
"""

import logging
from pathlib import Path
from typing import Protocol

from src.adapters.roster_adapter import RosterUnavailableError
from src.identity.resolver import IdentityResolver
from src.identity.roster_index import RosterIndex
from src.identity.schemas import (
    Identity,
    LoadState,
    PhotoRecord,
    ReconciliationResult,
    ReconciliationSnapshot,
    UnresolvedFile,
)
from src.repositories.override_repo import OverrideRepository

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png")


class DirectoryUnreadableError(Exception):
    """Raised when the images directory is missing or not a directory."""


class RosterSource(Protocol):
    """Anything that can produce raw "Last, First" names for a directory."""

    def load_names(self, directory: Path) -> list[str]: ...


def is_image_filename(name: str) -> bool:
    """True if the name ends in .jpg, .jpeg or .png (any case)."""
    return name.lower().endswith(IMAGE_EXTENSIONS)


def list_image_files(directory: Path) -> list[Path]:
    """Regular image files directly inside a directory, sorted by name.

    Raises:
        DirectoryUnreadableError: If the directory cannot be listed
    """
    try:
        children = list(directory.iterdir())
    except OSError as e:
        raise DirectoryUnreadableError(
            f"Failed to list directory {directory}: {e}"
        ) from e
    return sorted(
        (p for p in children if p.is_file() and is_image_filename(p.name)),
        key=lambda p: p.name,
    )


class ReconciliationEngine:
    """Owns the resolved/unresolved photo sets for the active directory.

    Invariant: the committed resolved set never holds two records for
    the same Identity. The first file in listing order keeps the
    identity; later claimants are parked as unresolved with no
    suggestions and a note naming the holder.
    """

    def __init__(
        self,
        roster_source: RosterSource,
        overrides: OverrideRepository,
        resolver: IdentityResolver | None = None,
        directory: Path | None = None,
    ):
        """Initialize engine with its collaborators.

        Args:
            roster_source: Supplies roster names for the directory
            overrides: Manual override repository (shared, long-lived)
            resolver: Stage pipeline (default override -> exact -> fuzzy)
            directory: Images directory to reconcile
        """
        self._roster_source = roster_source
        self._overrides = overrides
        self._resolver = resolver or IdentityResolver.default(overrides)
        self._directory = Path(directory) if directory else None
        self._roster = RosterIndex()
        self._snapshot = ReconciliationSnapshot()
        self._state = LoadState.IDLE
        self._last_error: str | None = None

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def last_error(self) -> str | None:
        """Reason the most recent pass failed, None after a success."""
        return self._last_error

    @property
    def directory(self) -> Path | None:
        return self._directory

    @property
    def roster_index(self) -> RosterIndex:
        """Roster from the last successful pass."""
        return self._roster

    @property
    def snapshot(self) -> ReconciliationSnapshot:
        return self._snapshot

    def set_directory(self, directory: Path) -> None:
        """Point the engine at another images directory.

        The current snapshot stays until the next successful reconcile().
        """
        self._directory = Path(directory)
        self._state = LoadState.IDLE

    def resolved_identities(self) -> list[PhotoRecord]:
        return list(self._snapshot.resolved)

    def unresolved_files(self) -> list[UnresolvedFile]:
        return list(self._snapshot.unresolved)

    def reconcile(self, directory: Path | None = None) -> ReconciliationResult:
        """Run a full reconciliation pass over the directory.

        Args:
            directory: Candidate directory to switch to. It becomes the
                engine's directory only if the pass succeeds.

        Returns:
            ReconciliationResult. On failure, success is False, reason
            explains why, and the previous snapshot is still committed.
        """
        self._state = LoadState.ROSTER_LOADING
        try:
            directory = self._require_directory(
                Path(directory) if directory is not None else self._directory
            )
            roster = RosterIndex.build(self._roster_source.load_names(directory))
            if roster.is_empty:
                raise RosterUnavailableError(f"Roster for {directory} has no names")

            self._state = LoadState.RECONCILING
            files = list_image_files(directory)
        except (DirectoryUnreadableError, RosterUnavailableError) as e:
            return self._fail(str(e))

        resolved: list[PhotoRecord] = []
        unresolved: list[UnresolvedFile] = []
        claimed: dict[Identity, PhotoRecord] = {}
        for path in files:
            outcome = self._resolve_file(path, roster, claimed)
            if isinstance(outcome, PhotoRecord):
                resolved.append(outcome)
                claimed[outcome.identity] = outcome
            else:
                unresolved.append(outcome)

        # Single reference swap: readers see the old pass or the new one
        self._directory = directory
        self._roster = roster
        self._snapshot = ReconciliationSnapshot(
            directory=directory,
            resolved=tuple(resolved),
            unresolved=tuple(unresolved),
        )
        self._state = LoadState.LOADED
        self._last_error = None

        logger.info(
            f"Reconciled {directory}: {len(resolved)} matched, "
            f"{len(unresolved)} unmatched"
        )
        return ReconciliationResult(
            success=True,
            state=self._state,
            resolved_count=len(resolved),
            unresolved_count=len(unresolved),
        )

    def assign(self, filename: str, roster_name: str) -> PhotoRecord | UnresolvedFile:
        """Manually bind a photo to a roster name.

        Persists the override first, then re-resolves only this file
        (the override now wins). Other files are not re-run.

        Args:
            filename: Photo filename from the current snapshot
            roster_name: Roster name in "Last, First" form

        Returns:
            The new PhotoRecord, or an UnresolvedFile with a note if the
            identity is already held by another photo

        Raises:
            ValueError: If the filename is not part of the current snapshot
            OverridePersistenceError: If the override could not be saved;
                the snapshot is unchanged
        """
        path = self._find_path(filename)
        self._overrides.set(filename, roster_name)
        outcome = self._rerun_file(path)
        logger.info(f"Assigned {filename} -> {roster_name}")
        return outcome

    def assign_all_strong_suggestions(self) -> int:
        """Accept the best suggestion of every unresolved file where it is strong.

        Files are processed in the current unresolved order. A file whose
        suggested identity was claimed by an earlier assignment is parked
        with a note instead, and no override is written for it.

        Returns:
            Number of files that became resolved
        """
        assigned = 0
        for item in self.unresolved_files():
            best = item.best_suggestion
            if best is None or not best.is_strong:
                continue

            holder = self._holder_of(best.identity, exclude=item.path)
            if holder is not None:
                self._commit_outcome(item.path, self._claimed_note(item.path, holder))
                continue

            outcome = self.assign(item.filename, best.roster_name)
            if isinstance(outcome, PhotoRecord):
                assigned += 1

        logger.info(f"Accepted {assigned} strong suggestions")
        return assigned

    @staticmethod
    def _require_directory(directory: Path | None) -> Path:
        if directory is None:
            raise DirectoryUnreadableError("No images directory configured")
        if not directory.exists():
            raise DirectoryUnreadableError(f"Images directory not found: {directory}")
        if not directory.is_dir():
            raise DirectoryUnreadableError(f"Not a directory: {directory}")
        return directory

    def _fail(self, reason: str) -> ReconciliationResult:
        self._state = LoadState.FAILED
        self._last_error = reason
        logger.warning(f"Reconciliation failed, keeping previous state: {reason}")
        return ReconciliationResult(
            success=False,
            state=self._state,
            reason=reason,
            resolved_count=len(self._snapshot.resolved),
            unresolved_count=len(self._snapshot.unresolved),
        )

    def _resolve_file(
        self,
        path: Path,
        roster: RosterIndex,
        claimed: dict[Identity, PhotoRecord],
    ) -> PhotoRecord | UnresolvedFile:
        resolution = self._resolver.resolve(path.name, roster)
        if resolution.match is None:
            return UnresolvedFile(path=path, suggestions=resolution.suggestions)

        identity = resolution.match.identity
        holder = claimed.get(identity)
        if holder is not None and holder.image_path != path:
            return self._claimed_note(path, holder)

        return PhotoRecord(
            identity=identity,
            image_path=path,
            source=resolution.match.source,
        )

    def _rerun_file(self, path: Path) -> PhotoRecord | UnresolvedFile:
        claimed = {
            r.identity: r for r in self._snapshot.resolved if r.image_path != path
        }
        outcome = self._resolve_file(path, self._roster, claimed)
        self._commit_outcome(path, outcome)
        return outcome

    def _commit_outcome(
        self, path: Path, outcome: PhotoRecord | UnresolvedFile
    ) -> None:
        """Replace one file's entry and swap in the updated snapshot."""
        snapshot = self._snapshot
        resolved = [r for r in snapshot.resolved if r.image_path != path]
        unresolved = list(snapshot.unresolved)
        position = next(
            (i for i, u in enumerate(unresolved) if u.path == path), None
        )

        if isinstance(outcome, PhotoRecord):
            resolved.append(outcome)
            if position is not None:
                del unresolved[position]
        elif position is not None:
            unresolved[position] = outcome
        else:
            unresolved.append(outcome)

        self._snapshot = ReconciliationSnapshot(
            directory=snapshot.directory,
            resolved=tuple(resolved),
            unresolved=tuple(unresolved),
        )

    def _find_path(self, filename: str) -> Path:
        for record in self._snapshot.resolved:
            if record.filename == filename:
                return record.image_path
        for item in self._snapshot.unresolved:
            if item.filename == filename:
                return item.path
        raise ValueError(f"Unknown photo: {filename}")

    def _holder_of(self, identity: Identity, exclude: Path) -> PhotoRecord | None:
        for record in self._snapshot.resolved:
            if record.identity == identity and record.image_path != exclude:
                return record
        return None

    @staticmethod
    def _claimed_note(path: Path, holder: PhotoRecord) -> UnresolvedFile:
        return UnresolvedFile(
            path=path,
            suggestions=(),
            note=(
                f"{holder.identity.roster_name} is already matched to "
                f"{holder.filename}"
            ),
        )
