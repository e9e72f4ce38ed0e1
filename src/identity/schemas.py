"""Identity resolution schemas.

Defines data models for roster identities, matched photos, fuzzy
suggestions and the committed reconciliation snapshot.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from src.identity.normalizer import parse_roster_name, squash_roster_name

STRONG_MATCH_THRESHOLD = 3


class Identity(BaseModel):
    """A person on the roster.

    Equality and hashing are structural on (first_name, last_name).
    """

    model_config = ConfigDict(frozen=True)

    first_name: str = Field(description="Given name")
    last_name: str = Field(description="Family name")

    @classmethod
    def from_roster_name(cls, roster_name: str) -> "Identity":
        """Parse a "Last, First" roster string.

        Args:
            roster_name: Name as it appears in the roster's Name column

        Returns:
            Identity with trimmed first and last names
        """
        first, last = parse_roster_name(roster_name)
        return cls(first_name=first, last_name=last)

    @property
    def display_name(self) -> str:
        """Natural "First Last" form, without blanks for a missing part."""
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def roster_name(self) -> str:
        """Roster "Last, First" form; just the last name if there is no first."""
        if not self.first_name:
            return self.last_name
        return f"{self.last_name}, {self.first_name}"

    @property
    def squashed_key(self) -> str:
        return squash_roster_name(self.roster_name)


class ResolutionSource(str, Enum):
    """How a photo was bound to an identity."""

    OVERRIDE = "override"
    EXACT = "exact"
    FUZZY = "fuzzy"


class MatchStrength(str, Enum):
    """Classification of an edit distance."""

    STRONG = "strong"
    WEAK = "weak"


class PhotoRecord(BaseModel):
    """A photo resolved to exactly one identity."""

    model_config = ConfigDict(frozen=True)

    identity: Identity
    image_path: Path
    source: ResolutionSource = Field(description="Stage that produced the match")

    @property
    def filename(self) -> str:
        return self.image_path.name


class Suggestion(BaseModel):
    """A ranked roster candidate for an unresolved photo."""

    model_config = ConfigDict(frozen=True)

    roster_name: str = Field(description="Original roster string")
    distance: int = Field(ge=0, description="Levenshtein distance to the filename")

    @property
    def identity(self) -> Identity:
        return Identity.from_roster_name(self.roster_name)

    @property
    def is_strong(self) -> bool:
        """True if close enough to accept without review (distance <= 3)."""
        return self.distance <= STRONG_MATCH_THRESHOLD


class UnresolvedFile(BaseModel):
    """A photo that no stage could bind confidently."""

    model_config = ConfigDict(frozen=True)

    path: Path
    suggestions: tuple[Suggestion, ...] = Field(
        default=(), description="Ranked candidates, best first"
    )
    note: str | None = Field(
        default=None,
        description="Why the file was parked, when it lost an identity collision",
    )

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def best_suggestion(self) -> Suggestion | None:
        return self.suggestions[0] if self.suggestions else None

    @property
    def has_strong_suggestion(self) -> bool:
        best = self.best_suggestion
        return best is not None and best.is_strong


class LoadState(str, Enum):
    """Engine state for one directory-load cycle."""

    IDLE = "idle"
    ROSTER_LOADING = "roster_loading"
    RECONCILING = "reconciling"
    LOADED = "loaded"
    FAILED = "failed"


class ReconciliationSnapshot(BaseModel):
    """Committed result of a reconciliation pass.

    Replaced wholesale, never mutated, so readers always see one
    consistent pass.
    """

    model_config = ConfigDict(frozen=True)

    directory: Path | None = None
    resolved: tuple[PhotoRecord, ...] = ()
    unresolved: tuple[UnresolvedFile, ...] = ()


class ReconciliationResult(BaseModel):
    """Outcome of a full pass, reported to the caller."""

    success: bool
    state: LoadState
    reason: str | None = Field(
        default=None, description="Human-readable failure reason"
    )
    resolved_count: int = 0
    unresolved_count: int = 0
