"""IdentityResolver runs a photo filename through the match stages.

Resolution pipeline (in order, first hit wins):
1. Override lookup (user-confirmed filename -> roster name)
2. Exact match (squashed filename == squashed roster name)
3. Fuzzy auto-accept (Levenshtein distance <= 3)
4. Unresolved, with ranked suggestions for review
"""

from dataclasses import dataclass
from typing import Protocol

from src.identity.fuzzy_matcher import FuzzyMatcher
from src.identity.normalizer import squash_filename
from src.identity.roster_index import RosterIndex
from src.identity.schemas import Identity, ResolutionSource, Suggestion
from src.repositories.override_repo import OverrideRepository


@dataclass(frozen=True)
class StageMatch:
    """A stage's answer: who the photo is and how we know."""

    identity: Identity
    source: ResolutionSource


class ResolverStage(Protocol):
    """One step of the pipeline. Returns a match or None to defer."""

    def resolve(
        self, filename: str, squashed: str, roster: RosterIndex
    ) -> StageMatch | None: ...


class OverrideStage:
    """User overrides win unconditionally, even over an exact match."""

    def __init__(self, overrides: OverrideRepository):
        self._overrides = overrides

    def resolve(
        self, filename: str, squashed: str, roster: RosterIndex
    ) -> StageMatch | None:
        roster_name = self._overrides.get(filename)
        if roster_name is None:
            return None
        return StageMatch(
            identity=Identity.from_roster_name(roster_name),
            source=ResolutionSource.OVERRIDE,
        )


class ExactStage:
    def resolve(
        self, filename: str, squashed: str, roster: RosterIndex
    ) -> StageMatch | None:
        roster_name = roster.lookup_exact(squashed)
        if roster_name is None:
            return None
        return StageMatch(
            identity=Identity.from_roster_name(roster_name),
            source=ResolutionSource.EXACT,
        )


class FuzzyStage:
    """Auto-accepts the closest roster name when it is a strong match."""

    def __init__(self, matcher: FuzzyMatcher):
        self._matcher = matcher

    def resolve(
        self, filename: str, squashed: str, roster: RosterIndex
    ) -> StageMatch | None:
        best = self._matcher.find_best_match(squashed, roster.squashed_to_original)
        if best is None:
            return None
        return StageMatch(identity=best.identity, source=ResolutionSource.FUZZY)


@dataclass(frozen=True)
class Resolution:
    """Result of running one filename through the pipeline."""

    match: StageMatch | None
    suggestions: tuple[Suggestion, ...] = ()

    @property
    def is_resolved(self) -> bool:
        return self.match is not None


class IdentityResolver:
    """Orchestrates the ordered resolver stages.

    The stage list is explicit so tests (and settings) can drop or
    reorder stages, e.g. build without FuzzyStage to leave strong
    candidates for manual review.
    """

    def __init__(
        self,
        stages: list[ResolverStage],
        fuzzy_matcher: FuzzyMatcher,
    ):
        """Initialize resolver.

        Args:
            stages: Stages tried in order until one returns a match
            fuzzy_matcher: Ranks suggestions when every stage defers
        """
        self._stages = list(stages)
        self._fuzzy = fuzzy_matcher

    @classmethod
    def default(
        cls,
        overrides: OverrideRepository,
        fuzzy_matcher: FuzzyMatcher | None = None,
        auto_accept_strong_matches: bool = True,
    ) -> "IdentityResolver":
        """Build the standard override -> exact -> fuzzy pipeline.

        Args:
            overrides: Manual override repository
            fuzzy_matcher: Matcher to use (default FuzzyMatcher())
            auto_accept_strong_matches: Include the fuzzy auto-accept stage
        """
        matcher = fuzzy_matcher or FuzzyMatcher()
        stages: list[ResolverStage] = [OverrideStage(overrides), ExactStage()]
        if auto_accept_strong_matches:
            stages.append(FuzzyStage(matcher))
        return cls(stages, matcher)

    @property
    def stages(self) -> list[ResolverStage]:
        return list(self._stages)

    def resolve(self, filename: str, roster: RosterIndex) -> Resolution:
        """Resolve a photo filename against the roster.

        Args:
            filename: Photo filename (no directory)
            roster: Current roster index

        Returns:
            Resolution with the first stage match, or the top ranked
            suggestions when no stage matched (empty for an empty roster)
        """
        squashed = squash_filename(filename)
        for stage in self._stages:
            match = stage.resolve(filename, squashed, roster)
            if match is not None:
                return Resolution(match=match)

        suggestions = self._fuzzy.rank(squashed, roster.squashed_to_original)
        return Resolution(match=None, suggestions=tuple(suggestions))
