"""Fuzzy name matching using RapidFuzz.

Scores squashed filename keys against squashed roster keys with
Levenshtein edit distance. Distances of 3 or less are strong matches.
"""

from collections.abc import Mapping

from rapidfuzz.distance import Levenshtein

from src.identity.schemas import STRONG_MATCH_THRESHOLD, MatchStrength, Suggestion

MAX_SUGGESTIONS = 5


class FuzzyMatcher:
    """Edit-distance matcher for squashed name keys.

    Ranking is stable: equal distances keep the candidate mapping's
    iteration order, they are not re-sorted by name.
    """

    def __init__(self, max_suggestions: int = MAX_SUGGESTIONS):
        """Initialize matcher.

        Args:
            max_suggestions: Cap on ranked suggestions returned by rank()
        """
        self._limit = max_suggestions

    @staticmethod
    def distance(a: str, b: str) -> int:
        """Levenshtein distance between two squashed keys."""
        return Levenshtein.distance(a, b)

    @staticmethod
    def classify(distance: int) -> MatchStrength:
        if distance <= STRONG_MATCH_THRESHOLD:
            return MatchStrength.STRONG
        return MatchStrength.WEAK

    def rank(
        self,
        target: str,
        candidates: Mapping[str, str],
    ) -> list[Suggestion]:
        """Rank roster candidates by distance to a squashed filename.

        Args:
            target: Squashed name from the filename (e.g. "smithjohn")
            candidates: Squashed roster key -> original roster name

        Returns:
            Up to max_suggestions suggestions, best first.
            Empty if there are no candidates.
        """
        if not candidates:
            return []

        key = target.lower()
        scored = [
            Suggestion(roster_name=original, distance=self.distance(key, squashed))
            for squashed, original in candidates.items()
        ]
        # sorted() is stable, so ties stay in mapping order
        scored.sort(key=lambda s: s.distance)
        return scored[: self._limit]

    def find_best_match(
        self,
        target: str,
        candidates: Mapping[str, str],
    ) -> Suggestion | None:
        """Best candidate if it is a strong match.

        Args:
            target: Squashed name from the filename
            candidates: Squashed roster key -> original roster name

        Returns:
            The top suggestion when its distance is <= 3, otherwise None
        """
        ranked = self.rank(target, candidates)
        if ranked and ranked[0].is_strong:
            return ranked[0]
        return None
