"""Identity resolution module for matching photo files to roster entries.

This module provides:
- ReconciliationEngine: Full directory passes and manual assignment
- IdentityResolver: Ordered stages (override -> exact -> fuzzy -> unresolved)
- Fuzzy name matching using RapidFuzz Levenshtein distance
- RosterIndex: Roster names keyed by squashed name
- Schemas for identities, matched photos and suggestions
"""

from src.identity.engine import DirectoryUnreadableError, ReconciliationEngine
from src.identity.fuzzy_matcher import FuzzyMatcher
from src.identity.normalizer import squash, squash_filename, squash_roster_name
from src.identity.resolver import IdentityResolver
from src.identity.roster_index import RosterIndex
from src.identity.schemas import (
    Identity,
    LoadState,
    PhotoRecord,
    ReconciliationResult,
    ResolutionSource,
    Suggestion,
    UnresolvedFile,
)

__all__ = [
    "DirectoryUnreadableError",
    "FuzzyMatcher",
    "Identity",
    "IdentityResolver",
    "LoadState",
    "PhotoRecord",
    "ReconciliationEngine",
    "ReconciliationResult",
    "ResolutionSource",
    "RosterIndex",
    "Suggestion",
    "UnresolvedFile",
    "squash",
    "squash_filename",
    "squash_roster_name",
]
