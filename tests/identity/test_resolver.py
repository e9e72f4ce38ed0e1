"""Tests for IdentityResolver."""

from pathlib import Path

import pytest

from src.identity.fuzzy_matcher import FuzzyMatcher
from src.identity.resolver import (
    ExactStage,
    FuzzyStage,
    IdentityResolver,
    OverrideStage,
)
from src.identity.roster_index import RosterIndex
from src.identity.schemas import Identity, ResolutionSource
from src.repositories.override_repo import OverrideRepository


@pytest.fixture
def roster() -> RosterIndex:
    """Sample roster for testing."""
    return RosterIndex.build(["Smith, John", "Jones, Amy", "Williams, Robert"])


@pytest.fixture
def overrides(tmp_path: Path) -> OverrideRepository:
    return OverrideRepository(tmp_path / "mappings.json")


@pytest.fixture
def resolver(overrides: OverrideRepository) -> IdentityResolver:
    """Resolver with the standard stages."""
    return IdentityResolver.default(overrides)


def test_default_stage_order(overrides: OverrideRepository):
    """Override is tried first, fuzzy last."""
    stages = IdentityResolver.default(overrides).stages

    assert [type(s) for s in stages] == [OverrideStage, ExactStage, FuzzyStage]


def test_default_without_auto_accept(overrides: OverrideRepository):
    stages = IdentityResolver.default(overrides, auto_accept_strong_matches=False).stages

    assert [type(s) for s in stages] == [OverrideStage, ExactStage]


def test_exact_match(resolver: IdentityResolver, roster: RosterIndex):
    """SmithJohn_1234.jpg resolves exactly to John Smith."""
    resolution = resolver.resolve("SmithJohn_1234.jpg", roster)

    assert resolution.is_resolved
    assert resolution.match.identity == Identity(first_name="John", last_name="Smith")
    assert resolution.match.source == ResolutionSource.EXACT
    assert resolution.suggestions == ()


def test_fuzzy_auto_accept(resolver: IdentityResolver, roster: RosterIndex):
    """One deletion (distance 1) is accepted without suggestions."""
    resolution = resolver.resolve("SmithJon_1234.jpg", roster)

    assert resolution.match.identity == Identity(first_name="John", last_name="Smith")
    assert resolution.match.source == ResolutionSource.FUZZY
    assert resolution.suggestions == ()


def test_weak_match_unresolved_with_suggestions(
    resolver: IdentityResolver, roster: RosterIndex
):
    resolution = resolver.resolve("Xyzzy_9.jpg", roster)

    assert not resolution.is_resolved
    assert len(resolution.suggestions) == 3
    assert all(not s.is_strong for s in resolution.suggestions)


def test_empty_roster_unresolved_without_suggestions(resolver: IdentityResolver):
    """An empty roster never raises and yields no suggestions."""
    resolution = resolver.resolve("SmithJohn_1234.jpg", RosterIndex.build([]))

    assert not resolution.is_resolved
    assert resolution.suggestions == ()


def test_override_beats_exact_match(
    resolver: IdentityResolver,
    roster: RosterIndex,
    overrides: OverrideRepository,
):
    """An override wins even when the filename matches another entry exactly."""
    overrides.set("SmithJohn_1234.jpg", "Jones, Amy")

    resolution = resolver.resolve("SmithJohn_1234.jpg", roster)

    assert resolution.match.identity == Identity(first_name="Amy", last_name="Jones")
    assert resolution.match.source == ResolutionSource.OVERRIDE


def test_override_not_in_roster_still_wins(
    resolver: IdentityResolver, overrides: OverrideRepository
):
    """Overrides do not depend on the roster at all."""
    overrides.set("anything.jpg", "Newcomer, Pat")

    resolution = resolver.resolve("anything.jpg", RosterIndex.build([]))

    assert resolution.match.identity == Identity(first_name="Pat", last_name="Newcomer")


def test_without_fuzzy_stage_strong_candidate_is_suggested(
    overrides: OverrideRepository, roster: RosterIndex
):
    """Dropping FuzzyStage leaves strong candidates for review."""
    resolver = IdentityResolver(
        [OverrideStage(overrides), ExactStage()], FuzzyMatcher()
    )

    resolution = resolver.resolve("SmithJon_1234.jpg", roster)

    assert not resolution.is_resolved
    assert resolution.suggestions[0].roster_name == "Smith, John"
    assert resolution.suggestions[0].is_strong
