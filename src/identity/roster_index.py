"""Index of roster identities keyed by squashed name."""

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from src.identity.normalizer import squash_roster_name

logger = logging.getLogger(__name__)


class RosterIndex:
    """Known identities for one images directory.

    Two roster entries that squash to the same key shadow each other:
    the later entry replaces the earlier one's value, and the key keeps
    its original position in iteration order.
    """

    def __init__(self) -> None:
        self._squashed_to_original: dict[str, str] = {}
        self._ordered_names: list[str] = []
        self._shadowed: list[str] = []

    @classmethod
    def build(cls, names: Iterable[str]) -> "RosterIndex":
        """Build an index from raw roster strings.

        Args:
            names: Values from the roster's Name column, in sheet order

        Returns:
            Populated index. Blank values are skipped.
        """
        index = cls()
        for raw in names:
            name = (raw or "").strip()
            if not name:
                continue
            index._ordered_names.append(name)
            squashed = squash_roster_name(name)
            previous = index._squashed_to_original.get(squashed)
            if previous is not None and previous != name:
                index._shadowed.append(previous)
                logger.warning(
                    f"Roster entry '{previous}' is shadowed by '{name}' "
                    f"(both squash to '{squashed}')"
                )
            index._squashed_to_original[squashed] = name

        logger.info(f"Indexed {len(index._ordered_names)} roster names")
        return index

    def lookup_exact(self, squashed_key: str) -> str | None:
        """Original roster name for a squashed key, or None."""
        return self._squashed_to_original.get(squashed_key.lower())

    @property
    def squashed_to_original(self) -> Mapping[str, str]:
        """Read-only view of squashed key -> original roster name."""
        return MappingProxyType(self._squashed_to_original)

    @property
    def ordered_roster_names(self) -> list[str]:
        """Roster names in sheet order, duplicates included."""
        return list(self._ordered_names)

    @property
    def shadowed_names(self) -> list[str]:
        """Entries hidden by a later entry with the same squashed key."""
        return list(self._shadowed)

    @property
    def is_empty(self) -> bool:
        return not self._ordered_names

    def __len__(self) -> int:
        return len(self._ordered_names)
