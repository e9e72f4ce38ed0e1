"""Repository layer for data persistence.

Provides repository classes for persisting user-authored state.
Repositories encapsulate data access logic and provide a clean interface
for the service layer.
"""

from src.repositories.override_repo import (
    OverridePersistenceError,
    OverrideRepository,
)
from src.repositories.preferences_repo import PreferencesRepository

__all__ = [
    "OverridePersistenceError",
    "OverrideRepository",
    "PreferencesRepository",
]
