"""Adapters for external data sources.

This module provides adapters for integrating with external systems:
- RosterAdapter: Load roster names from the spreadsheet beside the photos
"""

from src.adapters.roster_adapter import RosterAdapter, RosterUnavailableError

__all__ = [
    "RosterAdapter",
    "RosterUnavailableError",
]
