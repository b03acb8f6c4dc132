"""Upstream data providers."""

from racedesk.providers.base import BaseProvider
from racedesk.providers.json_feed import JsonFeedProvider
from racedesk.providers.store import StoreProvider

__all__ = [
    "BaseProvider",
    "JsonFeedProvider",
    "StoreProvider",
]
