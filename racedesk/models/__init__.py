"""Database models for RaceDesk."""

from racedesk.models.database import Base, get_db, init_db
from racedesk.models.feeds import ProviderRunner, RaceWeather, RunnerResult, Scratching

__all__ = [
    "Base",
    "get_db",
    "init_db",
    "ProviderRunner",
    "RaceWeather",
    "RunnerResult",
    "Scratching",
]
