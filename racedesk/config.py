"""Application configuration using Pydantic settings."""

from datetime import date, datetime
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

AU_TZ = ZoneInfo("Australia/Sydney")


def au_now() -> datetime:
    """Current time in Sydney (AEDT/AEST automatically)."""
    return datetime.now(AU_TZ)


def au_now_naive() -> datetime:
    """Current Sydney time as naive datetime (for SQLAlchemy defaults).

    SQLite doesn't handle timezone-aware datetimes well, so we store
    Sydney local time as naive datetime.
    """
    return au_now().replace(tzinfo=None)


def au_today() -> date:
    """Today's date in Sydney, which is the race-date calendar providers use."""
    return au_now().date()


# Ordered upper bounds per weather metric. A value falls in the first bin whose
# bound it is below; anything above the last bound lands in the open top bin.
DEFAULT_WEATHER_BINS: dict[str, list[float]] = {
    "wind_speed": [15.0, 30.0, 45.0],
    "temperature": [10.0, 20.0, 30.0],
    "humidity": [40.0, 60.0, 80.0],
    "precipitation": [0.5, 2.0, 5.0],
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RACEDESK_",
        extra="ignore",
    )

    # Database
    db_path: Path = Path("./data/racedesk.db")

    # App
    debug: bool = False
    log_level: str = "INFO"

    # Reconciliation: first entry is the backbone provider, the rest fill
    # empty fields in this order.
    provider_precedence: list[str] = ["puntingform", "rvo", "ttr", "tab"]
    match_min_containment: int = 4

    # Value scoring
    value_threshold: float = 25.0
    fair_value_threshold: float = 15.0

    # Staking simulation
    stake: float = 10.0
    staking_mode: str = "win"  # win, place
    place_divisor: float = 4.0
    place_cutoff: int = 3

    # Weather correlation
    min_sample_size: int = 10
    significance_r: float = 0.3
    significance_n: int = 30
    weather_bins: dict[str, list[float]] = DEFAULT_WEATHER_BINS

    # Provider feeds
    feed_base_url: str = ""
    feed_timeout: float = 15.0

    @field_validator("provider_precedence")
    @classmethod
    def _precedence_not_empty(cls, value: list[str]) -> list[str]:
        cleaned = [p.strip().lower() for p in value if p and p.strip()]
        if not cleaned:
            raise ValueError("provider_precedence needs at least a backbone provider")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError(f"provider_precedence has duplicates: {cleaned}")
        return cleaned

    @field_validator("staking_mode")
    @classmethod
    def _known_mode(cls, value: str) -> str:
        mode = value.strip().lower()
        if mode not in ("win", "place"):
            raise ValueError(f"staking_mode must be 'win' or 'place', got {value!r}")
        return mode

    @field_validator("weather_bins")
    @classmethod
    def _bins_ascending(cls, value: dict[str, list[float]]) -> dict[str, list[float]]:
        for metric, bounds in value.items():
            if list(bounds) != sorted(bounds) or len(set(bounds)) != len(bounds):
                raise ValueError(f"weather_bins[{metric}] must be strictly ascending")
        return value

    @property
    def backbone_provider(self) -> str:
        return self.provider_precedence[0]

    @property
    def database_url(self) -> str:
        """SQLite database URL for SQLAlchemy."""
        return f"sqlite+aiosqlite:///{self.db_path}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Export for convenience
settings = get_settings()
