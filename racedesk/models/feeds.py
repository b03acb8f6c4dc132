"""Stored provider feeds: runner lines, scratchings, results and race weather.

Rows keep each provider's raw view. Reconciliation never writes back here;
fused entrants are rebuilt from these rows on every request.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from racedesk.config import au_now_naive
from racedesk.models.database import Base


class ProviderRunner(Base):
    """One provider's line for one runner (ratings, prices, form fields)."""

    __tablename__ = "provider_runners"
    __table_args__ = (
        Index("ix_provider_runners_date_race", "race_date", "race_number"),
        Index("ix_provider_runners_provider", "provider"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    provider: Mapped[str] = mapped_column(String(50))
    race_date: Mapped[date] = mapped_column(Date)
    track: Mapped[str] = mapped_column(String(100))
    race_number: Mapped[int] = mapped_column(Integer)
    horse_name: Mapped[str] = mapped_column(String(100))
    tab_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    jockey: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    trainer: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    win_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    place_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    runner_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    race_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    fetched_at: Mapped[datetime] = mapped_column(DateTime, default=au_now_naive)


class Scratching(Base):
    """A withdrawal notice as published, before it is bound to an entrant."""

    __tablename__ = "scratchings"
    __table_args__ = (Index("ix_scratchings_date_race", "race_date", "race_number"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    race_date: Mapped[date] = mapped_column(Date)
    track: Mapped[str] = mapped_column(String(100))
    race_number: Mapped[int] = mapped_column(Integer)
    horse_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    tab_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    scratched_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    runner_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    race_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    source: Mapped[str] = mapped_column(String(50), default="scratchings")
    fetched_at: Mapped[datetime] = mapped_column(DateTime, default=au_now_naive)


class RunnerResult(Base):
    """Official finishing line for one runner."""

    __tablename__ = "runner_results"
    __table_args__ = (Index("ix_runner_results_date_race", "race_date", "race_number"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    race_date: Mapped[date] = mapped_column(Date)
    track: Mapped[str] = mapped_column(String(100))
    race_number: Mapped[int] = mapped_column(Integer)
    horse_name: Mapped[str] = mapped_column(String(100))
    finishing_position: Mapped[int] = mapped_column(Integer)
    starting_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    margin_to_winner: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    tab_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    runner_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    race_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    source: Mapped[str] = mapped_column(String(50), default="results")
    fetched_at: Mapped[datetime] = mapped_column(DateTime, default=au_now_naive)


class RaceWeather(Base):
    """Conditions at race time alongside the race's winning time and margin."""

    __tablename__ = "race_weather"
    __table_args__ = (
        Index("ix_race_weather_track", "track"),
        UniqueConstraint("race_date", "track", "race_number", name="uq_race_weather"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    race_date: Mapped[date] = mapped_column(Date)
    track: Mapped[str] = mapped_column(String(100))
    race_number: Mapped[int] = mapped_column(Integer)
    race_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    temperature: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    wind_speed: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # km/h
    wind_gust: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # km/h
    humidity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    precipitation: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # mm
    pressure: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # hPa
    cloud_cover: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # %
    winning_time: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # seconds
    winning_margin: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # lengths
    recorded_at: Mapped[datetime] = mapped_column(DateTime, default=au_now_naive)
