"""Core record types: provider inputs and the fused entrant.

Provider records are frozen once fetched. ``FusedEntrant`` is frozen too;
every stage that changes it returns a new instance via ``dataclasses.replace``.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class RawRunnerRecord:
    """One provider's view of one runner."""

    provider: str
    track: str
    race_number: int
    horse_name: str
    tab_number: Optional[int] = None
    jockey: Optional[str] = None
    trainer: Optional[str] = None
    rating: Optional[float] = None
    price: Optional[float] = None
    win_price: Optional[float] = None
    place_price: Optional[float] = None
    runner_id: Optional[str] = None
    race_id: Optional[str] = None
    race_date: Optional[date] = None


@dataclass(frozen=True)
class ScratchingRecord:
    """A withdrawal notice. Identifies the runner by name, tab number or both."""

    track: str
    race_number: int
    horse_name: Optional[str] = None
    tab_number: Optional[int] = None
    reason: Optional[str] = None
    timestamp: Optional[datetime] = None
    runner_id: Optional[str] = None
    race_id: Optional[str] = None
    provider: str = "scratchings"


@dataclass(frozen=True)
class ResultRecord:
    """Official result line for one runner."""

    track: str
    race_number: int
    horse_name: str
    finishing_position: int
    starting_price: Optional[float] = None
    margin_to_winner: Optional[float] = None
    race_id: Optional[str] = None
    runner_id: Optional[str] = None
    tab_number: Optional[int] = None
    provider: str = "results"


@dataclass(frozen=True)
class FusedEntrant:
    """The reconciled record for one runner in one race."""

    track: str
    race_number: int
    horse_name: str
    race_date: Optional[date] = None
    race_id: Optional[str] = None
    runner_id: Optional[str] = None
    tab_number: Optional[int] = None
    jockey: Optional[str] = None
    trainer: Optional[str] = None
    model_rating: Optional[float] = None
    model_price: Optional[float] = None
    market_win_price: Optional[float] = None
    market_place_price: Optional[float] = None
    is_scratched: bool = False
    scratch_reason: Optional[str] = None
    scratch_time: Optional[datetime] = None
    finishing_position: Optional[int] = None
    starting_price: Optional[float] = None
    margin_to_winner: Optional[float] = None
    sources: tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_result(self) -> bool:
        return self.finishing_position is not None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["sources"] = list(self.sources)
        if self.race_date is not None:
            data["race_date"] = self.race_date.isoformat()
        if self.scratch_time is not None:
            data["scratch_time"] = self.scratch_time.isoformat()
        return data


@dataclass(frozen=True)
class WeatherObservation:
    """Conditions at race time joined to the race outcome."""

    track: str
    race_number: int
    race_date: Optional[date] = None
    race_id: Optional[str] = None
    temperature: Optional[float] = None
    wind_speed: Optional[float] = None  # km/h
    wind_gust: Optional[float] = None  # km/h
    humidity: Optional[float] = None
    precipitation: Optional[float] = None  # mm
    pressure: Optional[float] = None
    cloud_cover: Optional[float] = None
    winning_time: Optional[float] = None  # seconds
    winning_margin: Optional[float] = None  # lengths
