"""Record store: convert between ORM rows and core records.

Track filters go through ``tracks_match`` in Python rather than SQL equality,
since providers store the same venue under different spellings.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from racedesk.models.feeds import ProviderRunner, RaceWeather, RunnerResult, Scratching
from racedesk.records import RawRunnerRecord, ResultRecord, ScratchingRecord, WeatherObservation
from racedesk.venues import tracks_match

logger = logging.getLogger(__name__)


def _race_filter(stmt, model, race_date: Optional[date], race_number: Optional[int]):
    if race_date is not None:
        stmt = stmt.where(model.race_date == race_date)
    if race_number is not None:
        stmt = stmt.where(model.race_number == race_number)
    return stmt


def _on_track(rows, track: Optional[str]):
    if not track:
        return list(rows)
    return [r for r in rows if tracks_match(r.track, track)]


# ── Runner lines ────────────────────────────────────────────────────────────


async def save_runner_records(
    db: AsyncSession, records: Iterable[RawRunnerRecord], race_date: Optional[date] = None
) -> int:
    """Persist provider runner lines. Records without a date use ``race_date``."""
    count = 0
    for rec in records:
        day = rec.race_date or race_date
        if day is None:
            raise ValueError(f"No race date for {rec.provider} record {rec.horse_name!r}")
        db.add(ProviderRunner(
            provider=rec.provider.lower(),
            race_date=day,
            track=rec.track,
            race_number=rec.race_number,
            horse_name=rec.horse_name,
            tab_number=rec.tab_number,
            jockey=rec.jockey,
            trainer=rec.trainer,
            rating=rec.rating,
            price=rec.price,
            win_price=rec.win_price,
            place_price=rec.place_price,
            runner_id=rec.runner_id,
            race_id=rec.race_id,
        ))
        count += 1
    await db.commit()
    return count


def _runner_record(row: ProviderRunner) -> RawRunnerRecord:
    return RawRunnerRecord(
        provider=row.provider,
        track=row.track,
        race_number=row.race_number,
        horse_name=row.horse_name,
        tab_number=row.tab_number,
        jockey=row.jockey,
        trainer=row.trainer,
        rating=row.rating,
        price=row.price,
        win_price=row.win_price,
        place_price=row.place_price,
        runner_id=row.runner_id,
        race_id=row.race_id,
        race_date=row.race_date,
    )


async def load_runner_records(
    db: AsyncSession,
    race_date: date,
    track: str,
    race_number: Optional[int] = None,
    provider: Optional[str] = None,
) -> list[RawRunnerRecord]:
    stmt = _race_filter(select(ProviderRunner), ProviderRunner, race_date, race_number)
    if provider:
        stmt = stmt.where(ProviderRunner.provider == provider.lower())
    result = await db.execute(stmt.order_by(ProviderRunner.id))
    return [_runner_record(r) for r in _on_track(result.scalars().all(), track)]


async def race_numbers(db: AsyncSession, race_date: date, track: str) -> list[int]:
    """Race numbers with at least one stored runner line at this meeting."""
    result = await db.execute(
        select(ProviderRunner.track, ProviderRunner.race_number)
        .where(ProviderRunner.race_date == race_date)
        .distinct()
    )
    return sorted({num for t, num in result.all() if tracks_match(t, track)})


async def meetings_between(db: AsyncSession, start: date, end: date) -> list[tuple[date, str]]:
    """Distinct (date, track) pairs with stored runner lines, oldest first."""
    result = await db.execute(
        select(ProviderRunner.race_date, ProviderRunner.track)
        .where(ProviderRunner.race_date >= start, ProviderRunner.race_date <= end)
        .distinct()
    )
    meetings: list[tuple[date, str]] = []
    for day, track in sorted((d, t) for d, t in result.all()):
        if any(d == day and tracks_match(t, track) for d, t in meetings):
            continue
        meetings.append((day, track))
    return meetings


# ── Scratchings ─────────────────────────────────────────────────────────────


async def save_scratchings(
    db: AsyncSession, records: Iterable[ScratchingRecord], race_date: date
) -> int:
    count = 0
    for rec in records:
        db.add(Scratching(
            race_date=race_date,
            track=rec.track,
            race_number=rec.race_number,
            horse_name=rec.horse_name,
            tab_number=rec.tab_number,
            reason=rec.reason,
            scratched_at=rec.timestamp,
            runner_id=rec.runner_id,
            race_id=rec.race_id,
            source=rec.provider,
        ))
        count += 1
    await db.commit()
    return count


async def load_scratchings(
    db: AsyncSession, race_date: date, track: str, race_number: Optional[int] = None
) -> list[ScratchingRecord]:
    stmt = _race_filter(select(Scratching), Scratching, race_date, race_number)
    result = await db.execute(stmt.order_by(Scratching.id))
    return [
        ScratchingRecord(
            track=r.track,
            race_number=r.race_number,
            horse_name=r.horse_name,
            tab_number=r.tab_number,
            reason=r.reason,
            timestamp=r.scratched_at,
            runner_id=r.runner_id,
            race_id=r.race_id,
            provider=r.source,
        )
        for r in _on_track(result.scalars().all(), track)
    ]


# ── Results ─────────────────────────────────────────────────────────────────


async def save_results(db: AsyncSession, records: Iterable[ResultRecord], race_date: date) -> int:
    count = 0
    for rec in records:
        db.add(RunnerResult(
            race_date=race_date,
            track=rec.track,
            race_number=rec.race_number,
            horse_name=rec.horse_name,
            finishing_position=rec.finishing_position,
            starting_price=rec.starting_price,
            margin_to_winner=rec.margin_to_winner,
            tab_number=rec.tab_number,
            runner_id=rec.runner_id,
            race_id=rec.race_id,
            source=rec.provider,
        ))
        count += 1
    await db.commit()
    return count


async def load_results(
    db: AsyncSession, race_date: date, track: str, race_number: Optional[int] = None
) -> list[ResultRecord]:
    stmt = _race_filter(select(RunnerResult), RunnerResult, race_date, race_number)
    # Insertion order matters: the first stored result for a runner wins
    result = await db.execute(stmt.order_by(RunnerResult.id))
    return [
        ResultRecord(
            track=r.track,
            race_number=r.race_number,
            horse_name=r.horse_name,
            finishing_position=r.finishing_position,
            starting_price=r.starting_price,
            margin_to_winner=r.margin_to_winner,
            race_id=r.race_id,
            runner_id=r.runner_id,
            tab_number=r.tab_number,
            provider=r.source,
        )
        for r in _on_track(result.scalars().all(), track)
    ]


# ── Weather ─────────────────────────────────────────────────────────────────

_WEATHER_FIELDS = (
    "race_id", "temperature", "wind_speed", "wind_gust", "humidity", "precipitation",
    "pressure", "cloud_cover", "winning_time", "winning_margin",
)


async def save_weather(db: AsyncSession, observations: Iterable[WeatherObservation]) -> int:
    """Insert or update one weather row per race (date, track, race number)."""
    count = 0
    for obs in observations:
        if obs.race_date is None:
            raise ValueError(f"Weather for {obs.track} R{obs.race_number} has no race date")
        result = await db.execute(
            select(RaceWeather).where(
                RaceWeather.race_date == obs.race_date,
                RaceWeather.track == obs.track,
                RaceWeather.race_number == obs.race_number,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = RaceWeather(race_date=obs.race_date, track=obs.track, race_number=obs.race_number)
            db.add(row)
        for name in _WEATHER_FIELDS:
            value = getattr(obs, name)
            if value is not None:
                setattr(row, name, value)
        count += 1
    await db.commit()
    return count


async def load_weather(
    db: AsyncSession,
    track: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[WeatherObservation]:
    stmt = select(RaceWeather)
    if start is not None:
        stmt = stmt.where(RaceWeather.race_date >= start)
    if end is not None:
        stmt = stmt.where(RaceWeather.race_date <= end)
    result = await db.execute(stmt.order_by(RaceWeather.race_date, RaceWeather.race_number))
    return [
        WeatherObservation(
            track=r.track,
            race_number=r.race_number,
            race_date=r.race_date,
            **{name: getattr(r, name) for name in _WEATHER_FIELDS},
        )
        for r in _on_track(result.scalars().all(), track)
    ]
