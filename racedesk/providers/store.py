"""Provider backed by the local record store."""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from racedesk import store
from racedesk.providers.base import BaseProvider
from racedesk.records import RawRunnerRecord, ResultRecord, ScratchingRecord, WeatherObservation

logger = logging.getLogger(__name__)


class StoreProvider(BaseProvider):
    """Replays stored feeds.

    Runner lines keep the provider name they were saved under, so one
    StoreProvider can stand in for every upstream source of a past meeting.
    """

    name = "store"

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        super().__init__()
        if session_factory is None:
            from racedesk.models.database import async_session

            session_factory = async_session
        self.session_factory = session_factory

    async def fetch_entrants(
        self, race_date: date, track: str, race_number: int
    ) -> list[RawRunnerRecord]:
        async with self.session_factory() as db:
            records = await store.load_runner_records(db, race_date, track, race_number)
        logger.debug(f"Store: {len(records)} runner lines for {track} R{race_number} {race_date}")
        return records

    async def fetch_scratchings(self, race_date: date, track: str) -> list[ScratchingRecord]:
        async with self.session_factory() as db:
            return await store.load_scratchings(db, race_date, track)

    async def fetch_results(self, race_date: date, track: str) -> list[ResultRecord]:
        async with self.session_factory() as db:
            return await store.load_results(db, race_date, track)

    async def fetch_weather(
        self,
        track: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[WeatherObservation]:
        async with self.session_factory() as db:
            return await store.load_weather(db, track=track, start=start, end=end)

    async def race_numbers(self, race_date: date, track: str) -> list[int]:
        async with self.session_factory() as db:
            return await store.race_numbers(db, race_date, track)

    async def meetings_between(self, start: date, end: date) -> list[tuple[date, str]]:
        async with self.session_factory() as db:
            return await store.meetings_between(db, start, end)
