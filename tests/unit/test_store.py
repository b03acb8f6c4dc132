"""Tests for the record store helpers."""

from datetime import date, datetime

import pytest
from sqlalchemy import func, select

from racedesk import store
from racedesk.models.feeds import RaceWeather
from racedesk.records import RawRunnerRecord, ResultRecord, ScratchingRecord, WeatherObservation

RACE_DATE = date(2026, 2, 7)


class TestRunnerRecords:
    @pytest.mark.asyncio
    async def test_round_trip(self, db_session, rosehill_r5_records):
        saved = await store.save_runner_records(db_session, rosehill_r5_records, race_date=RACE_DATE)
        assert saved == len(rosehill_r5_records)

        loaded = await store.load_runner_records(db_session, RACE_DATE, "Rosehill", 5)
        assert len(loaded) == len(rosehill_r5_records)
        dtm = next(r for r in loaded if r.provider == "rvo" and r.horse_name == "Dont Tell Me")
        assert dtm.rating == 118.0
        assert dtm.price == 3.40
        assert dtm.race_date == RACE_DATE

    @pytest.mark.asyncio
    async def test_track_alias_filter(self, db_session, rosehill_r5_records):
        await store.save_runner_records(db_session, rosehill_r5_records, race_date=RACE_DATE)
        loaded = await store.load_runner_records(db_session, RACE_DATE, "Rosehill Gardens", 5)
        assert len(loaded) == len(rosehill_r5_records)
        assert await store.load_runner_records(db_session, RACE_DATE, "Randwick", 5) == []

    @pytest.mark.asyncio
    async def test_provider_filter(self, db_session, rosehill_r5_records):
        await store.save_runner_records(db_session, rosehill_r5_records, race_date=RACE_DATE)
        loaded = await store.load_runner_records(db_session, RACE_DATE, "Rosehill", provider="TAB")
        assert {r.provider for r in loaded} == {"tab"}

    @pytest.mark.asyncio
    async def test_requires_date(self, db_session):
        with pytest.raises(ValueError):
            await store.save_runner_records(db_session, [RawRunnerRecord("rvo", "Rosehill", 5, "Zaaki")])

    @pytest.mark.asyncio
    async def test_race_numbers_and_meetings(self, db_session):
        records = [
            RawRunnerRecord("puntingform", "Rosehill", 1, "A", race_date=RACE_DATE),
            RawRunnerRecord("puntingform", "Rosehill", 3, "B", race_date=RACE_DATE),
            RawRunnerRecord("tab", "Rosehill Gardens", 2, "C", race_date=RACE_DATE),
            RawRunnerRecord("puntingform", "Randwick", 1, "D", race_date=RACE_DATE),
            RawRunnerRecord("puntingform", "Randwick", 1, "E", race_date=date(2026, 3, 1)),
        ]
        await store.save_runner_records(db_session, records)

        assert await store.race_numbers(db_session, RACE_DATE, "Rosehill") == [1, 2, 3]
        meetings = await store.meetings_between(db_session, date(2026, 2, 1), date(2026, 2, 28))
        assert len(meetings) == 2
        assert "Randwick" in {m[1] for m in meetings}


class TestOverlayFeeds:
    @pytest.mark.asyncio
    async def test_scratchings(self, db_session, dont_tell_me_scratching):
        await store.save_scratchings(db_session, [dont_tell_me_scratching], RACE_DATE)
        loaded = await store.load_scratchings(db_session, RACE_DATE, "Rosehill Gardens")
        assert loaded == [dont_tell_me_scratching]

    @pytest.mark.asyncio
    async def test_results_keep_insertion_order(self, db_session, rosehill_r5_results):
        late = ResultRecord("Rosehill", 5, "Zaaki", finishing_position=2)
        await store.save_results(db_session, rosehill_r5_results + [late], RACE_DATE)
        loaded = await store.load_results(db_session, RACE_DATE, "Rosehill", 5)
        assert loaded[0] == rosehill_r5_results[0]
        assert loaded[-1] == late

    @pytest.mark.asyncio
    async def test_tab_only_scratching(self, db_session):
        rec = ScratchingRecord("Rosehill", 5, tab_number=7, reason="Vet", timestamp=datetime(2026, 2, 7, 9, 0))
        await store.save_scratchings(db_session, [rec], RACE_DATE)
        assert (await store.load_scratchings(db_session, RACE_DATE, "Rosehill", 5))[0].tab_number == 7


class TestWeather:
    @pytest.mark.asyncio
    async def test_upsert_per_race(self, db_session):
        first = WeatherObservation("Randwick", 1, race_date=RACE_DATE, wind_speed=20.0)
        second = WeatherObservation("Randwick", 1, race_date=RACE_DATE, winning_time=71.2)
        await store.save_weather(db_session, [first])
        await store.save_weather(db_session, [second])

        count = (await db_session.execute(select(func.count()).select_from(RaceWeather))).scalar()
        assert count == 1
        (obs,) = await store.load_weather(db_session)
        assert obs.wind_speed == 20.0
        assert obs.winning_time == 71.2

    @pytest.mark.asyncio
    async def test_filters(self, db_session):
        await store.save_weather(db_session, [
            WeatherObservation("Randwick", 1, race_date=date(2026, 1, 10), temperature=20.0),
            WeatherObservation("Rosehill Gardens", 1, race_date=date(2026, 1, 11), temperature=22.0),
            WeatherObservation("Rosehill", 2, race_date=date(2026, 2, 11), temperature=25.0),
        ])
        assert len(await store.load_weather(db_session, track="Rosehill")) == 2
        assert len(await store.load_weather(db_session, start=date(2026, 2, 1))) == 1
        assert len(await store.load_weather(db_session, end=date(2026, 1, 10))) == 1

    @pytest.mark.asyncio
    async def test_requires_date(self, db_session):
        with pytest.raises(ValueError):
            await store.save_weather(db_session, [WeatherObservation("Randwick", 1)])
