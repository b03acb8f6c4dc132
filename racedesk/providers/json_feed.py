"""Generic JSON feed provider.

Expects a base URL serving JSON arrays at:

    {base}/entrants/{date}/{venue}/{race}
    {base}/ratings/{date}/{venue}
    {base}/market/{date}/{venue}/{race}
    {base}/scratchings/{date}/{venue}
    {base}/results/{date}/{venue}
    {base}/weather?track=&start=&end=

``venue`` is the slug from ``venue_slug``. Keys may be camelCase or
snake_case; only the fields matching and scoring need are read. A 404 on
any endpoint means the feed has nothing for that stream.
"""

import logging
from datetime import date, datetime
from typing import Any, Optional

from racedesk.errors import ProviderError
from racedesk.providers.base import BaseProvider
from racedesk.records import RawRunnerRecord, ResultRecord, ScratchingRecord, WeatherObservation
from racedesk.venues import venue_slug

logger = logging.getLogger(__name__)


def _pick(item: dict, *keys: str) -> Any:
    """First present, non-empty value among ``keys``."""
    for key in keys:
        value = item.get(key)
        if value is not None and value != "":
            return value
    return None


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable timestamp: {value!r}")
        return None


class JsonFeedProvider(BaseProvider):
    """Reads one upstream source from a JSON-over-HTTP feed."""

    def __init__(self, name: str, base_url: str, timeout: float = 15.0):
        super().__init__(name=name, timeout=timeout)
        if not base_url:
            raise ValueError(f"Provider '{name}' needs a base_url")
        self.base_url = base_url.rstrip("/")

    async def _rows(self, path: str, params: Optional[dict] = None) -> list[dict]:
        data = await self.fetch_json(f"{self.base_url}/{path}", params=params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ProviderError(f"{self.name}: expected a JSON array from /{path}")
        return [row for row in data if isinstance(row, dict)]

    def _runner(self, row: dict, race_date: date, track: str, race_number: Optional[int]) -> RawRunnerRecord:
        return RawRunnerRecord(
            provider=self.name,
            track=self.clean_text(_pick(row, "track", "venue")) or track,
            race_number=self.parse_int(_pick(row, "raceNumber", "race_number")) or race_number,
            horse_name=self.clean_text(_pick(row, "horseName", "horse_name", "name")),
            tab_number=self.parse_int(_pick(row, "tabNumber", "tab_number", "saddlecloth")),
            jockey=self.clean_text(_pick(row, "jockey")),
            trainer=self.clean_text(_pick(row, "trainer")),
            rating=self.parse_float(_pick(row, "rating")),
            price=self.parse_odds(_pick(row, "price")),
            win_price=self.parse_odds(_pick(row, "winPrice", "win_price")),
            place_price=self.parse_odds(_pick(row, "placePrice", "place_price")),
            runner_id=self._str_id(_pick(row, "runnerId", "runner_id")),
            race_id=self._str_id(_pick(row, "raceId", "race_id")),
            race_date=race_date,
        )

    @staticmethod
    def _str_id(value: Any) -> Optional[str]:
        return str(value) if value is not None else None

    async def fetch_entrants(
        self, race_date: date, track: str, race_number: int
    ) -> list[RawRunnerRecord]:
        rows = await self._rows(f"entrants/{race_date.isoformat()}/{venue_slug(track)}/{race_number}")
        return [self._runner(r, race_date, track, race_number) for r in rows]

    async def fetch_ratings(self, race_date: date, track: str) -> list[RawRunnerRecord]:
        rows = await self._rows(f"ratings/{race_date.isoformat()}/{venue_slug(track)}")
        return [self._runner(r, race_date, track, None) for r in rows]

    async def fetch_market(
        self, race_date: date, track: str, race_number: int
    ) -> list[RawRunnerRecord]:
        rows = await self._rows(f"market/{race_date.isoformat()}/{venue_slug(track)}/{race_number}")
        return [self._runner(r, race_date, track, race_number) for r in rows]

    async def fetch_scratchings(self, race_date: date, track: str) -> list[ScratchingRecord]:
        rows = await self._rows(f"scratchings/{race_date.isoformat()}/{venue_slug(track)}")
        return [
            ScratchingRecord(
                track=self.clean_text(_pick(r, "track", "venue")) or track,
                race_number=self.parse_int(_pick(r, "raceNumber", "race_number")),
                horse_name=self.clean_text(_pick(r, "horseName", "horse_name", "name")),
                tab_number=self.parse_int(_pick(r, "tabNumber", "tab_number")),
                reason=self.clean_text(_pick(r, "reason")),
                timestamp=_parse_timestamp(_pick(r, "timestamp", "scratchedAt")),
                runner_id=self._str_id(_pick(r, "runnerId", "runner_id")),
                race_id=self._str_id(_pick(r, "raceId", "race_id")),
                provider=self.name,
            )
            for r in rows
        ]

    async def fetch_results(self, race_date: date, track: str) -> list[ResultRecord]:
        rows = await self._rows(f"results/{race_date.isoformat()}/{venue_slug(track)}")
        out = []
        for r in rows:
            position = self.parse_int(_pick(r, "finishingPosition", "finishing_position", "position"))
            if not position:
                logger.debug(f"{self.name}: result row without position skipped: {r}")
                continue
            out.append(ResultRecord(
                track=self.clean_text(_pick(r, "track", "venue")) or track,
                race_number=self.parse_int(_pick(r, "raceNumber", "race_number")),
                horse_name=self.clean_text(_pick(r, "horseName", "horse_name", "name")),
                finishing_position=position,
                starting_price=self.parse_odds(_pick(r, "startingPrice", "starting_price", "sp")),
                margin_to_winner=self.parse_float(_pick(r, "marginToWinner", "margin_to_winner", "margin")),
                race_id=self._str_id(_pick(r, "raceId", "race_id")),
                runner_id=self._str_id(_pick(r, "runnerId", "runner_id")),
                tab_number=self.parse_int(_pick(r, "tabNumber", "tab_number")),
                provider=self.name,
            ))
        return out

    async def fetch_weather(
        self,
        track: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[WeatherObservation]:
        params = {}
        if track:
            params["track"] = track
        if start:
            params["start"] = start.isoformat()
        if end:
            params["end"] = end.isoformat()
        rows = await self._rows("weather", params=params or None)
        out = []
        for r in rows:
            race_date = _pick(r, "raceDate", "race_date", "date")
            try:
                race_date = date.fromisoformat(race_date) if isinstance(race_date, str) else None
            except ValueError:
                race_date = None
            out.append(WeatherObservation(
                track=self.clean_text(_pick(r, "track", "trackName", "track_name")) or (track or ""),
                race_number=self.parse_int(_pick(r, "raceNumber", "race_number")),
                race_date=race_date,
                race_id=self._str_id(_pick(r, "raceId", "race_id")),
                temperature=self.parse_float(_pick(r, "temperature")),
                wind_speed=self.parse_float(_pick(r, "windSpeed", "wind_speed")),
                wind_gust=self.parse_float(_pick(r, "windGust", "wind_gust")),
                humidity=self.parse_float(_pick(r, "humidity")),
                precipitation=self.parse_float(_pick(r, "precipitation")),
                pressure=self.parse_float(_pick(r, "pressure")),
                cloud_cover=self.parse_float(_pick(r, "cloudCover", "cloud_cover")),
                winning_time=self.parse_float(_pick(r, "winningTime", "winning_time")),
                winning_margin=self.parse_float(_pick(r, "winningMargin", "winning_margin")),
            ))
        return out
