"""Base provider class: read-only fetches returning core records."""

import logging
from datetime import date
from typing import Any, Optional

import httpx

from racedesk.errors import ProviderError
from racedesk.records import RawRunnerRecord, ResultRecord, ScratchingRecord, WeatherObservation

logger = logging.getLogger(__name__)


class BaseProvider:
    """Base class for all providers.

    Every fetch defaults to "nothing to report" so a provider only overrides
    the streams it actually carries (a ratings feed has no scratchings, a
    results feed no prices). Timeouts and retries live here, not in the core.
    """

    name: str = "base"

    DEFAULT_HEADERS = {
        "User-Agent": "racedesk/0.1 (+https://github.com/racedesk)",
        "Accept": "application/json",
        "Accept-Language": "en-AU,en;q=0.9",
    }

    def __init__(self, name: Optional[str] = None, timeout: float = 15.0):
        """Initialize provider; the HTTP client is created on first use."""
        if name:
            self.name = name.lower()
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self.DEFAULT_HEADERS,
                timeout=self.timeout,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_json(self, url: str, params: Optional[dict] = None) -> Any:
        """GET ``url`` and decode JSON. A 404 means "no data" and returns None."""
        try:
            logger.info(f"Fetching: {url}")
            response = await self.client.get(url, params=params)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error fetching {url}: {e}")
            raise ProviderError(f"HTTP {e.response.status_code}: {url}")
        except httpx.RequestError as e:
            logger.error(f"Request error fetching {url}: {e}")
            raise ProviderError(f"Request failed: {url}")
        except ValueError as e:
            logger.error(f"Invalid JSON from {url}: {e}")
            raise ProviderError(f"Invalid JSON: {url}")

    # ── Streams ─────────────────────────────────────────────────────────────

    async def fetch_entrants(
        self, race_date: date, track: str, race_number: int
    ) -> list[RawRunnerRecord]:
        """Field list for one race (backbone providers)."""
        return []

    async def fetch_ratings(self, race_date: date, track: str) -> list[RawRunnerRecord]:
        """Model ratings and prices for a whole meeting."""
        return []

    async def fetch_market(
        self, race_date: date, track: str, race_number: int
    ) -> list[RawRunnerRecord]:
        """Win/place market prices for one race."""
        return []

    async def fetch_scratchings(self, race_date: date, track: str) -> list[ScratchingRecord]:
        return []

    async def fetch_results(self, race_date: date, track: str) -> list[ResultRecord]:
        return []

    async def fetch_weather(
        self,
        track: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[WeatherObservation]:
        return []

    # ── Parsing helpers ─────────────────────────────────────────────────────

    @staticmethod
    def clean_text(text: Optional[str]) -> Optional[str]:
        """Clean and normalize text."""
        if text is None:
            return None
        cleaned = " ".join(str(text).strip().split())
        return cleaned or None

    @staticmethod
    def parse_odds(value: Any) -> Optional[float]:
        """Parse "$3.40" / "3.4" / 3.4 to float; non-positive odds are None."""
        if value is None or value == "":
            return None
        try:
            if isinstance(value, str):
                value = value.replace("$", "").replace(",", "").strip()
            odds = float(value)
        except (TypeError, ValueError):
            return None
        return odds if odds > 0 else None

    @staticmethod
    def parse_int(value: Any) -> Optional[int]:
        if value is None or value == "" or isinstance(value, bool):
            return None
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return None

    @staticmethod
    def parse_float(value: Any) -> Optional[float]:
        if value is None or value == "" or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None
