"""RaceDesk: the core API over providers.

Fetches every provider for a race concurrently, waits for all of them, then
hands the buffered records to the pure reconciliation pipeline. A provider
that fails is logged and recorded as an issue on the race; it contributes no
records and never takes the race down with it.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from typing import Iterable, Optional, Sequence

from racedesk.analysis.weather import (
    OUTCOME_TARGETS,
    WEATHER_METRICS,
    Bucket,
    CorrelationConfig,
    CorrelationResult,
    bucket_analysis,
    correlate,
    correlation_matrix,
)
from racedesk.config import Settings, settings as default_settings
from racedesk.errors import IssueKind, MissingRequiredField, RecordIssue
from racedesk.providers.base import BaseProvider
from racedesk.records import (
    FusedEntrant,
    RawRunnerRecord,
    ResultRecord,
    ScratchingRecord,
    WeatherObservation,
)
from racedesk.reconcile.batch import PipelineOptions, RaceInput, RaceReport, process_race, reconcile_many
from racedesk.scoring.staking import SimulationSummary, StakingConfig, simulate, simulate_settled
from racedesk.scoring.value import score
from racedesk.venues import tracks_match

logger = logging.getLogger(__name__)


@dataclass
class ProviderFetch:
    """What one provider returned for one race."""

    provider: str
    runners: list[RawRunnerRecord] = field(default_factory=list)
    scratchings: list[ScratchingRecord] = field(default_factory=list)
    results: list[ResultRecord] = field(default_factory=list)
    issues: list[RecordIssue] = field(default_factory=list)
    unnumbered: list[RecordIssue] = field(default_factory=list)  # meeting-wide streams


def _for_race(records, track: str, race_number: int) -> list:
    return [r for r in records if r.race_number == race_number and tracks_match(r.track, track)]


def _has_race_number(record) -> bool:
    number = record.race_number
    return isinstance(number, int) and not isinstance(number, bool) and number > 0


def _unnumbered(records, track: str, stage: str, provider: str) -> list[RecordIssue]:
    """MISSING_FIELD issues for records at this meeting that name no race."""
    issues = []
    for record in records:
        if _has_race_number(record) or not tracks_match(record.track, track):
            continue
        name = record.horse_name
        issues.append(RecordIssue(
            kind=IssueKind.MISSING_FIELD,
            stage=stage,
            provider=provider,
            horse_name=name if isinstance(name, str) else None,
            tab_number=record.tab_number,
            detail=str(MissingRequiredField("race_number", record)),
        ))
        logger.warning(f"Rejected {provider} {stage} record {name!r} at {track}: no race number")
    return issues


class RaceDesk:
    """Reconcile, score, simulate and correlate over a set of providers."""

    def __init__(
        self,
        providers: Sequence[BaseProvider],
        config: Optional[Settings] = None,
        max_workers: int = 4,
    ):
        self.providers = list(providers)
        self.config = config or default_settings
        self.max_workers = max_workers
        self.options = PipelineOptions(
            precedence=list(self.config.provider_precedence),
            min_containment=self.config.match_min_containment,
            value_threshold=self.config.value_threshold,
        )

    async def close(self) -> None:
        for provider in self.providers:
            await provider.close()

    # ── Fetching ────────────────────────────────────────────────────────────

    async def _fetch_provider(
        self, provider: BaseProvider, race_date: date, track: str, race_number: int
    ) -> ProviderFetch:
        entrants, ratings, market, scratchings, results = await asyncio.gather(
            provider.fetch_entrants(race_date, track, race_number),
            provider.fetch_ratings(race_date, track),
            provider.fetch_market(race_date, track, race_number),
            provider.fetch_scratchings(race_date, track),
            provider.fetch_results(race_date, track),
        )
        race_lines = list(entrants) + list(market)
        runners = race_lines + list(ratings)
        return ProviderFetch(
            provider=provider.name,
            runners=[r for r in runners if _has_race_number(r)],
            scratchings=_for_race(scratchings, track, race_number),
            results=_for_race(results, track, race_number),
            issues=_unnumbered(race_lines, track, "reconcile", provider.name),
            unnumbered=(
                _unnumbered(ratings, track, "reconcile", provider.name)
                + _unnumbered(scratchings, track, "scratching", provider.name)
                + _unnumbered(results, track, "result", provider.name)
            ),
        )

    async def gather_race(
        self, race_date: date, track: str, race_number: int, include_unnumbered: bool = True
    ) -> RaceInput:
        """Fetch every provider for one race and buffer the records.

        Records that carry no race number cannot belong to any one race and
        are reported as MISSING_FIELD issues. Those from meeting-wide streams
        (ratings, scratchings, results) are left out when
        ``include_unnumbered`` is off, which ``reconcile_meeting`` uses
        so each is reported once per meeting rather than once per race.
        """
        fetched = await asyncio.gather(
            *(self._fetch_provider(p, race_date, track, race_number) for p in self.providers),
            return_exceptions=True,
        )

        runners: list[RawRunnerRecord] = []
        scratchings: list[ScratchingRecord] = []
        results: list[ResultRecord] = []
        issues: list[RecordIssue] = []

        for provider, outcome in zip(self.providers, fetched):
            if isinstance(outcome, BaseException):
                logger.error(
                    f"Provider {provider.name} failed for {track} R{race_number} {race_date}: {outcome}"
                )
                issues.append(RecordIssue(
                    kind=IssueKind.FAILED,
                    stage="provider",
                    provider=provider.name,
                    detail=str(outcome) or type(outcome).__name__,
                ))
                continue
            runners.extend(outcome.runners)
            scratchings.extend(outcome.scratchings)
            results.extend(outcome.results)
            issues.extend(outcome.issues)
            if include_unnumbered:
                issues.extend(outcome.unnumbered)

        return RaceInput(
            race_date=race_date,
            track=track,
            race_number=race_number,
            runners=tuple(runners),
            scratchings=tuple(scratchings),
            results=tuple(results),
            issues=tuple(issues),
        )

    # ── Reconciliation ──────────────────────────────────────────────────────

    async def report(self, race_date: date, track: str, race_number: int) -> RaceReport:
        """Full report for one race: entrants, issues and status."""
        race = await self.gather_race(race_date, track, race_number)
        return process_race(race, self.options)

    async def reconcile(self, race_date: date, track: str, race_number: int) -> list[FusedEntrant]:
        """Fused entrants for one race, with scratchings and results applied."""
        return list((await self.report(race_date, track, race_number)).entrants)

    async def race_numbers(self, race_date: date, track: str) -> list[int]:
        """Race numbers known to any provider that can list them."""
        numbers: set[int] = set()
        for provider in self.providers:
            lister = getattr(provider, "race_numbers", None)
            if lister is not None:
                numbers.update(await lister(race_date, track))
        return sorted(numbers)

    async def reconcile_meeting(
        self, race_date: date, track: str, race_numbers: Optional[Iterable[int]] = None
    ) -> dict[int, RaceReport]:
        """Reports for every race of a meeting, keyed by race number."""
        numbers = sorted(set(race_numbers)) if race_numbers else await self.race_numbers(race_date, track)
        if not numbers:
            logger.info(f"No races found for {track} on {race_date}")
            return {}

        races = await asyncio.gather(*(
            self.gather_race(race_date, track, n, include_unnumbered=(n == numbers[0]))
            for n in numbers
        ))
        reports = await asyncio.to_thread(reconcile_many, races, self.options, self.max_workers)
        return {race.race_number: reports[race.key] for race in races}

    # ── Valuation ───────────────────────────────────────────────────────────

    def score(self, entrant: FusedEntrant) -> float:
        return score(entrant)

    def staking_config(self, **overrides) -> StakingConfig:
        return StakingConfig.from_settings(self.config, **overrides)

    def simulate(
        self,
        entrants: Iterable[FusedEntrant],
        config: Optional[StakingConfig] = None,
        settled_only: bool = False,
    ) -> SimulationSummary:
        config = config or self.staking_config()
        if settled_only:
            return simulate_settled(entrants, config)
        return simulate(entrants, config)

    async def simulate_range(
        self,
        start: date,
        end: date,
        config: Optional[StakingConfig] = None,
        settled_only: bool = False,
    ) -> SimulationSummary:
        """Simulate over every stored meeting between ``start`` and ``end``."""
        meetings: list[tuple[date, str]] = []
        for provider in self.providers:
            lister = getattr(provider, "meetings_between", None)
            if lister is not None:
                for day, track in await lister(start, end):
                    if not any(d == day and tracks_match(t, track) for d, t in meetings):
                        meetings.append((day, track))

        entrants: list[FusedEntrant] = []
        for day, track in meetings:
            reports = await self.reconcile_meeting(day, track)
            for report in reports.values():
                entrants.extend(report.entrants)

        logger.info(f"Simulating over {len(meetings)} meetings, {len(entrants)} entrants")
        return self.simulate(entrants, config, settled_only=settled_only)

    # ── Weather ─────────────────────────────────────────────────────────────

    async def weather(self, track: Optional[str] = None) -> list[WeatherObservation]:
        fetched = await asyncio.gather(
            *(p.fetch_weather(track=track) for p in self.providers), return_exceptions=True
        )
        observations: list[WeatherObservation] = []
        for provider, outcome in zip(self.providers, fetched):
            if isinstance(outcome, BaseException):
                logger.error(f"Provider {provider.name} weather fetch failed: {outcome}")
                continue
            observations.extend(outcome)
        return observations

    def correlation_config(self) -> CorrelationConfig:
        return CorrelationConfig.from_settings(self.config)

    async def correlate(
        self, metric: str, target: str, track: Optional[str] = None
    ) -> Optional[CorrelationResult]:
        observations = await self.weather(track)
        return correlate(observations, metric, target, track=track, config=self.correlation_config())

    async def correlations(
        self,
        track: Optional[str] = None,
        metrics: Sequence[str] = WEATHER_METRICS,
        targets: Sequence[str] = OUTCOME_TARGETS,
    ) -> list[CorrelationResult]:
        observations = await self.weather(track)
        return correlation_matrix(
            observations, metrics, targets, track=track, config=self.correlation_config()
        )

    async def buckets(
        self,
        metric: str,
        target: str = "winning_time",
        track: Optional[str] = None,
    ) -> list[Bucket]:
        bins = self.config.weather_bins.get(metric)
        if bins is None:
            raise ValueError(f"No bins configured for metric '{metric}'")
        observations = await self.weather(track)
        return bucket_analysis(observations, metric, target, bins=bins, track=track)


def build_desk(config: Optional[Settings] = None) -> RaceDesk:
    """Desk over the local store plus one JSON feed per ranked provider.

    Feeds are only wired up when ``feed_base_url`` is configured; each
    provider is served from ``{feed_base_url}/{provider}``.
    """
    from racedesk.providers.json_feed import JsonFeedProvider
    from racedesk.providers.store import StoreProvider

    config = config or default_settings
    providers: list[BaseProvider] = [StoreProvider()]
    if config.feed_base_url:
        base = config.feed_base_url.rstrip("/")
        for name in config.provider_precedence:
            providers.append(
                JsonFeedProvider(name, f"{base}/{name}", timeout=config.feed_timeout)
            )
    return RaceDesk(providers, config=config)


@lru_cache
def get_desk() -> RaceDesk:
    """Dependency to get the shared desk."""
    return build_desk()
