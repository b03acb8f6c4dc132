"""Per-race pipeline and the batch runner over many races.

Each race runs reconcile -> scratchings -> results in isolation. Any
unexpected exception inside one race is caught here, logged with traceback,
and reported as a FAILED race; the other races in the batch carry on.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, Optional, Sequence

from racedesk.config import settings
from racedesk.errors import IssueKind, RecordIssue
from racedesk.matching.normalize import normalize_track
from racedesk.records import RawRunnerRecord, ResultRecord, ScratchingRecord
from racedesk.reconcile.overlays import apply_results, apply_scratchings
from racedesk.reconcile.reconciler import RaceReconciliation, reconcile_race
from racedesk.scoring.value import is_value_play, score

logger = logging.getLogger(__name__)


class RaceStatus(str, Enum):
    OK = "ok"
    NO_DATA = "no_data"  # no entrants after reconciliation
    NO_VALUE = "no_value"  # entrants but nothing above the value threshold
    FAILED = "failed"


@dataclass(frozen=True)
class RaceInput:
    """Everything fetched for one race, ready for the pure pipeline."""

    race_date: Optional[date]
    track: str
    race_number: int
    runners: Sequence[RawRunnerRecord] = ()
    scratchings: Sequence[ScratchingRecord] = ()
    results: Sequence[ResultRecord] = ()
    issues: Sequence[RecordIssue] = ()  # upstream problems, e.g. provider failures

    @property
    def key(self) -> tuple:
        return (self.race_date, normalize_track(self.track), self.race_number)


@dataclass(frozen=True)
class RaceReport:
    reconciliation: RaceReconciliation
    status: RaceStatus
    value_play_count: int = 0
    stale_overwrites: int = 0

    @property
    def key(self) -> tuple:
        return self.reconciliation.key

    @property
    def entrants(self):
        return self.reconciliation.entrants

    @property
    def issues(self):
        return self.reconciliation.issues

    def to_dict(self) -> dict:
        data = self.reconciliation.to_dict()
        data.update(
            status=self.status.value,
            value_play_count=self.value_play_count,
            stale_overwrites=self.stale_overwrites,
        )
        return data


@dataclass
class PipelineOptions:
    precedence: Sequence[str] = field(default_factory=lambda: list(settings.provider_precedence))
    min_containment: int = settings.match_min_containment
    value_threshold: float = settings.value_threshold


def race_status(entrants, value_plays: int) -> RaceStatus:
    if not entrants:
        return RaceStatus.NO_DATA
    if not value_plays:
        return RaceStatus.NO_VALUE
    return RaceStatus.OK


def _failed_report(race: RaceInput, exc: Exception) -> RaceReport:
    issue = RecordIssue(
        kind=IssueKind.FAILED,
        stage="pipeline",
        detail=f"{type(exc).__name__}: {exc}",
    )
    recon = RaceReconciliation(
        race_date=race.race_date,
        track=race.track,
        race_number=race.race_number,
        issues=tuple(race.issues) + (issue,),
    )
    return RaceReport(reconciliation=recon, status=RaceStatus.FAILED)


def _distinct(records) -> list:
    """Records with exact repeats removed, first occurrence order kept."""
    return list(dict.fromkeys(records))


def process_race(race: RaceInput, options: Optional[PipelineOptions] = None) -> RaceReport:
    """Reconcile one race and apply its overlays. Never raises."""
    options = options or PipelineOptions()
    try:
        # The store and a live feed can both serve the same provider
        runners = _distinct(race.runners)
        if len(runners) < len(race.runners):
            logger.debug(
                f"Dropped {len(race.runners) - len(runners)} repeated runner lines "
                f"for {race.track} R{race.race_number}"
            )
        recon = reconcile_race(
            race.race_date,
            race.track,
            race.race_number,
            runners,
            options.precedence,
            min_containment=options.min_containment,
        )
        scratched = apply_scratchings(recon.entrants, _distinct(race.scratchings), options.min_containment)
        resulted = apply_results(scratched.entrants, _distinct(race.results), options.min_containment)

        recon = RaceReconciliation(
            race_date=recon.race_date,
            track=recon.track,
            race_number=recon.race_number,
            entrants=resulted.entrants,
            issues=tuple(race.issues) + recon.issues + scratched.issues + resulted.issues,
        )
        plays = sum(
            1 for e in recon.entrants
            if not e.is_scratched and is_value_play(score(e), options.value_threshold)
        )
        return RaceReport(
            reconciliation=recon,
            status=race_status(recon.entrants, plays),
            value_play_count=plays,
            stale_overwrites=scratched.stale_overwrites + resulted.stale_overwrites,
        )
    except Exception as e:
        logger.exception(f"Race {race.track} R{race.race_number} ({race.race_date}) failed: {e}")
        return _failed_report(race, e)


def reconcile_many(
    races: Iterable[RaceInput],
    options: Optional[PipelineOptions] = None,
    max_workers: int = 4,
) -> dict[tuple, RaceReport]:
    """Run ``process_race`` over independent races on a thread pool.

    Returns one report per race key. Workers share no mutable state; each
    returns its own report and the mapping is assembled on the calling thread.
    """
    races = list(races)
    options = options or PipelineOptions()
    if not races:
        return {}

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        reports = list(pool.map(lambda r: process_race(r, options), races))

    out: dict[tuple, RaceReport] = {}
    for race, report in zip(races, reports):
        if race.key in out:
            logger.warning(f"Duplicate race input {race.key}; keeping the first")
            continue
        out[race.key] = report

    failed = sum(1 for r in out.values() if r.status == RaceStatus.FAILED)
    logger.info(f"Processed {len(out)} races ({failed} failed)")
    return out
