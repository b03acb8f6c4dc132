"""Record reconciler: one fused entrant per runner per race.

The backbone provider (first in the precedence list) decides which horses
exist in the race. Every other provider only enriches those entrants; a
secondary record that cannot be bound is reported, not turned into a new
entrant, so minor spelling variants never produce ghost runners.

Field population follows the precedence list: providers are merged in order
and only empty fields are filled, so a value set by a higher-precedence
provider is never overwritten by a lower one.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Iterable, Optional, Sequence

from racedesk.errors import IssueKind, MissingRequiredField, RecordIssue
from racedesk.matching.matcher import Ambiguous, Matched, match_entrant
from racedesk.matching.normalize import normalize_name, normalize_track, require_fields
from racedesk.records import FusedEntrant, RawRunnerRecord
from racedesk.venues import tracks_match

logger = logging.getLogger(__name__)

# RawRunnerRecord attribute -> FusedEntrant attribute
MERGE_FIELDS = {
    "tab_number": "tab_number",
    "jockey": "jockey",
    "trainer": "trainer",
    "rating": "model_rating",
    "price": "model_price",
    "win_price": "market_win_price",
    "place_price": "market_place_price",
    "runner_id": "runner_id",
    "race_id": "race_id",
}


@dataclass(frozen=True)
class RaceReconciliation:
    """Reconciled entrants for one race plus everything that did not fit."""

    race_date: Optional[date]
    track: str
    race_number: int
    entrants: tuple[FusedEntrant, ...] = ()
    issues: tuple[RecordIssue, ...] = ()

    @property
    def key(self) -> tuple:
        return (self.race_date, normalize_track(self.track), self.race_number)

    def issues_of(self, kind: IssueKind) -> list[RecordIssue]:
        return [i for i in self.issues if i.kind == kind]

    def to_dict(self) -> dict:
        return {
            "race_date": self.race_date.isoformat() if self.race_date else None,
            "track": self.track,
            "race_number": self.race_number,
            "entrants": [e.to_dict() for e in self.entrants],
            "issues": [i.to_dict() for i in self.issues],
        }


def _usable(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value > 0
    return True


def merge_record(entrant: FusedEntrant, record: RawRunnerRecord) -> FusedEntrant:
    """Fill the entrant's empty fields from ``record``; never overwrite."""
    updates = {}
    for src, dest in MERGE_FIELDS.items():
        value = getattr(record, src)
        if _usable(value) and not _usable(getattr(entrant, dest)):
            updates[dest] = value
    if entrant.race_date is None and record.race_date is not None:
        updates["race_date"] = record.race_date
    if record.provider not in entrant.sources:
        updates["sources"] = entrant.sources + (record.provider,)
    return replace(entrant, **updates) if updates else entrant


def seed_entrant(record: RawRunnerRecord, race_date: Optional[date], track: str) -> FusedEntrant:
    """New entrant from a backbone record."""
    base = FusedEntrant(
        track=track,
        race_number=record.race_number,
        horse_name=" ".join(record.horse_name.split()),
        race_date=race_date or record.race_date,
    )
    return merge_record(base, record)


def _issue(kind: IssueKind, record: RawRunnerRecord, detail: str) -> RecordIssue:
    return RecordIssue(
        kind=kind,
        stage="reconcile",
        provider=record.provider,
        horse_name=record.horse_name if isinstance(record.horse_name, str) else None,
        tab_number=record.tab_number,
        detail=detail,
    )


def _in_scope(record: RawRunnerRecord, track: str, race_number: int) -> bool:
    return record.race_number == race_number and tracks_match(record.track, track)


def reconcile_race(
    race_date: Optional[date],
    track: str,
    race_number: int,
    records: Iterable[RawRunnerRecord],
    precedence: Sequence[str],
    min_containment: int = 4,
) -> RaceReconciliation:
    """Fuse every provider's records for one race.

    ``records`` may hold any mix of providers and may span other races of
    the meeting; out-of-scope records are ignored. ``precedence`` is the
    explicit provider order, backbone first.
    """
    if not precedence:
        raise ValueError("precedence needs at least a backbone provider")
    ranking = {p.lower(): i for i, p in enumerate(precedence)}
    backbone = precedence[0].lower()

    issues: list[RecordIssue] = []
    by_provider: dict[str, list[RawRunnerRecord]] = {p: [] for p in ranking}

    for record in records:
        try:
            require_fields(record)
        except MissingRequiredField as e:
            # Only report rejects that could belong to this race
            race_ok = e.field_name == "race_number" or record.race_number == race_number
            track_ok = e.field_name == "track" or tracks_match(record.track, track)
            if race_ok and track_ok:
                issues.append(_issue(IssueKind.MISSING_FIELD, record, str(e)))
                logger.warning(f"Rejected {record.provider} record for {track} R{race_number}: {e}")
            continue
        if not _in_scope(record, track, race_number):
            continue
        provider = (record.provider or "").lower()
        if provider not in ranking:
            issues.append(_issue(IssueKind.UNRESOLVED, record, f"provider '{record.provider}' not ranked"))
            logger.warning(
                f"Skipping {record.horse_name!r} from unranked provider '{record.provider}'"
            )
            continue
        by_provider[provider].append(record)

    entrants: list[FusedEntrant] = []

    # Backbone defines race membership
    for record in by_provider[backbone]:
        name = normalize_name(record.horse_name)
        dup = next(
            (i for i, e in enumerate(entrants) if normalize_name(e.horse_name) == name),
            None,
        )
        if dup is not None:
            logger.info(f"Duplicate backbone runner {record.horse_name!r} R{race_number} merged")
            entrants[dup] = merge_record(entrants[dup], record)
            continue
        entrants.append(seed_entrant(record, race_date, track))

    # Secondary providers in precedence order
    for provider in precedence[1:]:
        bound: set[int] = set()
        for record in by_provider[provider.lower()]:
            result = match_entrant(
                record, entrants, min_containment=min_containment, exclude=bound
            )
            if isinstance(result, Matched):
                bound.add(result.index)
                entrants[result.index] = merge_record(result.entrant, record)
            elif isinstance(result, Ambiguous):
                issues.append(_issue(
                    IssueKind.AMBIGUOUS, record,
                    f"{len(result.indexes)} entrants matched on {result.rule}",
                ))
                logger.warning(
                    f"Ambiguous {provider} record {record.horse_name!r} "
                    f"at {track} R{race_number}; not merged"
                )
            else:
                issues.append(_issue(IssueKind.UNRESOLVED, record, "no entrant matched"))
                logger.info(
                    f"Unreconciled {provider} record {record.horse_name!r} "
                    f"(tab {record.tab_number}) at {track} R{race_number}"
                )

    return RaceReconciliation(
        race_date=race_date,
        track=track,
        race_number=race_number,
        entrants=tuple(entrants),
        issues=tuple(issues),
    )
