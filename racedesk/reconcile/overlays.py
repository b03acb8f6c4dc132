"""Scratching and result overlays on an already reconciled entrant set.

Each overlay takes the prior entrants and returns a new tuple with the
changes applied; inputs are never mutated. Overlays only attach fields:

- scratching sets ``is_scratched`` and never deletes the entrant
- a result is written once; later results for the same runner are ignored
  and counted as stale overwrites (first result wins)
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence

from racedesk.errors import IssueKind, MissingRequiredField, RecordIssue
from racedesk.matching.matcher import Ambiguous, Matched, match_entrant
from racedesk.matching.normalize import require_fields
from racedesk.records import FusedEntrant, ResultRecord, ScratchingRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverlayOutcome:
    entrants: tuple[FusedEntrant, ...]
    issues: tuple[RecordIssue, ...] = ()
    applied: int = 0
    stale_overwrites: int = 0


def _issue(kind: IssueKind, stage: str, record, detail: str) -> RecordIssue:
    name = getattr(record, "horse_name", None)
    return RecordIssue(
        kind=kind,
        stage=stage,
        provider=getattr(record, "provider", None),
        horse_name=name if isinstance(name, str) else None,
        tab_number=getattr(record, "tab_number", None),
        detail=detail,
    )


def _locate(
    record, entrants: Sequence[FusedEntrant], stage: str, min_containment: int
) -> tuple[Optional[int], Optional[RecordIssue]]:
    """Index of the entrant ``record`` refers to, or the issue explaining why not."""
    try:
        require_fields(record)
    except MissingRequiredField as e:
        return None, _issue(IssueKind.MISSING_FIELD, stage, record, str(e))

    result = match_entrant(record, entrants, min_containment=min_containment)
    if isinstance(result, Matched):
        return result.index, None
    if isinstance(result, Ambiguous):
        return None, _issue(
            IssueKind.AMBIGUOUS, stage, record,
            f"{len(result.indexes)} entrants matched on {result.rule}",
        )
    return None, _issue(IssueKind.UNRESOLVED, stage, record, "no entrant matched")


# ── Scratchings ─────────────────────────────────────────────────────────────


def apply_scratchings(
    entrants: Sequence[FusedEntrant],
    scratchings: Iterable[ScratchingRecord],
    min_containment: int = 4,
) -> OverlayOutcome:
    """Flag scratched entrants. Reapplying the same scratching changes nothing."""
    current = list(entrants)
    issues: list[RecordIssue] = []
    applied = 0
    stale = 0

    for record in scratchings:
        idx, issue = _locate(record, current, "scratching", min_containment)
        if idx is None:
            issues.append(issue)
            logger.info(
                f"Unresolved scratching {record.horse_name or '#' + str(record.tab_number)} "
                f"at {record.track} R{record.race_number}: {issue.detail}"
            )
            continue

        entrant = current[idx]
        if entrant.is_scratched:
            if record.reason and entrant.scratch_reason and record.reason != entrant.scratch_reason:
                stale += 1
                issues.append(_issue(
                    IssueKind.STALE_OVERWRITE, "scratching", record,
                    f"already scratched ({entrant.scratch_reason})",
                ))
                logger.debug(
                    f"Ignoring second scratching reason for {entrant.horse_name}: "
                    f"{entrant.scratch_reason!r} kept, {record.reason!r} dropped"
                )
            continue

        current[idx] = replace(
            entrant,
            is_scratched=True,
            scratch_reason=record.reason,
            scratch_time=record.timestamp,
        )
        applied += 1
        logger.info(f"Scratched {entrant.horse_name} ({entrant.track} R{entrant.race_number})")

    return OverlayOutcome(
        entrants=tuple(current), issues=tuple(issues), applied=applied, stale_overwrites=stale,
    )


# ── Results ─────────────────────────────────────────────────────────────────


def _stable_index(record: ResultRecord, entrants: Sequence[FusedEntrant]) -> Optional[int]:
    """Entrant index via provider race + runner ids, when both sides carry them."""
    if not (record.race_id and record.runner_id):
        return None
    hits = [
        i for i, e in enumerate(entrants)
        if e.race_id and e.runner_id
        and str(e.race_id) == str(record.race_id)
        and str(e.runner_id) == str(record.runner_id)
    ]
    return hits[0] if len(hits) == 1 else None


def apply_results(
    entrants: Sequence[FusedEntrant],
    results: Iterable[ResultRecord],
    min_containment: int = 4,
) -> OverlayOutcome:
    """Attach finishing position, starting price and margin (first result wins)."""
    current = list(entrants)
    issues: list[RecordIssue] = []
    applied = 0
    stale = 0

    for record in results:
        idx = _stable_index(record, current)
        if idx is None:
            idx, issue = _locate(record, current, "result", min_containment)
            if idx is None:
                issues.append(issue)
                logger.info(
                    f"Unresolved result {record.horse_name!r} "
                    f"at {record.track} R{record.race_number}: {issue.detail}"
                )
                continue

        entrant = current[idx]
        if entrant.has_result:
            stale += 1
            issues.append(_issue(
                IssueKind.STALE_OVERWRITE, "result", record,
                f"finishing position already {entrant.finishing_position}",
            ))
            logger.debug(
                f"Result for {entrant.horse_name} already final "
                f"(pos {entrant.finishing_position}); ignoring pos {record.finishing_position}"
            )
            continue

        current[idx] = replace(
            entrant,
            finishing_position=record.finishing_position,
            starting_price=record.starting_price,
            margin_to_winner=record.margin_to_winner,
        )
        applied += 1

    return OverlayOutcome(
        entrants=tuple(current), issues=tuple(issues), applied=applied, stale_overwrites=stale,
    )
