"""Layered entity matcher for runners reported by different providers.

There is no universal key across providers, so matching walks a fixed ladder
and stops at the first rule that singles out exactly one entrant:

1. stable runner id (provider-assigned, both sides must carry one)
2. tab / saddlecloth number
3. canonical name equality
4. canonical name containment (truncated or suffixed provider strings)

A rule that cannot apply, finds nobody, or finds several entrants falls
through to the next. Several candidates never resolve to "pick the first":
if nothing singled out an entrant and some rule saw a tie, the result is
``Ambiguous``.

Matching is always scoped to one race: same race number (exact, never fuzzy)
and same track (aliases and containment via ``tracks_match``).
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence, Union

from racedesk.matching.normalize import AnyRecord, normalize_name
from racedesk.records import FusedEntrant
from racedesk.venues import tracks_match

logger = logging.getLogger(__name__)

DEFAULT_MIN_CONTAINMENT = 4


# ── Tagged result ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Matched:
    entrant: FusedEntrant
    index: int  # position in the entrant sequence handed to the matcher
    rule: str


@dataclass(frozen=True)
class Unmatched:
    pass


@dataclass(frozen=True)
class Ambiguous:
    rule: str
    indexes: tuple[int, ...]


MatchResult = Union[Matched, Unmatched, Ambiguous]


# ── Rules ───────────────────────────────────────────────────────────────────


def _runner_id_rule(candidate: AnyRecord, entrant: FusedEntrant) -> Optional[bool]:
    cand_id = getattr(candidate, "runner_id", None)
    if not cand_id or not entrant.runner_id:
        return None
    return str(cand_id) == str(entrant.runner_id)


def _tab_number_rule(candidate: AnyRecord, entrant: FusedEntrant) -> Optional[bool]:
    cand_tab = getattr(candidate, "tab_number", None)
    if not cand_tab or not entrant.tab_number:
        return None
    return int(cand_tab) == int(entrant.tab_number)


def _name_rule(candidate: AnyRecord, entrant: FusedEntrant) -> Optional[bool]:
    a = normalize_name(candidate.horse_name)
    b = normalize_name(entrant.horse_name)
    if not a or not b:
        return None
    return a == b


def _containment_rule(min_length: int) -> Callable[[AnyRecord, FusedEntrant], Optional[bool]]:
    def rule(candidate: AnyRecord, entrant: FusedEntrant) -> Optional[bool]:
        a = normalize_name(candidate.horse_name)
        b = normalize_name(entrant.horse_name)
        if not a or not b:
            return None
        shorter, longer = sorted((a, b), key=len)
        if len(shorter) < min_length:
            return False
        return shorter in longer

    return rule


def _rules(min_containment: int):
    return (
        ("runner_id", _runner_id_rule),
        ("tab_number", _tab_number_rule),
        ("name", _name_rule),
        ("containment", _containment_rule(min_containment)),
    )


# ── Scope ───────────────────────────────────────────────────────────────────


def in_race_scope(track: str, race_number: int, entrant: FusedEntrant) -> bool:
    """Same race number exactly, same track allowing aliases/containment."""
    return entrant.race_number == race_number and tracks_match(track, entrant.track)


def scoped_indexes(
    track: str, race_number: int, entrants: Sequence[FusedEntrant]
) -> list[int]:
    return [i for i, e in enumerate(entrants) if in_race_scope(track, race_number, e)]


# ── Entry point ─────────────────────────────────────────────────────────────


def match_entrant(
    candidate: AnyRecord,
    entrants: Sequence[FusedEntrant],
    min_containment: int = DEFAULT_MIN_CONTAINMENT,
    exclude: Iterable[int] = (),
) -> MatchResult:
    """Find the single entrant ``candidate`` refers to.

    ``entrants`` may span several races; only those in the candidate's
    (track, race_number) scope are considered. ``exclude`` removes indexes
    from consideration (used to stop two records of one provider binding to
    the same entrant).
    """
    skip = set(exclude)
    pool = [
        i for i in scoped_indexes(candidate.track, candidate.race_number, entrants)
        if i not in skip
    ]
    if not pool:
        return Unmatched()

    tie: Optional[Ambiguous] = None
    for rule_name, rule in _rules(min_containment):
        hits = [i for i in pool if rule(candidate, entrants[i])]
        if len(hits) == 1:
            return Matched(entrant=entrants[hits[0]], index=hits[0], rule=rule_name)
        if len(hits) > 1 and tie is None:
            tie = Ambiguous(rule=rule_name, indexes=tuple(hits))

    if tie is not None:
        logger.debug(
            f"Ambiguous match for {candidate.horse_name!r} "
            f"R{candidate.race_number}: {len(tie.indexes)} candidates on {tie.rule}"
        )
        return tie
    return Unmatched()
