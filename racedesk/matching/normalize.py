"""Identity normalizer: canonical horse and track strings for comparison.

Canonical strings are never persisted or displayed; they only decide
equality. Anything that is not a string normalizes to "", and "" never
matches anything (see ``names_match``).
"""

import re
from dataclasses import dataclass
from typing import Union

from racedesk.errors import MissingRequiredField
from racedesk.records import RawRunnerRecord, ResultRecord, ScratchingRecord
from racedesk.venues import normalize_venue

_PARENS = re.compile(r"\([^)]*\)")
_STRIP_CHARS = re.compile(r"['‘’`.]")
_SPACES = re.compile(r"\s+")

AnyRecord = Union[RawRunnerRecord, ScratchingRecord, ResultRecord]


@dataclass(frozen=True)
class NormalizedIdentity:
    canonical_name: str
    canonical_track: str


def normalize_name(name) -> str:
    """Canonical horse name.

    - "Don't Tell Me" -> "dont tell me"
    - "  Zaaki (GB) " -> "zaaki"
    - "St. Mark's Basilica" -> "st marks basilica"
    - "Sun-Hat" -> "sun hat"
    """
    if not isinstance(name, str):
        return ""
    s = _SPACES.sub(" ", name.lower().strip())
    s = _PARENS.sub(" ", s)
    s = _STRIP_CHARS.sub("", s)
    s = s.replace("-", " ")
    return _SPACES.sub(" ", s).strip()


def normalize_track(track) -> str:
    """Canonical track name (sponsor stripped, aliases applied)."""
    return normalize_venue(track)


def names_match(a, b) -> bool:
    """Canonical equality; empty names are mutually non-matching."""
    na = normalize_name(a)
    nb = normalize_name(b)
    return bool(na) and na == nb


def identity_of(record: AnyRecord) -> NormalizedIdentity:
    return NormalizedIdentity(
        canonical_name=normalize_name(record.horse_name),
        canonical_track=normalize_track(record.track),
    )


def require_fields(record: AnyRecord) -> NormalizedIdentity:
    """Reject a record lacking track, race number or horse identity.

    Scratchings may identify the runner by tab number alone; every other
    record needs a usable horse name.
    """
    identity = identity_of(record)
    if not identity.canonical_track:
        raise MissingRequiredField("track", record)
    if not isinstance(record.race_number, int) or isinstance(record.race_number, bool) or record.race_number <= 0:
        raise MissingRequiredField("race_number", record)
    if not identity.canonical_name:
        if isinstance(record, ScratchingRecord) and record.tab_number:
            return identity
        raise MissingRequiredField("horse_name", record)
    return identity
