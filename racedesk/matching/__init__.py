"""Cross-provider identity: normalization and layered matching."""

from racedesk.matching.matcher import (
    Ambiguous,
    Matched,
    MatchResult,
    Unmatched,
    in_race_scope,
    match_entrant,
)
from racedesk.matching.normalize import (
    NormalizedIdentity,
    identity_of,
    names_match,
    normalize_name,
    normalize_track,
    require_fields,
)

__all__ = [
    "Ambiguous",
    "Matched",
    "MatchResult",
    "Unmatched",
    "in_race_scope",
    "match_entrant",
    "NormalizedIdentity",
    "identity_of",
    "names_match",
    "normalize_name",
    "normalize_track",
    "require_fields",
]
