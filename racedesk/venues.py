"""Centralised venue registry: track aliases and track-name comparison.

Providers disagree on venue naming ("Rosehill Gardens" vs "Rosehill",
"Ladbrokes Cannon Park" vs "Cairns", "Sandown-Lakeside" vs "Sandown"). These
tables are read-only reference data loaded once at import.
"""

import logging
import re

logger = logging.getLogger(__name__)

# Sponsor prefixes stripped from venue names
SPONSOR_PREFIXES = (
    "sportsbet", "ladbrokes", "bet365", "tab", "neds", "pointsbet",
    "unibet", "betfair", "palmerbet", "bluebet", "topsport", "aquis",
    "picklebet park",
)

# Alternative venue names -> canonical form (lowercase, no sponsor)
VENUE_ALIASES = {
    "sandown lakeside": "sandown",
    "sandown hillside": "sandown",
    "thomas farms rc murray bridge": "murray bridge",
    "park kilmore": "kilmore",
    "royal randwick": "randwick",
    "the valley": "moonee valley",
    "rosehill gardens": "rosehill",
    "canterbury park": "canterbury",
    "belmont park": "belmont",
    "pinjarra park": "pinjarra",
    "cheltenham park": "morphettville",
    "morphettville parks": "morphettville",
    "cannon park": "cairns",
    "beaumont newcastle": "newcastle",
    "beaumont": "newcastle",
    "southside pakenham": "pakenham",
    "southside cranbourne": "cranbourne",
    "yarra valley": "yarra glen",
    "wagga riverside": "wagga",
    "werribee park": "werribee",
}

# Trailing words some providers append to the venue proper
TRACK_SUFFIXES = ("racecourse", "gardens", "hillside", "lakeside", "park", "racing", "raceway")

# "X contains Y" is only trusted when the shorter key is at least this long
MIN_TRACK_CONTAINMENT = 5

_PARENS = re.compile(r"\([^)]*\)")
_NON_ALNUM = re.compile(r"[^a-z0-9 ]")
_SPACES = re.compile(r"\s+")


def _clean(venue: str) -> str:
    v = _PARENS.sub(" ", venue.lower())
    v = v.replace("-", " ").replace("'", "").replace("’", "").replace(".", "")
    return _SPACES.sub(" ", v).strip()


def normalize_venue(venue) -> str:
    """Normalize venue name: strip sponsors, apply aliases, lowercase.

    Returns canonical lowercase venue name (e.g., "rosehill", "moonee valley").
    Non-string input normalizes to "".
    """
    if not isinstance(venue, str) or not venue.strip():
        return ""
    v = _clean(venue)

    if v in VENUE_ALIASES:
        return VENUE_ALIASES[v]

    for prefix in SPONSOR_PREFIXES:
        if v.startswith(prefix + " "):
            v = v[len(prefix) + 1:].strip()
            break

    return VENUE_ALIASES.get(v, v)


def track_key(venue) -> str:
    """Comparison key: canonical venue with trailing suffix words removed."""
    v = normalize_venue(venue)
    for suffix in TRACK_SUFFIXES:
        if v.endswith(" " + suffix):
            v = v[: -len(suffix) - 1]
            break
    return _NON_ALNUM.sub(" ", v).strip()


def tracks_match(track_a, track_b) -> bool:
    """Check if two venue names denote the same track.

    Exact canonical match, or one key containing the other when the shorter
    key is long enough to make the containment meaningful.
    """
    a = track_key(track_a)
    b = track_key(track_b)
    if not a or not b:
        return False
    if a == b:
        return True
    if min(len(a), len(b)) >= MIN_TRACK_CONTAINMENT:
        return a in b or b in a
    return False


def venue_slug(venue: str) -> str:
    """Convert venue name to URL/ID slug (e.g., 'moonee-valley')."""
    return normalize_venue(venue).replace(" ", "-")
