"""Value score: how far a model rating outruns the price on offer.

Formula: (rating / price) * 10. For a fixed rating a shorter price scores
higher, and for a fixed price a higher rating scores higher. Entrants missing
either input score 0, which sorts them below every rated and priced entrant
and keeps them out of value-play thresholds.
"""

from typing import Iterable, Optional

from racedesk.config import Settings, settings as default_settings
from racedesk.records import FusedEntrant


def value_score(rating: Optional[float], price: Optional[float]) -> float:
    """Raw value score; 0.0 when rating or price is missing or non-positive."""
    if rating is None or price is None:
        return 0.0
    try:
        rating = float(rating)
        price = float(price)
    except (TypeError, ValueError):
        return 0.0
    if rating <= 0 or price <= 0:
        return 0.0
    return (rating / price) * 10


def scoring_price(entrant: FusedEntrant) -> Optional[float]:
    """Model price, or the market win price when no model price exists."""
    if entrant.model_price and entrant.model_price > 0:
        return entrant.model_price
    if entrant.market_win_price and entrant.market_win_price > 0:
        return entrant.market_win_price
    return None


def score(entrant: FusedEntrant) -> float:
    return value_score(entrant.model_rating, scoring_price(entrant))


def is_value_play(value: float, threshold: Optional[float] = None) -> bool:
    """Strictly above the configured value threshold."""
    if threshold is None:
        threshold = default_settings.value_threshold
    return value > threshold


def value_level(value: float, config: Optional[Settings] = None) -> str:
    """Bucket a score into "great" / "fair" / "avoid"."""
    cfg = config or default_settings
    if value > cfg.value_threshold:
        return "great"
    if value >= cfg.fair_value_threshold:
        return "fair"
    return "avoid"


def rank_entrants(entrants: Iterable[FusedEntrant]) -> list[tuple[FusedEntrant, float]]:
    """Entrants paired with their score, best value first.

    Ties break on tab number then horse name so the order is stable across
    runs regardless of provider ordering.
    """
    scored = [(e, score(e)) for e in entrants]
    return sorted(
        scored,
        key=lambda pair: (-pair[1], pair[0].tab_number or 999, pair[0].horse_name.lower()),
    )


def value_plays(
    entrants: Iterable[FusedEntrant], threshold: Optional[float] = None
) -> list[FusedEntrant]:
    return [e for e, s in rank_entrants(entrants) if is_value_play(s, threshold)]
