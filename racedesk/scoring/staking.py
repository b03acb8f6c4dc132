"""Fixed-stake P&L simulation over value plays.

Every entrant whose value score clears the threshold gets the same stake.

Returns per bet:
  - win mode:   winner returns stake x odds, everything else returns 0
  - place mode: winner returns stake x odds, a finish inside the placing
                cutoff returns stake x (odds / place divisor), else 0

Odds are the starting price when one was recorded, otherwise the price the
entrant was scored on.

A value play with no finishing position yet is still a bet that was struck:
its stake is counted and it returns 0 (reported as ``pending``). Callers who
want settled races only use ``simulate_settled``, which removes pending
entrants before anything is staked. Scratched entrants are void and never
staked.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Optional

from racedesk.config import Settings, settings as default_settings
from racedesk.records import FusedEntrant
from racedesk.scoring.value import is_value_play, score, scoring_price

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StakingConfig:
    stake: float = 10.0
    threshold: float = 25.0
    mode: str = "win"  # win, place
    place_divisor: float = 4.0
    place_cutoff: int = 3

    def __post_init__(self):
        if self.mode not in ("win", "place"):
            raise ValueError(f"Unknown staking mode: {self.mode!r}")
        if self.stake <= 0:
            raise ValueError("stake must be positive")
        if self.place_divisor <= 0:
            raise ValueError("place_divisor must be positive")

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None, **overrides) -> "StakingConfig":
        cfg = cfg or default_settings
        values = {
            "stake": cfg.stake,
            "threshold": cfg.value_threshold,
            "mode": cfg.staking_mode,
            "place_divisor": cfg.place_divisor,
            "place_cutoff": cfg.place_cutoff,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass(frozen=True)
class StakeOutcome:
    stake: float
    returned: float

    @property
    def profit(self) -> float:
        return self.returned - self.stake


@dataclass(frozen=True)
class SimulationSummary:
    bets: int = 0
    wins: int = 0
    placings: int = 0  # finishes inside the placing cutoff, winners included
    pending: int = 0
    voided: int = 0
    total_staked: float = 0.0
    total_returned: float = 0.0

    @property
    def profit(self) -> float:
        return round(self.total_returned - self.total_staked, 2)

    @property
    def roi(self) -> float:
        """Profit as a percentage of turnover; 0 when nothing was staked."""
        if not self.total_staked:
            return 0.0
        return round(self.profit / self.total_staked * 100, 2)

    @property
    def win_rate(self) -> float:
        if not self.bets:
            return 0.0
        return round(self.wins / self.bets * 100, 2)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.update(profit=self.profit, roi=self.roi, win_rate=self.win_rate)
        return data


def bet_odds(entrant: FusedEntrant) -> Optional[float]:
    if entrant.starting_price and entrant.starting_price > 0:
        return entrant.starting_price
    return scoring_price(entrant)


def stake_outcome(entrant: FusedEntrant, config: StakingConfig) -> StakeOutcome:
    """Outcome of one fixed-stake bet on ``entrant``."""
    pos = entrant.finishing_position
    odds = bet_odds(entrant) or 0.0
    if not pos:
        return StakeOutcome(stake=config.stake, returned=0.0)
    if pos == 1:
        return StakeOutcome(stake=config.stake, returned=config.stake * odds)
    if config.mode == "place" and pos <= config.place_cutoff:
        return StakeOutcome(stake=config.stake, returned=config.stake * (odds / config.place_divisor))
    return StakeOutcome(stake=config.stake, returned=0.0)


def simulate(
    entrants: Iterable[FusedEntrant], config: Optional[StakingConfig] = None
) -> SimulationSummary:
    """Replay a fixed-stake strategy over value plays."""
    config = config or StakingConfig.from_settings()

    bets = wins = placings = pending = voided = 0
    staked = returned = 0.0

    for entrant in entrants:
        if not is_value_play(score(entrant), config.threshold):
            continue
        if entrant.is_scratched:
            voided += 1
            continue

        outcome = stake_outcome(entrant, config)
        bets += 1
        staked += outcome.stake
        returned += outcome.returned

        pos = entrant.finishing_position
        if not pos:
            pending += 1
        elif pos == 1:
            wins += 1
        if pos and pos <= config.place_cutoff:
            placings += 1

    summary = SimulationSummary(
        bets=bets,
        wins=wins,
        placings=placings,
        pending=pending,
        voided=voided,
        total_staked=round(staked, 2),
        total_returned=round(returned, 2),
    )
    logger.debug(
        f"Simulated {bets} bets ({config.mode}): staked ${summary.total_staked:.2f}, "
        f"returned ${summary.total_returned:.2f}, ROI {summary.roi:.1f}%"
    )
    return summary


def simulate_settled(
    entrants: Iterable[FusedEntrant], config: Optional[StakingConfig] = None
) -> SimulationSummary:
    """Same as ``simulate`` but only over entrants that have a result.

    Pending (unresulted) entrants are filtered out before staking, so they
    neither consume a stake nor appear in the denominator.
    """
    return simulate((e for e in entrants if e.has_result), config)
