"""Value scoring and staking simulation."""

from racedesk.scoring.staking import (
    SimulationSummary,
    StakeOutcome,
    StakingConfig,
    simulate,
    simulate_settled,
)
from racedesk.scoring.value import (
    is_value_play,
    rank_entrants,
    score,
    value_level,
    value_plays,
    value_score,
)

__all__ = [
    "SimulationSummary",
    "StakeOutcome",
    "StakingConfig",
    "simulate",
    "simulate_settled",
    "is_value_play",
    "rank_entrants",
    "score",
    "value_level",
    "value_plays",
    "value_score",
]
