"""Weather vs race-outcome analysis.

Pearson correlation between a weather metric and a race outcome, plus a
bucketed view (mean outcome per weather band) for the same pair.

``significant`` is a heuristic flag (|r| above a cutoff with enough races),
not a hypothesis test. No p-value is computed.
"""

import logging
import math
import statistics
from dataclasses import asdict, dataclass
from typing import Iterable, Optional, Sequence

from racedesk.config import Settings, settings as default_settings
from racedesk.records import WeatherObservation
from racedesk.venues import tracks_match

logger = logging.getLogger(__name__)

WEATHER_METRICS = [
    "temperature",
    "wind_speed",
    "humidity",
    "pressure",
    "cloud_cover",
    "weather_impact_score",
]

OUTCOME_TARGETS = ["winning_time", "winning_margin"]


@dataclass(frozen=True)
class CorrelationConfig:
    min_sample_size: int = 10
    significance_r: float = 0.3
    significance_n: int = 30

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None) -> "CorrelationConfig":
        cfg = cfg or default_settings
        return cls(
            min_sample_size=cfg.min_sample_size,
            significance_r=cfg.significance_r,
            significance_n=cfg.significance_n,
        )


@dataclass(frozen=True)
class CorrelationResult:
    metric_name: str
    target_name: str
    pearson_r: float
    sample_size: int
    significant: bool

    @property
    def strength(self) -> str:
        return correlation_strength(self.pearson_r)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["pearson_r"] = round(self.pearson_r, 4)
        data["strength"] = self.strength
        return data


@dataclass(frozen=True)
class Bucket:
    label: str
    lower: Optional[float]  # inclusive
    upper: Optional[float]  # exclusive
    count: int = 0
    mean: Optional[float] = None
    stddev: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


# ── Metrics ─────────────────────────────────────────────────────────────────


def weather_impact_score(obs: WeatherObservation) -> float:
    """0-10 composite of how disruptive conditions were.

    Wind (km/h): >15 = 1, >30 = 2, >45 = 3, gusts >60 = 4 (sustained wind
    stands in for the gust when none was recorded)
    Rain (mm): >0.5 = 1, >2 = 2, >5 = 3
    Temperature (C): <5 or >35 = 1, <0 or >40 = 2
    """
    score = 0.0

    wind = obs.wind_speed or 0.0
    gust = obs.wind_gust if obs.wind_gust is not None else wind
    if gust > 60:
        score += 4
    elif wind > 45:
        score += 3
    elif wind > 30:
        score += 2
    elif wind > 15:
        score += 1

    rain = obs.precipitation or 0.0
    if rain > 5:
        score += 3
    elif rain > 2:
        score += 2
    elif rain > 0.5:
        score += 1

    temp = obs.temperature
    if temp is not None:
        if temp < 0 or temp > 40:
            score += 2
        elif temp < 5 or temp > 35:
            score += 1

    return min(score, 10.0)


def impact_summary(score: float) -> str:
    """Plain-language band for a weather impact score."""
    if score <= 2:
        return "Ideal conditions - minimal weather impact expected"
    if score <= 4:
        return "Good conditions with slight weather considerations"
    if score <= 6:
        return "Moderate weather impact - adjust expectations accordingly"
    if score <= 8:
        return "Significant weather impact - major factor in race outcomes"
    return "Severe weather conditions - extreme impact on racing"


def metric_value(obs: WeatherObservation, name: str) -> Optional[float]:
    """Named metric or target off an observation; None when not recorded."""
    if name == "weather_impact_score":
        return weather_impact_score(obs)
    if not hasattr(obs, name):
        raise ValueError(f"Unknown weather field: {name}")
    value = getattr(obs, name)
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _select(
    observations: Iterable[WeatherObservation], track: Optional[str]
) -> list[WeatherObservation]:
    if not track:
        return list(observations)
    return [o for o in observations if tracks_match(o.track, track)]


def paired_values(
    observations: Iterable[WeatherObservation], metric: str, target: str
) -> tuple[list[float], list[float]]:
    """Metric/target pairs where both values are present."""
    xs, ys = [], []
    for obs in observations:
        x = metric_value(obs, metric)
        y = metric_value(obs, target)
        if x is None or y is None:
            continue
        xs.append(x)
        ys.append(y)
    return xs, ys


# ── Correlation ─────────────────────────────────────────────────────────────


def pearson(xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
    """Pearson r = cov / (n * std_x * std_y), population standard deviations.

    None for mismatched or empty inputs and when either side has no variance.
    """
    n = len(xs)
    if n == 0 or n != len(ys):
        return None
    mean_x = sum(xs) / n
    mean_y = sum(ys) / n
    cov = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))
    std_x = math.sqrt(sum((x - mean_x) ** 2 for x in xs) / n)
    std_y = math.sqrt(sum((y - mean_y) ** 2 for y in ys) / n)
    if std_x == 0 or std_y == 0:
        return None
    r = cov / (n * std_x * std_y)
    # float noise can push a perfect fit a hair past 1
    return max(-1.0, min(1.0, r))


def correlate(
    observations: Iterable[WeatherObservation],
    metric: str,
    target: str,
    track: Optional[str] = None,
    config: Optional[CorrelationConfig] = None,
) -> Optional[CorrelationResult]:
    """Correlation between ``metric`` and ``target``; None under the minimum sample."""
    config = config or CorrelationConfig.from_settings()
    xs, ys = paired_values(_select(observations, track), metric, target)
    n = len(xs)
    if n < config.min_sample_size:
        logger.debug(f"{metric} vs {target}: {n} races, below minimum {config.min_sample_size}")
        return None

    r = pearson(xs, ys)
    if r is None:
        logger.debug(f"{metric} vs {target}: no variance across {n} races")
        return None

    return CorrelationResult(
        metric_name=metric,
        target_name=target,
        pearson_r=r,
        sample_size=n,
        significant=abs(r) > config.significance_r and n > config.significance_n,
    )


def correlation_matrix(
    observations: Iterable[WeatherObservation],
    metrics: Sequence[str] = WEATHER_METRICS,
    targets: Sequence[str] = OUTCOME_TARGETS,
    track: Optional[str] = None,
    config: Optional[CorrelationConfig] = None,
) -> list[CorrelationResult]:
    """Every metric x target pair with enough data, strongest |r| first."""
    observations = _select(observations, track)
    results = []
    for metric in metrics:
        for target in targets:
            result = correlate(observations, metric, target, config=config)
            if result is not None:
                results.append(result)
    results.sort(key=lambda c: abs(c.pearson_r), reverse=True)
    return results


def correlation_strength(r: float) -> str:
    a = abs(r)
    if a < 0.3:
        return "Weak"
    if a < 0.5:
        return "Moderate"
    if a < 0.7:
        return "Strong"
    return "Very Strong"


# ── Buckets ─────────────────────────────────────────────────────────────────


def _fmt(bound: float) -> str:
    return f"{bound:g}"


def make_buckets(bounds: Sequence[float]) -> list[Bucket]:
    """Empty buckets for ascending upper bounds, plus an open top bucket."""
    buckets = []
    lower = None
    for upper in bounds:
        label = f"<{_fmt(upper)}" if lower is None else f"{_fmt(lower)}-{_fmt(upper)}"
        buckets.append(Bucket(label=label, lower=lower, upper=upper))
        lower = upper
    if lower is None:
        buckets.append(Bucket(label="all", lower=None, upper=None))
    else:
        buckets.append(Bucket(label=f">={_fmt(lower)}", lower=lower, upper=None))
    return buckets


def bucket_index(value: float, bounds: Sequence[float]) -> int:
    for i, upper in enumerate(bounds):
        if value < upper:
            return i
    return len(bounds)


def bucket_analysis(
    observations: Iterable[WeatherObservation],
    metric: str,
    target: str = "winning_time",
    bins: Optional[Sequence[float]] = None,
    track: Optional[str] = None,
) -> list[Bucket]:
    """Mean/count/stddev of ``target`` per ``metric`` band, in band order.

    ``bins`` defaults to the configured bounds for ``metric``. Every band is
    returned, empty ones with count 0.
    """
    if bins is None:
        if metric not in default_settings.weather_bins:
            raise ValueError(f"No bins configured for metric '{metric}'")
        bins = default_settings.weather_bins[metric]
    bins = list(bins)
    if bins != sorted(bins) or len(set(bins)) != len(bins):
        raise ValueError("bins must be strictly ascending")

    xs, ys = paired_values(_select(observations, track), metric, target)
    grouped: list[list[float]] = [[] for _ in range(len(bins) + 1)]
    for x, y in zip(xs, ys):
        grouped[bucket_index(x, bins)].append(y)

    out = []
    for bucket, values in zip(make_buckets(bins), grouped):
        if not values:
            out.append(bucket)
            continue
        out.append(Bucket(
            label=bucket.label,
            lower=bucket.lower,
            upper=bucket.upper,
            count=len(values),
            mean=statistics.mean(values),
            stddev=statistics.stdev(values) if len(values) > 1 else 0.0,
        ))
    return out
