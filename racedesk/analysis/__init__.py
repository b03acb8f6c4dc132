"""Weather analysis over stored race observations."""

from racedesk.analysis.weather import (
    OUTCOME_TARGETS,
    WEATHER_METRICS,
    Bucket,
    CorrelationConfig,
    CorrelationResult,
    bucket_analysis,
    correlate,
    correlation_matrix,
    correlation_strength,
    impact_summary,
    pearson,
    weather_impact_score,
)

__all__ = [
    "OUTCOME_TARGETS",
    "WEATHER_METRICS",
    "Bucket",
    "CorrelationConfig",
    "CorrelationResult",
    "bucket_analysis",
    "correlate",
    "correlation_matrix",
    "correlation_strength",
    "impact_summary",
    "pearson",
    "weather_impact_score",
]
