"""API endpoints for weather analysis."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from racedesk.analysis.weather import OUTCOME_TARGETS
from racedesk.desk import RaceDesk, get_desk

router = APIRouter()


@router.get("/weather/correlations")
async def weather_correlations(track: Optional[str] = None, desk: RaceDesk = Depends(get_desk)):
    """Correlation matrix of weather metrics vs race outcomes, strongest first."""
    results = await desk.correlations(track=track)
    return {
        "track": track or "all",
        "correlations": [r.to_dict() for r in results],
        "significant": sum(1 for r in results if r.significant),
    }


@router.get("/weather/buckets")
async def weather_buckets(
    metric: str = "wind_speed",
    target: str = "winning_time",
    track: Optional[str] = None,
    desk: RaceDesk = Depends(get_desk),
):
    """Mean outcome per weather band for one metric."""
    if target not in OUTCOME_TARGETS:
        raise HTTPException(status_code=400, detail=f"Invalid target. Use: {', '.join(OUTCOME_TARGETS)}")
    if metric not in desk.config.weather_bins:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid metric. Use: {', '.join(sorted(desk.config.weather_bins))}",
        )
    buckets = await desk.buckets(metric, target, track=track)
    return {
        "metric": metric,
        "target": target,
        "track": track or "all",
        "sample_size": sum(b.count for b in buckets),
        "buckets": [b.to_dict() for b in buckets],
    }
