"""API endpoints for reconciled races and staking simulation."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from racedesk.desk import RaceDesk, get_desk
from racedesk.scoring.value import rank_entrants, value_level

router = APIRouter()


class SimulateRequest(BaseModel):
    start: date
    end: date
    stake: Optional[float] = None
    mode: Optional[str] = None  # win, place
    threshold: Optional[float] = None
    settled_only: bool = False


@router.get("/races/{race_date}/{track}/{race_number}")
async def get_race(
    race_date: date, track: str, race_number: int, desk: RaceDesk = Depends(get_desk)
):
    """Fused entrants for one race, best value first, with issues and status."""
    report = await desk.report(race_date, track, race_number)
    data = report.to_dict()
    data["entrants"] = [
        {**entrant.to_dict(), "value_score": round(value, 2), "value_level": value_level(value, desk.config)}
        for entrant, value in rank_entrants(report.entrants)
    ]
    return data


@router.get("/races/{race_date}/{track}")
async def get_meeting(race_date: date, track: str, desk: RaceDesk = Depends(get_desk)):
    """Per-race summary for a meeting."""
    reports = await desk.reconcile_meeting(race_date, track)
    if not reports:
        raise HTTPException(status_code=404, detail="Meeting not found")
    return {
        "race_date": race_date.isoformat(),
        "track": track,
        "races": [
            {
                "race_number": number,
                "status": report.status.value,
                "entrants": len(report.entrants),
                "scratched": sum(1 for e in report.entrants if e.is_scratched),
                "value_plays": report.value_play_count,
                "issues": len(report.issues),
            }
            for number, report in sorted(reports.items())
        ],
    }


@router.post("/simulate")
async def simulate_range(body: SimulateRequest, desk: RaceDesk = Depends(get_desk)):
    """Fixed-stake simulation over every stored race in a date range."""
    if body.end < body.start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    try:
        config = desk.staking_config(stake=body.stake, mode=body.mode, threshold=body.threshold)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    summary = await desk.simulate_range(body.start, body.end, config, settled_only=body.settled_only)
    return {
        "start": body.start.isoformat(),
        "end": body.end.isoformat(),
        "mode": config.mode,
        "stake": config.stake,
        "threshold": config.threshold,
        "settled_only": body.settled_only,
        **summary.to_dict(),
    }
