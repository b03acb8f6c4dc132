#!/usr/bin/env python3
"""Calculate Pearson correlations between weather metrics and race outcomes.

Reads stored race weather from the record store and prints the correlation
matrix, strongest first.

Usage:
    python scripts/calculate_weather_correlations.py
    python scripts/calculate_weather_correlations.py --track=randwick
    python scripts/calculate_weather_correlations.py --output=correlations.json
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from racedesk.config import au_now, settings
from racedesk.desk import build_desk
from racedesk.models.database import init_db

logging.basicConfig(level=getattr(logging, settings.log_level.upper()), format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def print_matrix(results) -> None:
    print("=" * 80)
    print("WEATHER CORRELATION MATRIX")
    print("=" * 80)
    print(f"{'Weather Metric':<25} {'Target':<20} {'Correlation':>12} {'Sample Size':>12}  Strength")
    print("-" * 80)
    for r in results:
        flag = "*" if r.significant else " "
        print(
            f"{r.metric_name:<25} {r.target_name:<20} {r.pearson_r:>12.3f} "
            f"{r.sample_size:>12d}  {r.strength} {flag}"
        )
    print("=" * 80)
    print(
        f"* = |r| > {settings.significance_r} with n > {settings.significance_n} "
        "(heuristic, not a significance test)"
    )


async def main(track: Optional[str], output: Optional[str]) -> int:
    await init_db()
    desk = build_desk()
    try:
        results = await desk.correlations(track=track)
    finally:
        await desk.close()

    logger.info(f"Track: {track or 'all tracks'}, {len(results)} metric/target pairs with enough data")
    if not results:
        print(f"No metric/target pair has at least {settings.min_sample_size} races with data")
        return 1

    print_matrix(results)

    significant = [r for r in results if r.significant]
    if significant:
        print("\nKey insights:")
        for r in significant[:5]:
            direction = "increases" if r.pearson_r > 0 else "decreases"
            print(f"  - {r.metric_name} {direction} {r.target_name} (r={r.pearson_r:.3f})")
    else:
        print("\nNo significant correlations found")

    if output:
        payload = {
            "timestamp": au_now().isoformat(),
            "track": track or "all",
            "correlations": [r.to_dict() for r in results],
        }
        with open(output, "w") as f:
            json.dump(payload, f, indent=2)
        print(f"\nSaved to {output}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Weather vs outcome correlation matrix")
    parser.add_argument("--track", default=None, help="Restrict to one track")
    parser.add_argument("--output", default=None, help="Save results to JSON")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.track, args.output)))
