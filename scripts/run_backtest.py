#!/usr/bin/env python3
"""Replay the fixed-stake value strategy over stored races.

Reconciles every stored meeting in the date range, applies scratchings and
results, and prints the staking summary.

Usage:
    python scripts/run_backtest.py --start 2025-01-01 --end 2025-03-31
    python scripts/run_backtest.py --start 2025-01-01 --end 2025-03-31 --mode place
    python scripts/run_backtest.py --start 2025-01-01 --settled-only
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from racedesk.config import au_today, settings
from racedesk.desk import build_desk
from racedesk.models.database import init_db

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


async def main(args) -> int:
    args.end = args.end or au_today()
    await init_db()
    desk = build_desk()
    try:
        config = desk.staking_config(stake=args.stake, mode=args.mode, threshold=args.threshold)
        start_time = time.time()
        summary = await desk.simulate_range(
            args.start, args.end, config, settled_only=args.settled_only
        )
    finally:
        await desk.close()

    logger.info(f"Backtest finished in {time.time() - start_time:.1f}s")

    print(f"\nBacktest {args.start} -> {args.end} ({config.mode}, ${config.stake:.2f} stakes, value > {config.threshold})")
    print("-" * 60)
    print(f"  Bets:      {summary.bets}  (pending {summary.pending}, void {summary.voided})")
    print(f"  Wins:      {summary.wins}  ({summary.win_rate:.1f}%)")
    print(f"  Placings:  {summary.placings}")
    print(f"  Staked:    ${summary.total_staked:,.2f}")
    print(f"  Returned:  ${summary.total_returned:,.2f}")
    print(f"  Profit:    ${summary.profit:,.2f}")
    print(f"  ROI:       {summary.roi:+.1f}%")

    if args.output:
        with open(args.output, "w") as f:
            json.dump(summary.to_dict(), f, indent=2)
        print(f"\nSaved to {args.output}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Fixed-stake value backtest over stored races")
    parser.add_argument("--start", type=date.fromisoformat, required=True, help="First race date (YYYY-MM-DD)")
    parser.add_argument("--end", type=date.fromisoformat, default=None, help="Last race date (default today)")
    parser.add_argument("--stake", type=float, default=None, help=f"Stake per bet (default {settings.stake})")
    parser.add_argument("--mode", choices=["win", "place"], default=None)
    parser.add_argument("--threshold", type=float, default=None, help="Value score threshold")
    parser.add_argument("--settled-only", action="store_true", help="Skip races without results")
    parser.add_argument("--output", default=None, help="Save summary to JSON")
    sys.exit(asyncio.run(main(parser.parse_args())))
