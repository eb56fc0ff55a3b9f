#!/usr/bin/env python3
"""
Run the booking backfill once (for cron) without going through HTTP.

Usage:
  python3 scripts/sync_bookings.py
"""

from __future__ import annotations

import argparse
import logging
import sys

from booking_engine.application.exceptions import BookingEngineError
from booking_engine.wiring.dependencies import get_sync_use_case


def main() -> int:
    parser = argparse.ArgumentParser(description="Backfill scheduled bookings into the booking store")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s:%(name)s:%(message)s")

    try:
        summary = get_sync_use_case().sync()
    except BookingEngineError as e:
        print(f"Sync failed: {e}", file=sys.stderr)
        return 1

    print(f"created={summary.created} updated={summary.updated} total_events={summary.total_events}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
