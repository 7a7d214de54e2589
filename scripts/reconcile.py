#!/usr/bin/env python3
"""Fail research stuck in "running". Usage: python -m scripts.reconcile [--stale-minutes N] [--dry-run]"""
import argparse
import datetime as dt
import sys
from pathlib import Path

# Ensure project root on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.config import get_settings
from app.database import SessionLocal, init_db
from app.services.reconciliation import find_stale_running, sweep_stale_running


def main():
    parser = argparse.ArgumentParser(description="Reconcile stale research records")
    parser.add_argument(
        "--stale-minutes",
        type=int,
        default=get_settings().STALE_RUNNING_MINUTES,
        help="Minutes without an update before a running record counts as stuck",
    )
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()

    init_db()
    db = SessionLocal()
    try:
        if args.dry_run:
            stale = find_stale_running(db, dt.timedelta(minutes=args.stale_minutes))
            for record in stale:
                print(f"{record.id}  {record.progress:>3}%  {record.updated_at}  {record.query[:60]}")
            print(f"{len(stale)} stale record(s)")
            return

        stats = sweep_stale_running(db, stale_minutes=args.stale_minutes)
        print(f"Found {stats['found']}, failed {stats['failed']}, skipped {stats['skipped']}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
