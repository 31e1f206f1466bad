#!/usr/bin/env python3
"""Print the bucket summary and suggestions of a month."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bucket_planner import lifecycle
from bucket_planner.config import CURRENCY, configure_logging
from bucket_planner.db import open_repository
from bucket_planner.exceptions import MonthNotFoundError
from bucket_planner.money import format_currency
from bucket_planner.summary import bucket_frame


def main(year: int, month: int, db_path: Optional[str] = None) -> int:
    repo = open_repository(db_path)
    try:
        record = lifecycle.get_month(repo, year, month)
    except MonthNotFoundError as exc:
        print(exc)
        return 1

    snapshot = lifecycle.month_snapshot(repo, record)
    status = 'closed' if record.is_closed else 'open'
    print(f"Month {record.label} ({status})")
    print(f"Available cash: {format_currency(snapshot.distribution.available_cash, CURRENCY)}")
    print(f"Cash flow: {format_currency(snapshot.overview['cash_flow'], CURRENCY)}")
    print("\nBuckets:")
    print(bucket_frame(snapshot.buckets).to_string(index=False))
    print("\nSuggestions:")
    for suggestion in snapshot.suggestions:
        print(f"  [{suggestion.tone.value}] {suggestion.message}")
    return 0


if __name__ == '__main__':
    today = datetime.now()
    parser = argparse.ArgumentParser(description='Show the bucket summary of a month.')
    parser.add_argument('--year', type=int, default=today.year, help='Calendar year')
    parser.add_argument('--month', type=int, default=today.month, help='Calendar month (1-12)')
    parser.add_argument('--db', default=None, help='Path to the SQLite database')
    parser.add_argument('--log-level', default=None, help='Logging level')
    args = parser.parse_args()
    configure_logging(args.log_level)
    sys.exit(main(args.year, args.month, args.db))
