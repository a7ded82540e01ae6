#!/usr/bin/env python
"""
Build a monthly demand matrix from a recurring task table.

Usage:
    python scripts/build_demand_matrix.py data/tasks.csv --start 2025-01
    python scripts/build_demand_matrix.py data/tasks.csv --start 2025-01 --months 6 --mode staff
    python scripts/build_demand_matrix.py data/tasks.csv --start 2025-01 --mode client --rates rates.csv
"""
import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from src.config import FORMAT_CURRENCY, FORMAT_HOURS, FORMAT_RATE, GROUPING_MODES, config
from src.data.loader import _load_file, load_tasks
from src.metrics.client_revenue import client_revenue_frame, round_grand_totals
from src.metrics.demand_matrix import build_demand_matrix


def _load_mapping(path: str, key: str, value: str) -> dict:
    df = _load_file(Path(path))
    if df is None:
        print(f"ERROR: Could not load {path}")
        sys.exit(1)
    return dict(zip(df[key].astype(str), df[value]))


def main():
    parser = argparse.ArgumentParser(description="Build a monthly demand matrix")
    parser.add_argument("path", type=str, help="Task table (.csv or .parquet)")
    parser.add_argument("--start", type=str, required=True, help="First month (YYYY-MM)")
    parser.add_argument(
        "--months",
        type=int,
        default=config.forecast_months,
        help="Number of months to forecast"
    )
    parser.add_argument("--mode", choices=GROUPING_MODES, default="skill", help="Grouping mode")
    parser.add_argument("--rates", type=str, default=None,
                        help="Client hourly rates table with client and hourly_rate columns")
    parser.add_argument("--fee-rates", type=str, default=None,
                        help="Skill fee rates table with skill and fee_rate columns")
    parser.add_argument("--output", "-o", type=str, default=None, help="Write the long-format matrix to csv")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    tasks = load_tasks(Path(args.path))
    if tasks is None:
        print(f"ERROR: Could not load task table from {args.path}")
        print("Please ensure the file exists as .parquet or .csv")
        sys.exit(1)

    print(f"Loaded {len(tasks):,} tasks from {args.path}")
    print()

    rates = _load_mapping(args.rates, "client", "hourly_rate") if args.rates else None
    fee_rates = _load_mapping(args.fee_rates, "skill", "fee_rate") if args.fee_rates else None

    try:
        matrix = build_demand_matrix(
            tasks,
            start_month=args.start,
            month_count=args.months,
            grouping_mode=args.mode,
            client_hourly_rates=rates,
            skill_fee_rates=fee_rates,
        )
    except Exception as e:
        print(f"ERROR building demand matrix: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    report = matrix.validation_report
    print("=" * 60)
    print(f"Demand by {args.mode}: {matrix.months[0] if matrix.months else '-'} "
          f"to {matrix.months[-1] if matrix.months else '-'}")
    print("=" * 60)
    print(f"Valid tasks: {report.valid_count:,}   Excluded: {report.invalid_count:,}")
    print()

    with pd.option_context("display.max_columns", None, "display.width", 200):
        print(matrix.pivot_frame())
    print()
    print(f"Total demand: {FORMAT_HOURS.format(matrix.total_hours)} hours")

    if matrix.grand_totals is not None:
        totals = round_grand_totals(matrix.grand_totals)
        print()
        print(client_revenue_frame(matrix.client_revenue).to_string(index=False))
        print()
        print(f"Expected revenue: {FORMAT_CURRENCY.format(totals.revenue)}")
        print(f"Suggested revenue: {FORMAT_CURRENCY.format(totals.suggested_revenue)}")
        print(f"Expected less suggested: {FORMAT_CURRENCY.format(totals.expected_less_suggested)}")
        print(f"Average rate: {FORMAT_RATE.format(totals.average_rate)}")

    if args.output:
        matrix.to_frame().to_csv(args.output, index=False)
        print()
        print(f"✓ Wrote {args.output}")


if __name__ == "__main__":
    main()
