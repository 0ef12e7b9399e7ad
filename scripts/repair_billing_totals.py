#!/usr/bin/env python3
"""
Re-sum billing_details into monthly_billing totals.

Usage: python scripts/repair_billing_totals.py --year 2025 [--month 3]
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from agency_finance.services.reconcile_service import reconcile_period
from agency_finance.utils.validators import parse_period


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--year", type=int, required=True)
    ap.add_argument("--month", type=int, default=None)
    args = ap.parse_args()
    year, month = parse_period(args.year, args.month or 1)

    summary = reconcile_period(year, month if args.month else None)
    print(
        f"checked={summary['checked']} updated={summary['updated']} "
        f"skipped={summary['skipped']} failed={summary['failed']}"
    )
    for c in summary["changes"]:
        print(f"  {c['billing_id']} month={c['fiscal_month']} {c['old']} -> {c['new']}")
    sys.exit(1 if summary["failed"] else 0)


if __name__ == "__main__":
    main()
