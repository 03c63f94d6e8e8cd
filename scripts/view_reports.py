#!/usr/bin/env python3
"""
Print the four tracking reports from persisted data.

Assumes tables and data already exist (run seed_data.py first).  Prints the
high-activity employees, every assignment, the bonus routine output and the
department payroll totals with the result of the two-path comparison.

Usage:
    python3 scripts/view_reports.py
    python3 scripts/view_reports.py --config my_config.yaml --min-count 1
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 72


def banner(title: str) -> None:
    print()
    print("=" * W)
    print(f"  {title}")
    print("=" * W)


def fmt_amount(amount) -> str:
    return f"{amount:>14,.2f}"


def print_high_activity(employees, min_count) -> None:
    banner(f"Employees with more than {min_count} active projects")
    if not employees:
        print("  (none)")
    for employee in employees:
        print(
            f"  {employee.name:<30} {employee.qualifying_project_count:>3} projects"
        )


def print_assignments(rows) -> None:
    banner("Employee assignments")
    if not rows:
        print("  (none)")
    for row in rows:
        print(
            f"  {row.employee_name:<24} {row.project_name:<24} "
            f"{row.project_deadline:%Y-%m-%d}"
        )


def print_bonuses(bonuses) -> None:
    banner("Bonuses")
    if not bonuses:
        print("  (none)")
    for bonus in bonuses:
        print(f"  {bonus.employee_name:<40} {fmt_amount(bonus.bonus_amount)}")


def print_payroll(payroll) -> None:
    banner(f"Department payroll (grouped by {payroll.grouping.value})")
    for key, total in sorted(payroll.aggregate_totals.items(), key=lambda kv: str(kv[0])):
        print(f"  {str(key):<40} {fmt_amount(total)}")
    print("-" * W)
    if payroll.is_consistent:
        print("  Graph and aggregate totals agree.")
    else:
        print("  WARNING: graph and aggregate totals diverge:")
        for divergence in payroll.consistency.divergences:
            print(
                f"    {str(divergence.key):<30} {divergence.kind.value:<22} "
                f"diff {divergence.difference}"
            )
    if payroll.conflated_names:
        print(f"  NOTE: shared department names: {', '.join(payroll.conflated_names)}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Print the tracking reports.")
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--database-url", type=str, help="Override database.url")
    parser.add_argument(
        "--min-count", type=int, help="Override reporting.min_project_count"
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Emit structured logs to stderr"
    )
    args = parser.parse_args(argv)

    from tracking_config import get_active_config
    from tracking_kernel.db.engine import Database
    from tracking_kernel.exceptions import TrackingKernelError
    from tracking_kernel.logging_config import configure_logging
    from tracking_kernel.services.report_service import ReportService

    configure_logging(level=logging.INFO if args.verbose else logging.WARNING)

    try:
        config = get_active_config(args.config)
        if args.database_url:
            config = replace(config, database=replace(config.database, url=args.database_url))
        if args.min_count is not None:
            config = replace(
                config, reporting=replace(config.reporting, min_project_count=args.min_count)
            )
    except TrackingKernelError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 2

    database = Database(config.database)
    try:
        report = ReportService(database, config=config).generate_report()
    except TrackingKernelError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    finally:
        database.dispose()

    print_high_activity(report.high_activity_employees, report.min_project_count)
    print_assignments(report.assignments)
    print_bonuses(report.bonuses)
    print_payroll(report.payroll)

    for warning in report.warnings:
        print(f"  WARNING: {warning}", file=sys.stderr)
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
