#!/usr/bin/env python3
"""
Report the state of the workflow tables.

Prints totals, requests that have no assessment, the stage distribution,
assessments whose linkage contradicts their stage and legacy statuses that
drifted from the stage.

Usage:
    python3 scripts/check_db_state.py [--database-url URL] [--json] [--strict]

The database URL defaults to $DATABASE_URL.  With --strict the exit code is
2 when any finding is reported.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 60


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check workflow database consistency.")
    parser.add_argument(
        "--database-url",
        default=os.environ.get("DATABASE_URL"),
        help="SQLAlchemy database URL (default: $DATABASE_URL)",
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 2 if any inconsistency is found",
    )
    return parser


def report_to_dict(report) -> dict:
    return {
        "total_requests": report.total_requests,
        "total_assessments": report.total_assessments,
        "requests_without_assessment": list(report.requests_without_assessment),
        "stage_distribution": {stage.value: n for stage, n in report.stage_distribution.items()},
        "gate_findings": [
            {
                "assessment_number": f.assessment_number,
                "stage": f.stage.value,
                "field": f.field,
                "expected_state": f.expected_state,
            }
            for f in report.gate_findings
        ],
        "status_findings": [
            {
                "assessment_number": f.assessment_number,
                "stage": f.stage.value,
                "status": f.status,
                "expected_status": f.expected_status,
            }
            for f in report.status_findings
        ],
        "is_consistent": report.is_consistent,
    }


def print_report(report, out=None) -> None:
    out = out or sys.stdout
    print("=" * W, file=out)
    print("  WORKFLOW DATABASE STATE", file=out)
    print("=" * W, file=out)
    print(f"  Requests:    {report.total_requests}", file=out)
    print(f"  Assessments: {report.total_assessments}", file=out)

    print("\n  Requests without an assessment:", file=out)
    if report.requests_without_assessment:
        for number in report.requests_without_assessment:
            print(f"    - {number}", file=out)
    else:
        print("    (none)", file=out)

    print("\n  Stage distribution:", file=out)
    for stage, count in report.stage_distribution.items():
        if count:
            print(f"    {stage.value:<26} {count:>6}", file=out)

    print("\n  Linkage findings:", file=out)
    if report.gate_findings:
        for f in report.gate_findings:
            print(
                f"    {f.assessment_number} [{f.stage.value}] {f.field} should be {f.expected_state}",
                file=out,
            )
    else:
        print("    (none)", file=out)

    print("\n  Legacy status findings:", file=out)
    if report.status_findings:
        for f in report.status_findings:
            print(
                f"    {f.assessment_number} [{f.stage.value}] status={f.status} expected={f.expected_status}",
                file=out,
            )
    else:
        print("    (none)", file=out)
    print("=" * W, file=out)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if not args.database_url:
        print("  ERROR: no database URL (use --database-url or set DATABASE_URL)", file=sys.stderr)
        return 1

    logging.disable(logging.CRITICAL)

    from claimtech_kernel.db.engine import init_engine_from_url, reset_engine, session_scope
    from claimtech_kernel.selectors.consistency_selector import ConsistencySelector

    init_engine_from_url(args.database_url, echo=False)
    try:
        with session_scope() as session:
            report = ConsistencySelector(session).report()
    finally:
        reset_engine()
        logging.disable(logging.NOTSET)

    if args.json:
        print(json.dumps(report_to_dict(report), indent=2))
    else:
        print_report(report)

    if args.strict and not report.is_consistent:
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
