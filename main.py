#!/usr/bin/env python3
"""
Broker Validator — Entry Point
==============================

Validates a JSON file of scraped broker records and prints the report.

Usage:
    python main.py brokers.json                  # Colored report
    python main.py brokers.json --json           # Report as JSON on stdout
    python main.py brokers.json -o report.json   # Also write the JSON report
    python main.py brokers.json --cleanup        # Show the auto-fix / review plan

The input is either a JSON list of records or an object with a "brokers" list.
Exit code: 0 if no record needs attention, 1 otherwise, 2 on unreadable input.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from broker_validator.cleanup import plan_cleanup, render_cleanup_summary
from broker_validator.config import load_settings
from broker_validator.exceptions import BrokerValidationError
from broker_validator.models import IssueLevel, ValidationReport
from broker_validator.pipeline import BrokerValidationPipeline

# ─── ANSI Color Constants ───────────────────────────────────────────

_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"
_WIDTH = 72

_LEVEL_COLORS = {
    IssueLevel.CRITICAL: _RED,
    IssueLevel.HIGH: _RED,
    IssueLevel.MEDIUM: _YELLOW,
    IssueLevel.LOW: _CYAN,
}


# ─── Input ───────────────────────────────────────────────────────────


def load_records(path: Path) -> list[Any]:
    """Read records from a JSON file (a list, or an object with "brokers")."""
    with path.open(encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict) and "brokers" in data:
        data = data["brokers"]
    return data


# ─── Pretty Printer Helpers ─────────────────────────────────────────


def _print_counts(report: ValidationReport) -> None:
    """Print the issue histogram and per-validator totals."""
    issues = report.issues_by_type
    results = report.validation_results
    print(f"  Missing required:  {issues.missing_required_fields}")
    print(f"  Invalid emails:    {issues.invalid_emails}  "
          f"{_DIM}(review: {results.emails.needs_manual_review}){_RESET}")
    print(f"  Invalid phones:    {issues.invalid_phones}  "
          f"{_DIM}(standardized: {results.phones.cleaned_count}){_RESET}")
    print(f"  Low completeness:  {issues.low_completeness}  "
          f"{_DIM}(average: {results.completeness.average_completeness}%){_RESET}")
    print(f"  In duplicates:     {issues.potential_duplicates}  "
          f"{_DIM}({results.duplicates.duplicates_found} group(s)){_RESET}")


def _print_flagged(report: ValidationReport, limit: int) -> None:
    """Print the worst records, one block per record."""
    flagged = report.records_needing_attention
    for record in flagged[:limit]:
        color = _LEVEL_COLORS[record.severity]
        print(f"\n  {color}{_BOLD}[{record.severity.value}]{_RESET} {record.name} "
              f"{_DIM}({record.record_id}){_RESET}")
        for issue in record.issues:
            print(f"    {_LEVEL_COLORS[issue.severity]}{issue.type}{_RESET}: {issue.description}")

    if len(flagged) > limit:
        print(f"\n  {_DIM}... and {len(flagged) - limit} more records{_RESET}")


# ─── Pretty Printer ─────────────────────────────────────────────────


def print_report(report: ValidationReport, limit: int) -> int:
    """Pretty-print the validation report with ANSI color codes.

    Returns:
        0 if no record needs attention, 1 otherwise.
    """
    summary = report.summary
    print(f"\n{'=' * _WIDTH}")
    print(f"{_BOLD}{_CYAN}  BROKER VALIDATION REPORT{_RESET}")
    print(f"{'=' * _WIDTH}")
    print(f"  Generated:   {report.metadata.generated_at.isoformat(timespec='seconds')}")
    print(f"  Records:     {report.metadata.total_records}")
    print(f"  Clean:       {_GREEN}{summary.records_with_no_issues}{_RESET}")
    print(f"  Attention:   {_YELLOW}{summary.records_needing_attention}{_RESET}")
    print(f"  Quality:     {_BOLD}{report.quality.overall_score}%{_RESET}")
    print(f"{'─' * _WIDTH}")

    for rec in report.quality.recommendations:
        color = _LEVEL_COLORS[rec.priority]
        print(f"  {color}[{rec.priority.value}]{_RESET} {rec.issue}  {_DIM}{rec.action}{_RESET}")
    if report.quality.recommendations:
        print(f"{'─' * _WIDTH}")

    _print_counts(report)

    print(f"{'─' * _WIDTH}")
    _print_flagged(report, limit)

    print(f"\n{'=' * _WIDTH}")
    if summary.records_needing_attention == 0:
        print(f"  {_GREEN}{_BOLD}ALL RECORDS PASSED{_RESET}")
    else:
        print(f"  {_RED}{_BOLD}{summary.records_needing_attention} RECORD(S) NEED ATTENTION"
              f"  --  {summary.total_issues} issue(s){_RESET}")
    print(f"{'=' * _WIDTH}\n")

    return 0 if summary.records_needing_attention == 0 else 1


# ─── Main ────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate scraped broker records.")
    parser.add_argument("input", type=Path, help="JSON file with broker records")
    parser.add_argument("--json", action="store_true", help="print the report as JSON")
    parser.add_argument("-o", "--output", type=Path, help="write the JSON report to this path")
    parser.add_argument("--cleanup", action="store_true", help="print the cleanup plan")
    parser.add_argument("-v", "--verbose", action="store_true", help="log pipeline steps")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the pipeline on a records file and print the report."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings()
        records = load_records(args.input)
        report = BrokerValidationPipeline(settings).run(records)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, BrokerValidationError) as exc:
        print(f"{_RED}error:{_RESET} {exc}", file=sys.stderr)
        return 2

    payload = report.model_dump_json(indent=2)
    if args.output:
        args.output.write_text(payload, encoding="utf-8")

    if args.json:
        print(payload)
        exit_code = 0 if report.summary.records_needing_attention == 0 else 1
    else:
        exit_code = print_report(report, settings.summary_record_limit)

    if args.cleanup:
        print(render_cleanup_summary(plan_cleanup(records)))

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
