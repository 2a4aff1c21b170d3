"""
Command line interface.

Usage:
    python -m chai_ledger summary snapshot.json
    python -m chai_ledger outstanding snapshot.json --as-of 2024-05-01
    python -m chai_ledger report snapshot.json --template ledger --customer c1 --format csv
"""
from __future__ import annotations
import argparse
import csv
import io
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any, Optional
from loguru import logger

from .config import ChaiLedgerConfig
from .errors import ChaiLedgerError
from .log import configure_logging
from .models import Report
from .snapshot import Snapshot, load_snapshot
from .analytics import (
    build_collection_breakdown,
    build_outstanding_breakdown,
    build_pnl_breakdown,
    compute_transaction_summary,
)
from .reports import TEMPLATES, assemble_report


def report_to_csv(report: Report) -> str:
    """
    Flatten a report into one CSV document.

    Each section is written as its banner lines, a header row and data rows,
    with an empty row between sections.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    for index, section in enumerate(report.sections):
        if index:
            writer.writerow([])
        for line in section.banner:
            writer.writerow([line])
        writer.writerow(section.headers)
        writer.writerows(section.rows)
    return buffer.getvalue()


def _dump(payload: Any) -> str:
    if isinstance(payload, list):
        payload = [item.model_dump(mode="json") for item in payload]
    else:
        payload = payload.model_dump(mode="json")
    return json.dumps(payload, indent=2, ensure_ascii=False)


def run_command(args: argparse.Namespace, snapshot: Snapshot, config: ChaiLedgerConfig) -> str:
    """Run one subcommand against a loaded snapshot and return its output text."""
    if args.command == "summary":
        return _dump(compute_transaction_summary(snapshot.entries))

    if args.command == "collections":
        return _dump(build_collection_breakdown(snapshot.entries, snapshot.customers))

    if args.command == "outstanding":
        summary = compute_transaction_summary(snapshot.entries)
        return _dump(
            build_outstanding_breakdown(
                summary,
                snapshot.entries,
                snapshot.customers,
                as_of=args.as_of,
                country_code=config.country_code,
            )
        )

    if args.command == "pnl":
        return _dump(build_pnl_breakdown(snapshot.batches, snapshot.entries))

    if args.command == "report":
        report = assemble_report(
            args.template,
            snapshot.customers,
            snapshot.entries,
            snapshot.batches,
            customer_id=args.customer,
            config=config,
        )
        if args.format == "csv":
            return report_to_csv(report)
        return _dump(report)

    raise ValueError(f"Unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chai_ledger",
        description="Chai Ledger - Reconciliation and reports for tea trading ledgers",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    def add_command(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("snapshot", help="Snapshot JSON file")
        sub.add_argument("--output", "-o", help="Write output to file instead of stdout")
        return sub

    add_command("summary", "Per-customer and global totals")
    add_command("collections", "Collections grouped by customer")
    outstanding_parser = add_command("outstanding", "Customers with outstanding dues")
    outstanding_parser.add_argument(
        "--as-of",
        type=lambda s: date.fromisoformat(s),
        help="Ignore due dates before this date (YYYY-MM-DD)",
    )
    add_command("pnl", "Inventory profit and loss")

    report_parser = add_command("report", "Assemble a report template")
    report_parser.add_argument(
        "--template", "-t",
        choices=list(TEMPLATES.keys()),
        default="comprehensive",
        help="Report template (default: comprehensive)",
    )
    report_parser.add_argument("--customer", "-c", help="Limit the report to one customer id")
    report_parser.add_argument(
        "--format", "-f",
        choices=["json", "csv"],
        default="json",
        help="Output format (default: json)",
    )

    return parser


# CLI entry point
def main(argv: Optional[list[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = ChaiLedgerConfig.from_env()
    configure_logging(config, verbose=args.verbose)

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Config error: {error}")
        sys.exit(1)

    try:
        snapshot = load_snapshot(args.snapshot)
        output = run_command(args, snapshot, config)
    except ChaiLedgerError as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Command failed: {e}")
        sys.exit(1)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        logger.info(f"Wrote {args.command} output to {args.output}")
    else:
        print(output)


if __name__ == "__main__":
    main()
