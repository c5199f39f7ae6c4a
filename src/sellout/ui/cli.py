# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from sellout.app import delete_sales_by_filter, delete_sales_by_keys_file, ingest_sales_file
from sellout.config import configure_logging
from sellout.domain.model import blank_to_none

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected an integer, got {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {parsed}")
    return parsed


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile sell-out extracts with the store")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Ingest a JSON-lines file of sales rows")
    ingest.add_argument("file", type=Path, help="JSON-lines file, one row per line")
    ingest.add_argument(
        "--details",
        action="store_true",
        help="Include per-row inserted/updated details in the report",
    )

    delete_keys = subparsers.add_parser(
        "delete-keys",
        help="Delete sales rows by (year, month, barcode, pdv_code) keys",
    )
    delete_keys.add_argument("file", type=Path, help="JSON-lines file, one key per line")
    delete_keys.add_argument(
        "--max",
        dest="target_max",
        type=_positive_int,
        default=None,
        help="Maximum number of keys processed in one invocation (defaults to config)",
    )

    delete_filter = subparsers.add_parser(
        "delete-filter",
        help="Delete sales rows matching a filter in capped rounds",
    )
    delete_filter.add_argument("--year", type=int, help="Sale year")
    delete_filter.add_argument("--month", type=int, help="Sale month (1-12)")
    delete_filter.add_argument("--brand", type=str, help="Brand name")
    delete_filter.add_argument("--pdv-code", type=str, help="Point-of-sale code")
    delete_filter.add_argument(
        "--round-size",
        type=_positive_int,
        default=None,
        help="Rows deleted per round (defaults to config)",
    )
    delete_filter.add_argument(
        "--max-total",
        type=_positive_int,
        default=None,
        help="Stop after deleting this many rows",
    )

    args = parser.parse_args(list(argv))
    if args.command == "delete-filter":
        args.brand = blank_to_none(args.brand)
        args.pdv_code = blank_to_none(args.pdv_code)
        if all(
            value is None for value in (args.year, args.month, args.brand, args.pdv_code)
        ):
            raise ValueError(
                "delete-filter needs at least one of --year, --month, --brand or --pdv-code"
            )
        if args.month is not None and not 1 <= args.month <= 12:
            raise ValueError(f"Invalid month: {args.month}")
    return args


def _emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "ingest":
            report = ingest_sales_file(parsed_args.file, collect_details=parsed_args.details)
            _emit(report.to_dict(include_details=parsed_args.details))
            if report.failed:
                sys.exit(1)
        elif parsed_args.command == "delete-keys":
            result = delete_sales_by_keys_file(parsed_args.file, target_max=parsed_args.target_max)
            _emit(result.to_dict())
        elif parsed_args.command == "delete-filter":
            result = delete_sales_by_filter(
                year=parsed_args.year,
                month=parsed_args.month,
                brand=parsed_args.brand,
                pdv_code=parsed_args.pdv_code,
                round_size=parsed_args.round_size,
                max_total=parsed_args.max_total,
            )
            _emit(result.to_dict())
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
