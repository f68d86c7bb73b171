from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from casetrack.app import send_daily_digest, sync_process_report
from casetrack.config import ConfigurationError, configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Not an integer: {value}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"Must be positive: {value}")
    return parsed


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Mirror provider cases and report stage changes")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Reconcile the provider process report")
    sync.add_argument(
        "--report-id",
        type=_positive_int,
        default=None,
        help="Provider report to fetch (defaults to REDELEX_REPORT_ID)",
    )
    sync.add_argument(
        "--batch-size",
        type=_positive_int,
        default=None,
        help="Records written per commit (defaults to config)",
    )

    digest = subparsers.add_parser("digest", help="Mail the daily stage change digest")
    digest.add_argument(
        "--date",
        type=str,
        default=None,
        help="YYYY-MM-DD; the digest covers the day before it (defaults to today)",
    )

    return parser.parse_args(list(argv))


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value}") from exc


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    digest_date: date | None = None
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "digest" and parsed_args.date is not None:
            digest_date = _parse_date(parsed_args.date)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "sync":
            result = sync_process_report(
                report_id=parsed_args.report_id,
                batch_size=parsed_args.batch_size,
            )
            if result.batch_failures:
                log.warning("%s batches had skipped records", len(result.batch_failures))
        elif parsed_args.command == "digest":
            digest = send_daily_digest(date=digest_date)
            if digest.failed:
                log.warning("%s digest mails failed and will be retried", digest.failed)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
