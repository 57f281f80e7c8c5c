from __future__ import annotations

import argparse
import logging
import re
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from worldtidy.app import tidy_world
from worldtidy.config import ConfigurationError, configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Discover and tidy the wikis on wikibase.world")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output, including HTTP and SQL chatter",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    tidy = subparsers.add_parser("tidy", help="Check every active wiki and fix its item")
    tidy.add_argument(
        "filter",
        nargs="?",
        default=None,
        help="Regular expression; only wikis whose URL or item id matches are processed",
    )
    tidy.add_argument(
        "--dry-run",
        action="store_true",
        help="Read everything but only log the edits that would be made",
    )

    return parser.parse_args(list(argv))


def _validate_filter(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        re.compile(value)
    except re.error as exc:
        raise ValueError(f"Invalid filter expression {value!r}: {exc}") from exc
    return value


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        site_filter = _validate_filter(parsed_args.filter)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "tidy":
            report = tidy_world(site_filter=site_filter, dry_run=parsed_args.dry_run)
            log.info(
                "Tidy finished: discovered=%s, alive=%s, dead=%s, failed=%s",
                report.discovered,
                report.alive,
                report.dead,
                report.failed,
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during tidy")
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
