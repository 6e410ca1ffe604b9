from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from cardsync.app import mirror_card_by_slug, translate_events_file, verify_event_file
from cardsync.config import configure_logging
from cardsync.domain.errors import EventValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Translate and mirror integration events")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    verify = subparsers.add_parser("verify", help="Check a raw webhook body at the boundary")
    verify.add_argument("source", type=str, help="Integration slug, e.g. flowdock")
    verify.add_argument("file", type=Path, help="File holding the raw request body")
    verify.add_argument(
        "--header",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Request header; may be repeated",
    )

    translate = subparsers.add_parser(
        "translate",
        help="Translate recorded events and import them",
    )
    translate.add_argument("source", type=str, help="Integration slug, e.g. outreach")
    translate.add_argument("events", type=Path, help="JSON lines file of recorded deliveries")

    mirror = subparsers.add_parser("mirror", help="Write one stored card back to a remote")
    mirror.add_argument("source", type=str, help="Integration slug, e.g. outreach")
    mirror.add_argument("slug", type=str, help="Slug of the stored card")
    mirror.add_argument(
        "--type",
        dest="card_type",
        type=str,
        default="contact",
        help="Card type of the stored card (default: %(default)s)",
    )

    return parser.parse_args(list(argv))


def _parse_headers(values: Sequence[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        name, sep, content = value.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Invalid header: {value}")
        headers[name.strip()] = content.strip()
    return headers


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.getLevelNamesMapping()[parsed_args.log_level])
        headers = _parse_headers(parsed_args.header) if parsed_args.command == "verify" else {}
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "verify":
            try:
                verify_event_file(parsed_args.source, parsed_args.file, headers)
            except EventValidationError as exc:
                log.warning("Rejected: %s", exc)
                sys.exit(1)
        elif parsed_args.command == "translate":
            results = translate_events_file(parsed_args.events, source=parsed_args.source)
            if any(not result.ok for result in results):
                sys.exit(1)
        elif parsed_args.command == "mirror":
            mirror_card_by_slug(
                parsed_args.source,
                parsed_args.slug,
                card_type=parsed_args.card_type,
            )
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
