"""SendGrid Client -- Command Line Entry Point.

Thin wrapper around the client for operators and smoke tests:

    1. Load options (config.yaml, then SENDGRID_* env vars, then flags)
    2. Build a live or simulation client
    3. Run one operation and report the outcome

Usage::

    # Send an email described by a JSON file (service field names):
    python -m sendgrid_client.main send-email message.json

    # Import contacts from a spreadsheet and upsert them into a list:
    python -m sendgrid_client.main store-contacts contacts.xlsx --list 1234

    # Look a contact up:
    python -m sendgrid_client.main fetch-contact --email jane@example.com

    # Render the request without sending it:
    python -m sendgrid_client.main --simulate --verbose send-email message.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .client import MailClient, new_client
from .config import (
    Option,
    apply_options,
    describe,
    endpoint,
    load_api_key,
    load_options,
    override_address,
    simulate,
    verbose,
)
from .contact_loader import load_contacts
from .errors import NotFound, SendgridError
from .models import Email

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_FOUND = 2


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_send_email(client: MailClient, args: argparse.Namespace) -> int:
    path = Path(args.path)
    data = json.loads(path.read_text(encoding="utf-8"))
    email = Email.from_dict(data)
    logger.info(
        "Sending template %s to %d recipient(s)",
        email.template_id or "(none)", len(email.recipients),
    )
    client.send_email(email)
    print("Email accepted")
    return EXIT_OK


def cmd_store_contacts(client: MailClient, args: argparse.Namespace) -> int:
    result = load_contacts(args.path, sheet=args.sheet)
    for warning in result.warnings:
        logger.warning(warning)
    if not result.contacts:
        logger.warning("No contacts to store")
        return EXIT_OK
    client.store_contacts(result.contacts, args.list_ids)
    print(f"Stored {len(result.contacts)} contacts")
    return EXIT_OK


def cmd_fetch_contact(client: MailClient, args: argparse.Namespace) -> int:
    if args.id:
        contact = client.fetch_contact(args.id)
    else:
        contact = client.fetch_contact_by_email(args.email)
    print(json.dumps(contact.to_dict(), indent=2, ensure_ascii=False))
    return EXIT_OK


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sendgrid-client",
        description="SendGrid client - send templated email and manage contacts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  sendgrid-client send-email message.json\n"
            "  sendgrid-client store-contacts contacts.xlsx --list 1234\n"
            "  sendgrid-client fetch-contact --email jane@example.com\n"
            "  sendgrid-client --simulate --verbose send-email message.json\n"
        ),
    )
    parser.add_argument("--config", type=str, default=None,
                        help="Path to a YAML config file")
    parser.add_argument("--api-key", type=str, default=None,
                        help="API key (default: SENDGRID_API_KEY or config file)")
    parser.add_argument("--endpoint", type=str, default=None,
                        help="API base URL")
    parser.add_argument("--override-address", type=str, default=None,
                        help="Redirect every recipient to this address")
    parser.add_argument("--simulate", action="store_true",
                        help="Render requests instead of sending them")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Trace requests and enable DEBUG logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p_send = sub.add_parser("send-email", help="Send an email from a JSON file")
    p_send.add_argument("path", help="Email JSON file")
    p_send.set_defaults(func=cmd_send_email)

    p_store = sub.add_parser("store-contacts", help="Upsert contacts from a spreadsheet")
    p_store.add_argument("path", help=".xlsx or .csv file")
    p_store.add_argument("--list", dest="list_ids", action="append", default=[],
                         help="List ID to add the contacts to (repeatable)")
    p_store.add_argument("--sheet", default=None, help="Worksheet name")
    p_store.set_defaults(func=cmd_store_contacts)

    p_fetch = sub.add_parser("fetch-contact", help="Look up a single contact")
    group = p_fetch.add_mutually_exclusive_group(required=True)
    group.add_argument("--id", help="External contact ID")
    group.add_argument("--email", help="Contact email address")
    p_fetch.set_defaults(func=cmd_fetch_contact)

    return parser


def options_from_args(args: argparse.Namespace) -> list[Option]:
    """Config file and environment first, command line flags last."""
    opts = load_options(args.config)
    if args.endpoint:
        opts.append(endpoint(args.endpoint))
    if args.override_address is not None:
        opts.append(override_address(args.override_address))
    if args.simulate:
        opts.append(simulate(True))
    if args.verbose:
        opts.append(verbose(True))
    return opts


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0 = success, 1 = error, 2 = contact not found).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )

    opts = options_from_args(args)
    for line in describe(apply_options(*opts)):
        logger.debug(line)

    api_key = args.api_key or load_api_key(args.config)
    try:
        with new_client(api_key, *opts) as client:
            return args.func(client, args)
    except NotFound:
        print("Contact not found")
        return EXIT_NOT_FOUND
    except SendgridError as exc:
        logger.error("Request failed: %s", exc)
        print(f"\nERROR: {exc}")
        return EXIT_ERROR
    except FileNotFoundError as exc:
        logger.error("File not found: %s", exc)
        print(f"\nERROR: {exc}")
        return EXIT_ERROR
    except ValueError as exc:
        logger.error("Data error: %s", exc)
        print(f"\nERROR: {exc}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
