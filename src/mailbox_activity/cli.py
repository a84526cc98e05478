"""Command-line interface for Mailbox Activity.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import pydantic
import structlog

from mailbox_activity import __version__
from mailbox_activity.agent.activity_agent import MailboxActivityAgent
from mailbox_activity.config import get_settings
from mailbox_activity.exceptions import ConfigurationError, MailboxActivityError
from mailbox_activity.models import ActivityRequest, MailboxScope

logger = structlog.get_logger()


def _add_range_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--start", default=None, help="Inclusive start date (YYYY-MM-DD)")
    parser.add_argument("--end", default=None, help="Inclusive end date (YYYY-MM-DD)")
    parser.add_argument(
        "--scope",
        choices=[s.value for s in MailboxScope],
        default=MailboxScope.ALL_MAIL.value,
        help="Search the inbox, sent mail, or all mail (default: all)",
    )


def _add_directory_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--domain", default=None, help="Workspace domain (default: settings)")
    parser.add_argument("--admin", default=None, help="Admin email (default: settings)")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mailbox-activity", description="Mailbox Activity")
    subparsers = parser.add_subparsers(dest="command", required=True)

    activity_parser = subparsers.add_parser(
        "activity",
        help="Classify one page of threads for a mailbox",
    )
    activity_parser.add_argument("--mailbox", required=True, help="Mailbox email address")
    _add_range_arguments(activity_parser)
    activity_parser.add_argument(
        "--cursor",
        default=None,
        help="Continuation cursor printed as nextCursor by a previous call",
    )

    users_parser = subparsers.add_parser("users", help="List users of the workspace domain")
    _add_directory_arguments(users_parser)

    sweep_parser = subparsers.add_parser(
        "sweep",
        help="First page of activity for every active user in the domain",
    )
    _add_directory_arguments(sweep_parser)
    _add_range_arguments(sweep_parser)

    return parser


def _request_from_args(args: argparse.Namespace, mailbox: str) -> ActivityRequest:
    return ActivityRequest(
        mailbox=mailbox,
        start_date=args.start,
        end_date=args.end,
        scope=MailboxScope(args.scope),
        cursor=getattr(args, "cursor", None),
    )


def _directory_target(args: argparse.Namespace) -> tuple[str, str | None]:
    settings = get_settings()
    domain = args.domain or settings.workspace_domain
    if not domain:
        raise ConfigurationError("A workspace domain is required (--domain).")
    return domain, args.admin or settings.admin_email


async def _cmd_activity(args: argparse.Namespace) -> int:
    agent = MailboxActivityAgent(get_settings())
    result = await agent.fetch_page(_request_from_args(args, args.mailbox))
    print(json.dumps(result.to_payload(), indent=2))
    return 0


async def _cmd_users(args: argparse.Namespace) -> int:
    domain, admin_email = _directory_target(args)
    agent = MailboxActivityAgent(get_settings())
    for user in await agent.list_users(domain, admin_email):
        status = "SUSPENDED" if user.suspended else "ACTIVE"
        print(f"{status}\t{user.email}\t{user.full_name}")
    return 0


async def _cmd_sweep(args: argparse.Namespace) -> int:
    domain, admin_email = _directory_target(args)
    agent = MailboxActivityAgent(get_settings())

    users = await agent.list_users(domain, admin_email)
    # The template mailbox is replaced per user.
    reports = await agent.sweep(users, _request_from_args(args, admin_email or domain))

    payload = [
        {
            "employee_name": r.employee_name,
            "employee_email": r.employee_email,
            "department": r.department,
            "activity": r.activity.to_payload() if r.activity else None,
            "error": r.error,
        }
        for r in reports
    ]
    print(json.dumps(payload, indent=2))
    return 0


_COMMANDS = {
    "activity": _cmd_activity,
    "users": _cmd_users,
    "sweep": _cmd_sweep,
}


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Mailbox Activity CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, 1 for a handled failure, 2 for usage errors).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()

    # Configure logging; stdout carries the JSON report, so logs go to stderr.
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )

    logger.info("mailbox_activity_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    command = _COMMANDS.get(parsed.command)
    if command is None:
        logger.error("unknown_command", command=parsed.command)
        return 2

    try:
        return asyncio.run(command(parsed))
    except pydantic.ValidationError as exc:
        logger.error("invalid_request", error=str(exc))
        return 2
    except MailboxActivityError as exc:
        logger.error("command_failed", command=parsed.command, error=str(exc))
        return 1


if __name__ == "__main__":
    sys.exit(main())
