"""Gmail search query construction.

Gmail's ``after:`` and ``before:`` operators are both exclusive of the day
they name, so an inclusive ``[start, end]`` range becomes
``after:<start - 1 day> before:<end + 1 day>``. Date arithmetic is done on
naive calendar dates; converting through epoch milliseconds shifts days
around DST changes and UTC offsets.
"""

from __future__ import annotations

from datetime import date, timedelta

from mailbox_activity.models import MailboxScope

BASE_EXCLUSIONS: tuple[str, ...] = ("-in:trash", "-in:spam", "-in:drafts")

_SCOPE_CLAUSES: dict[MailboxScope, str | None] = {
    MailboxScope.INBOX_ONLY: "label:INBOX",
    MailboxScope.SENT_ONLY: "label:SENT",
    MailboxScope.ALL_MAIL: None,
}


def format_query_date(value: date) -> str:
    """Format a date the way Gmail search expects it (YYYY/MM/DD)."""
    return value.strftime("%Y/%m/%d")


def build_search_query(
    scope: MailboxScope = MailboxScope.ALL_MAIL,
    start_date: date | None = None,
    end_date: date | None = None,
) -> str:
    """Build a Gmail search string for a scope and inclusive date range.

    Args:
        scope: Which part of the mailbox to search.
        start_date: First day to include, or None for no lower bound.
        end_date: Last day to include, or None for no upper bound.

    Returns:
        Space-joined Gmail query, e.g.
        ``-in:trash -in:spam -in:drafts label:SENT after:2024/11/30 before:2024/12/29``.
    """

    clauses = list(BASE_EXCLUSIONS)

    scope_clause = _SCOPE_CLAUSES[MailboxScope(scope)]
    if scope_clause:
        clauses.append(scope_clause)

    if start_date is not None:
        clauses.append(f"after:{format_query_date(start_date - timedelta(days=1))}")
    if end_date is not None:
        clauses.append(f"before:{format_query_date(end_date + timedelta(days=1))}")

    return " ".join(clauses)
