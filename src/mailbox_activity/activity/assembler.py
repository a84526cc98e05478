"""Result assembly for one page of classified threads."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime

from mailbox_activity.models import ClassifiedThread, PageResult


def local_date(epoch_ms: int) -> date:
    """Calendar date of ``epoch_ms`` in the local timezone."""
    return datetime.fromtimestamp(epoch_ms / 1000.0).date()


def dedupe_threads(threads: Iterable[ClassifiedThread]) -> list[ClassifiedThread]:
    """Drop repeated thread IDs, keeping the first occurrence."""
    seen: set[str] = set()
    unique: list[ClassifiedThread] = []
    for thread in threads:
        if thread.id in seen:
            continue
        seen.add(thread.id)
        unique.append(thread)
    return unique


def in_date_range(
    thread: ClassifiedThread,
    start_date: date | None,
    end_date: date | None,
) -> bool:
    day = local_date(thread.sort_epoch)
    if start_date is not None and day < start_date:
        return False
    if end_date is not None and day > end_date:
        return False
    return True


def assemble_page(
    threads: Iterable[ClassifiedThread],
    *,
    fetched: int,
    cursor: str | None,
    exact_total: int = 0,
    provider_estimate: int = 0,
    start_date: date | None = None,
    end_date: date | None = None,
    query: str = "",
) -> PageResult:
    """Build the `PageResult` for a page.

    Threads are deduplicated, filtered to the inclusive local-date range
    (Gmail's date operators are fuzzy around day boundaries) and sorted latest
    first. Equal ``sort_epoch`` values keep their incoming order.
    """

    items = dedupe_threads(threads)
    if start_date is not None or end_date is not None:
        items = [t for t in items if in_date_range(t, start_date, end_date)]
    items = sorted(items, key=lambda t: t.sort_epoch, reverse=True)

    return PageResult(
        items=items,
        fetched_message_count=fetched,
        continuation_cursor=cursor,
        total=max(exact_total, len(items), provider_estimate),
        exact_total=exact_total,
        provider_estimate=provider_estimate,
        query=query,
    )
