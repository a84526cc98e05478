"""Exact thread counting.

Gmail only reports a fuzzy ``resultSizeEstimate`` for a search. On the first
page of a fresh search the counter walks every page of thread IDs (a partial
response with nothing else) and counts distinct threads, up to a page
ceiling. The result is a lower bound on the true count.
"""

from __future__ import annotations

from typing import Any

import structlog

from mailbox_activity.exceptions import GmailAPIError

logger = structlog.get_logger()

THREAD_ID_FIELDS = "nextPageToken,messages(threadId)"


async def count_unique_threads(
    client: Any,
    query: str,
    *,
    page_size: int = 500,
    max_pages: int = 50,
) -> int:
    """Count distinct thread IDs matching ``query``.

    Stops when Gmail returns no continuation token or after ``max_pages``
    pages, whichever comes first.

    Raises:
        GmailAPIError: If a page request fails.
    """

    thread_ids: set[str] = set()
    page_token: str | None = None
    pages = 0

    while True:
        page = await client.list_messages_page(
            query,
            page_token=page_token,
            max_results=page_size,
            fields=THREAD_ID_FIELDS,
        )
        pages += 1
        for stub in page.get("messages") or []:
            thread_id = stub.get("threadId")
            if thread_id:
                thread_ids.add(thread_id)

        page_token = page.get("nextPageToken")
        if not page_token:
            break
        if pages >= max_pages:
            logger.info("thread_count_page_limit_reached", max_pages=max_pages, counted=len(thread_ids))
            break

    return len(thread_ids)


async def exact_thread_count(
    client: Any,
    query: str,
    *,
    page_size: int = 500,
    max_pages: int = 50,
) -> int:
    """Like `count_unique_threads`, but returns 0 instead of raising.

    A failed count pass must not fail the request; the caller falls back to
    the provider estimate.
    """

    logger.info("thread_count_started", query=query)
    try:
        total = await count_unique_threads(client, query, page_size=page_size, max_pages=max_pages)
    except GmailAPIError as exc:
        logger.warning("thread_count_failed", query=query, error=str(exc))
        return 0

    logger.info("thread_count_completed", query=query, exact_total=total)
    return total
