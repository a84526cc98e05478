"""Thread grouping and bounded-concurrency thread detail fetching."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog

from mailbox_activity.activity.classifier import chronological, select_representatives
from mailbox_activity.exceptions import GmailAPIError
from mailbox_activity.gmail.parsing import message_to_raw_message, thread_to_raw_thread
from mailbox_activity.models import RawThread
from mailbox_activity.utils import gather_in_batches

logger = structlog.get_logger()

METADATA_HEADERS: list[str] = ["From", "To", "Subject", "Date"]


def group_by_thread(stubs: Iterable[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Group message stubs by thread ID, in order of first appearance."""

    groups: dict[str, list[dict[str, Any]]] = {}
    for stub in stubs:
        thread_id = stub.get("threadId")
        if not thread_id:
            continue
        groups.setdefault(thread_id, []).append(stub)
    return groups


class ThreadFetcher:
    """Fetches thread details with at most ``batch_size`` requests in flight.

    A thread whose fetch fails, times out or cannot recover its headers is
    logged and left out; it never affects other threads.
    """

    def __init__(
        self,
        client: Any,
        *,
        batch_size: int = 10,
        timeout: float | None = 30.0,
        detail_format: str = "full",
    ) -> None:
        self.client = client
        self.batch_size = batch_size
        self.timeout = timeout
        self.detail_format = detail_format

    async def fetch_threads(self, thread_ids: Iterable[str]) -> list[RawThread]:
        outcomes = await gather_in_batches(
            thread_ids,
            self.fetch_thread,
            batch_size=self.batch_size,
            timeout=self.timeout,
        )

        threads: list[RawThread] = []
        for outcome in outcomes:
            if not outcome.ok:
                logger.warning(
                    "thread_fetch_failed",
                    thread_id=outcome.item,
                    error=str(outcome.error) or type(outcome.error).__name__,
                )
                continue
            if outcome.result is None or not outcome.result.messages:
                logger.warning("thread_empty_skipped", thread_id=outcome.item)
                continue
            threads.append(outcome.result)

        logger.info("threads_fetched", requested=len(outcomes), fetched=len(threads))
        return threads

    async def fetch_thread(self, thread_id: str) -> RawThread:
        metadata_headers = METADATA_HEADERS if self.detail_format == "metadata" else None
        raw = await self.client.get_thread(
            thread_id,
            format=self.detail_format,
            metadata_headers=metadata_headers,
        )
        thread = thread_to_raw_thread(raw)
        if not thread.id:
            thread = thread.model_copy(update={"id": thread_id})
        if not thread.messages:
            return thread
        return await self.recover_headers(thread)

    async def recover_headers(self, thread: RawThread) -> RawThread:
        """Re-fetch the primary message's metadata when its headers are missing.

        Raises:
            GmailAPIError: If the recovery fetch fails.
        """

        primary, _ = select_representatives(chronological(thread.messages))
        if primary.headers:
            return thread

        logger.info("thread_headers_missing", thread_id=thread.id, message_id=primary.id)
        try:
            raw = await self.client.get_message(
                primary.id,
                format="metadata",
                metadata_headers=METADATA_HEADERS,
            )
        except GmailAPIError as exc:
            logger.warning(
                "thread_headers_recovery_failed",
                thread_id=thread.id,
                message_id=primary.id,
                error=str(exc),
            )
            raise

        headers = message_to_raw_message(raw).headers
        logger.info(
            "thread_headers_recovered",
            thread_id=thread.id,
            message_id=primary.id,
            header_count=len(headers),
        )

        messages = [
            m.model_copy(update={"headers": headers}) if m is primary else m
            for m in thread.messages
        ]
        return thread.model_copy(update={"messages": messages})
