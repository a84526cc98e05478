"""Mailbox activity agent.

This module provides the agent that runs one page of a mailbox activity
search end to end, and sweeps a whole workspace domain:

    query -> page fetch -> (first page: exact count, concurrently)
          -> group by thread -> thread fetch -> classify -> enrich -> assemble
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from typing import Any

import structlog

from mailbox_activity.activity.assembler import assemble_page
from mailbox_activity.activity.classifier import ThreadClassifier
from mailbox_activity.activity.counter import exact_thread_count
from mailbox_activity.activity.enrichment import EnrichmentDispatcher, FieldExtractor
from mailbox_activity.activity.fetcher import ThreadFetcher, group_by_thread
from mailbox_activity.activity.labels import resolve_special_label_ids
from mailbox_activity.activity.reply_policy import get_reply_policy
from mailbox_activity.config import Settings
from mailbox_activity.exceptions import MailboxActivityError
from mailbox_activity.gmail.client import GmailClient
from mailbox_activity.gmail.directory import DirectoryClient
from mailbox_activity.gmail.query import build_search_query
from mailbox_activity.models import (
    ActivityRequest,
    ClassifiedThread,
    DirectoryUser,
    MailboxReport,
    PageResult,
    RawThread,
)
from mailbox_activity.utils import gather_in_batches

logger = structlog.get_logger()


def _default_extractor(settings: Settings) -> FieldExtractor | None:
    if not settings.enrichment_enabled:
        return None

    from mailbox_activity.analysis.rtr.extractor import RtrExtractor
    from mailbox_activity.ollama.client import OllamaClient

    return RtrExtractor(OllamaClient(settings), max_chars=settings.enrichment_max_chars).extract


class MailboxActivityAgent:
    """Builds activity reports for Gmail mailboxes.

    Args:
        settings: Application settings. If None, uses default settings.
        client_factory: Creates a Gmail client for a mailbox identity.
        extractor: Structured field extractor for RTR threads. If None,
            one backed by Ollama is created when enrichment is enabled.
        directory_client: Directory lookups for domain sweeps.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client_factory: Callable[[str], Any] | None = None,
        extractor: FieldExtractor | None = None,
        directory_client: DirectoryClient | None = None,
    ) -> None:
        from mailbox_activity.config import get_settings

        self.settings = settings or get_settings()
        self.client_factory = client_factory or (lambda mailbox: GmailClient(self.settings, mailbox))
        self.enrichment = EnrichmentDispatcher(
            extractor if extractor is not None else _default_extractor(self.settings)
        )
        self.directory_client = directory_client or DirectoryClient(self.settings)
        self.reply_policy = get_reply_policy(self.settings.reply_policy)
        logger.info("activity_agent_initialized", reply_policy=self.reply_policy.name)

    async def fetch_page(self, request: ActivityRequest) -> PageResult:
        """Fetch and classify one page of a mailbox search.

        Raises:
            MailboxActivityError: If authentication or the page listing fails.
                Per-thread, label, count and enrichment failures never raise.
        """

        client = self.client_factory(request.mailbox)
        await client.authenticate()
        return await self.fetch_page_with_client(client, request)

    async def fetch_page_with_client(self, client: Any, request: ActivityRequest) -> PageResult:
        settings = self.settings
        query = build_search_query(request.scope, request.start_date, request.end_date)
        logger.info(
            "activity_page_started",
            mailbox=request.mailbox,
            query=query,
            fresh_search=request.cursor is None,
        )

        special_label_ids = await resolve_special_label_ids(client)

        count_task: asyncio.Task[int] | None = None
        if request.cursor is None:
            count_task = asyncio.create_task(
                exact_thread_count(
                    client,
                    query,
                    page_size=settings.count_page_size,
                    max_pages=settings.count_max_pages,
                )
            )

        try:
            page = await client.list_messages_page(
                query,
                page_token=request.cursor,
                max_results=settings.page_size,
            )
            stubs = page.get("messages") or []
            groups = group_by_thread(stubs)

            fetcher = ThreadFetcher(
                client,
                batch_size=settings.thread_batch_size,
                timeout=settings.thread_fetch_timeout,
                detail_format=settings.thread_detail_format,
            )
            threads = await fetcher.fetch_threads(list(groups))

            classifier = ThreadClassifier(self.reply_policy, special_label_ids)
            pairs: list[tuple[ClassifiedThread, RawThread]] = []
            for thread in threads:
                classified = classifier.classify(thread)
                if classified is not None:
                    pairs.append((classified, thread))

            classified_threads = await self._enrich_all(pairs)

            exact_total = await count_task if count_task is not None else 0
        finally:
            # Never leave the count pass running once this page is abandoned.
            if count_task is not None and not count_task.done():
                count_task.cancel()

        result = assemble_page(
            classified_threads,
            fetched=len(stubs),
            cursor=page.get("nextPageToken") or None,
            exact_total=exact_total,
            provider_estimate=int(page.get("resultSizeEstimate") or 0),
            start_date=request.start_date,
            end_date=request.end_date,
            query=query,
        )
        logger.info(
            "activity_page_completed",
            mailbox=request.mailbox,
            fetched=result.fetched_message_count,
            items=len(result.items),
            total=result.total,
            has_more=result.continuation_cursor is not None,
        )
        return result

    async def _enrich_all(
        self, pairs: list[tuple[ClassifiedThread, RawThread]]
    ) -> list[ClassifiedThread]:
        outcomes = await gather_in_batches(
            pairs,
            lambda pair: self.enrichment.enrich(*pair),
            batch_size=self.settings.thread_batch_size,
        )
        # enrich() handles its own failures; fall back to the plain record regardless.
        return [o.result if o.ok and o.result is not None else o.item[0] for o in outcomes]

    async def list_users(self, domain: str, admin_email: str | None) -> list[DirectoryUser]:
        return await self.directory_client.list_domain_users(domain, admin_email)

    async def sweep(
        self,
        users: Iterable[DirectoryUser],
        template: ActivityRequest,
    ) -> list[MailboxReport]:
        """Fetch the first page of activity for every active user.

        Suspended users are skipped. A failure for one user is recorded on
        that user's report and the sweep continues.
        """

        reports: list[MailboxReport] = []
        for user in users:
            if user.suspended:
                logger.info("sweep_user_skipped", email=user.email, reason="suspended")
                continue

            report = MailboxReport(
                employee_name=user.full_name or user.email,
                employee_email=user.email,
                department=user.org_unit_path or "General",
            )
            request = template.model_copy(update={"mailbox": user.email, "cursor": None})
            try:
                report.activity = await self.fetch_page(request)
            except MailboxActivityError as exc:
                logger.warning("sweep_user_failed", email=user.email, error=str(exc))
                report.error = str(exc) or "Unknown Error"
            reports.append(report)

        logger.info("sweep_completed", users=len(reports))
        return reports
