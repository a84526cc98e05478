"""Enrichment of right-to-represent threads with extracted fields."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog

from mailbox_activity.activity.classifier import chronological
from mailbox_activity.analysis.rtr.models import RtrFields
from mailbox_activity.models import ClassifiedThread, RawThread

logger = structlog.get_logger()

BODY_DELIMITER = "\n\n---\n\n"
RECENT_MESSAGE_COUNT = 2

FieldExtractor = Callable[[str, str | None], Awaitable[RtrFields]]


def recent_bodies_text(thread: RawThread, count: int = RECENT_MESSAGE_COUNT) -> str:
    """Concatenate the bodies of the ``count`` latest messages."""
    recent = chronological(thread.messages)[-count:]
    return "".join(m.body_text + BODY_DELIMITER for m in recent)


class EnrichmentDispatcher:
    """Runs the field extractor for RTR threads, best-effort.

    Extraction failures are logged and leave ``enriched_fields`` unset; they
    never fail classification.
    """

    def __init__(self, extractor: FieldExtractor | None) -> None:
        self.extractor = extractor

    async def enrich(self, classified: ClassifiedThread, thread: RawThread) -> ClassifiedThread:
        if self.extractor is None or not classified.flags.is_special_category:
            return classified

        text = recent_bodies_text(thread)
        try:
            fields = await self.extractor(text, classified.subject_original)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "enrichment_failed",
                thread_id=classified.id,
                error=str(exc) or type(exc).__name__,
            )
            return classified

        return classified.model_copy(update={"enriched_fields": fields})
