"""Resolution of the mailbox labels that mark right-to-represent threads."""

from __future__ import annotations

from typing import Any

import structlog

from mailbox_activity.activity.classifier import is_rtr_label_name
from mailbox_activity.exceptions import GmailAPIError

logger = structlog.get_logger()


async def resolve_special_label_ids(client: Any) -> frozenset[str]:
    """Return the IDs of labels whose name marks RTR/submission threads.

    Failures are soft: the lookup is logged and an empty set is returned so
    classification falls back to subject keywords only.
    """

    try:
        labels = await client.list_labels()
    except GmailAPIError as exc:
        logger.warning("label_resolution_failed", error=str(exc))
        return frozenset()

    ids = frozenset(
        str(label["id"])
        for label in labels
        if label.get("id") and is_rtr_label_name(str(label.get("name") or ""))
    )
    logger.info("special_labels_resolved", label_count=len(ids))
    return ids
