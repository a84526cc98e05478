"""Thread classification.

Turns a `RawThread` into a `ClassifiedThread`:

1. Sort messages by ``internal_timestamp`` (Gmail does not guarantee order)
   and pick the representatives: the latest message supplies the timestamp,
   snippet and ``sort_epoch``; the primary message (earliest one not labeled
   SENT, else the very first) supplies the counterparty and subject.
2. Scan every message for attachments of interest and RTR signals.
3. Derive the sent/inbox/replied flags and the display subject.

Classification is pure: the same thread always yields the same record.
Header recovery for partial payloads happens before this step, in the
thread fetcher.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from mailbox_activity.activity.reply_policy import LastReplyPolicy, ReplyPolicy
from mailbox_activity.gmail.parsing import parse_identity
from mailbox_activity.models import ClassifiedThread, RawMessage, RawThread, ThreadFlags
from mailbox_activity.utils.subject import role_label

NO_SUBJECT = "(No Subject)"
UNKNOWN_SENDER = "Unknown"
UNKNOWN_RECIPIENT = "Unknown Recipient"

RTR_DISPLAY_LABEL = "RTR"

ATTACHMENT_KEYWORDS: tuple[str, ...] = ("resume", "cv", "profile", "candidate", "submission")
RTR_SUBJECT_KEYWORDS: tuple[str, ...] = ("rtr", "right to represent")
RTR_LABEL_KEYWORDS: tuple[str, ...] = ("rtr", "submission")

# Keywords must start a word: "John_Resume.pdf" counts, "NonResume.docx" does not.
_ATTACHMENT_RE = re.compile(
    r"(?<![a-z])(?:" + "|".join(re.escape(k) for k in ATTACHMENT_KEYWORDS) + ")"
)
# Letter-bounded with an optional plural: "RTRs" and "rtr_request" count, "portrait" does not.
_RTR_SUBJECT_RE = re.compile(
    r"(?<![a-z])(?:" + "|".join(re.escape(k) for k in RTR_SUBJECT_KEYWORDS) + r")s?(?![a-z])"
)


def is_attachment_of_interest(filename: str) -> bool:
    return bool(_ATTACHMENT_RE.search(filename.lower()))


def is_rtr_subject(subject: str | None) -> bool:
    return bool(subject) and bool(_RTR_SUBJECT_RE.search(subject.lower()))


def is_rtr_label_name(name: str) -> bool:
    lowered = name.lower()
    return any(k in lowered for k in RTR_LABEL_KEYWORDS)


def chronological(messages: Iterable[RawMessage]) -> list[RawMessage]:
    """Sort messages oldest first; ties keep their provider order."""
    return sorted(messages, key=lambda m: m.internal_timestamp)


def select_representatives(messages: Sequence[RawMessage]) -> tuple[RawMessage, RawMessage]:
    """Return ``(primary, latest)`` for chronologically sorted messages."""
    primary = next((m for m in messages if not m.is_sent), messages[0])
    return primary, messages[-1]


def _iso_utc(epoch_ms: int) -> str:
    dt = datetime.fromtimestamp(epoch_ms / 1000.0, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ThreadClassifier:
    """Classifies threads for one mailbox.

    Attributes:
        reply_policy: Rule deciding the ``is_replied`` flag.
        special_label_ids: Label IDs that mark a thread as RTR.
    """

    def __init__(
        self,
        reply_policy: ReplyPolicy | None = None,
        special_label_ids: Iterable[str] = (),
    ) -> None:
        self.reply_policy = reply_policy or LastReplyPolicy()
        self.special_label_ids = frozenset(special_label_ids)

    def classify(self, thread: RawThread) -> ClassifiedThread | None:
        """Classify a thread; returns None for a thread without messages."""

        if not thread.messages:
            return None

        messages = chronological(thread.messages)
        primary, latest = select_representatives(messages)

        # Threads the owner started have no inbound sender; report the recipient.
        if primary.is_sent:
            counterparty_raw = primary.header("To") or UNKNOWN_RECIPIENT
        else:
            counterparty_raw = primary.header("From") or UNKNOWN_SENDER
        counterparty_name, counterparty_address = parse_identity(counterparty_raw)

        subject_raw = primary.header("Subject") or NO_SUBJECT

        filenames: list[str] = []
        is_special = False
        for message in messages:
            for filename in message.attachment_filenames:
                if is_attachment_of_interest(filename) and filename not in filenames:
                    filenames.append(filename)
            if self._is_special_message(message):
                is_special = True

        flags = ThreadFlags(
            has_attachment_of_interest=bool(filenames),
            is_special_category=is_special,
            is_sent=any(m.is_sent for m in messages),
            is_inbox=any(m.is_inbox for m in messages),
            is_replied=self.reply_policy.is_replied(messages, primary, latest),
        )

        return ClassifiedThread(
            id=thread.id,
            sort_epoch=latest.internal_timestamp,
            display_timestamp=_iso_utc(latest.internal_timestamp),
            counterparty_name=counterparty_name,
            counterparty_address=counterparty_address,
            subject_display=RTR_DISPLAY_LABEL if is_special else role_label(subject_raw),
            subject_original=subject_raw,
            summary=latest.snippet,
            flags=flags,
            attachment_filenames=filenames,
        )

    def _is_special_message(self, message: RawMessage) -> bool:
        if is_rtr_subject(message.header("Subject")):
            return True
        return not self.special_label_ids.isdisjoint(message.labels)
