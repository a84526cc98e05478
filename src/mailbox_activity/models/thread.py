"""Thread models.

`RawMessage` and `RawThread` are the parsed provider payloads; they are built
fresh for every request and never cached. `ClassifiedThread` is the record the
engine emits for reporting.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mailbox_activity.analysis.rtr.models import RtrFields

SENT_LABEL = "SENT"
INBOX_LABEL = "INBOX"


class RawMessage(BaseModel):
    """A single message as returned inside a Gmail thread."""

    id: str = Field(description="Gmail message ID")
    thread_id: str = Field(default="", description="Gmail thread ID")
    internal_timestamp: int = Field(
        default=0,
        description="Provider delivery/send time in milliseconds since epoch",
    )
    labels: frozenset[str] = Field(default_factory=frozenset, description="Gmail label IDs")

    # Header names are lower-cased; the first occurrence wins.
    headers: dict[str, str] = Field(default_factory=dict, description="Message headers")

    snippet: str = Field(default="", description="Provider snippet")
    attachment_filenames: list[str] = Field(
        default_factory=list, description="Filenames of all attached parts"
    )
    body_text: str = Field(default="", description="Decoded plain-text body, if fetched")

    @property
    def is_sent(self) -> bool:
        return SENT_LABEL in self.labels

    @property
    def is_inbox(self) -> bool:
        return INBOX_LABEL in self.labels

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


class RawThread(BaseModel):
    """A provider thread: an ordered sequence of messages."""

    id: str = Field(description="Gmail thread ID")
    messages: list[RawMessage] = Field(default_factory=list)


class ThreadFlags(BaseModel):
    """Classification flags derived for a thread."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    has_attachment_of_interest: bool = False
    is_special_category: bool = False
    is_sent: bool = False
    is_inbox: bool = False
    is_replied: bool = False


class ClassifiedThread(BaseModel):
    """A classified conversation thread, ready for reporting."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(description="Gmail thread ID")
    sort_epoch: int = Field(description="internal timestamp of the latest message (ms)")
    display_timestamp: str = Field(description="UTC ISO-8601 form of sort_epoch")

    counterparty_name: str
    counterparty_address: str

    subject_display: str
    subject_original: str
    summary: str = ""

    flags: ThreadFlags = Field(default_factory=ThreadFlags)
    attachment_filenames: list[str] = Field(
        default_factory=list,
        description="Deduplicated filenames of attachments of interest, first-seen order",
    )
    enriched_fields: RtrFields | None = Field(default=None)
