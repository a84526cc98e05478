"""Request and result models for one page of mailbox activity."""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from mailbox_activity.models.thread import ClassifiedThread


class MailboxScope(str, Enum):
    """Which part of the mailbox a search covers."""

    INBOX_ONLY = "inbox"
    SENT_ONLY = "sent"
    ALL_MAIL = "all"


class ActivityRequest(BaseModel):
    """Input for a single page of mailbox activity."""

    mailbox: str = Field(description="Mailbox identity (email address)")
    start_date: date | None = Field(default=None, description="Inclusive start date")
    end_date: date | None = Field(default=None, description="Inclusive end date")
    scope: MailboxScope = Field(default=MailboxScope.ALL_MAIL)
    cursor: str | None = Field(
        default=None,
        description="Opaque continuation cursor; None starts a fresh search",
    )

    @model_validator(mode="after")
    def _check_range(self) -> "ActivityRequest":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class PageResult(BaseModel):
    """One page of classified threads plus pagination/count metadata.

    Serialized (``model_dump(by_alias=True)``) as
    ``{items, fetched, nextCursor, total}``.
    """

    items: list[ClassifiedThread] = Field(default_factory=list)
    fetched_message_count: int = Field(default=0, serialization_alias="fetched")
    continuation_cursor: str | None = Field(default=None, serialization_alias="nextCursor")
    total: int = Field(default=0, description="max(exact total, len(items), estimate)")

    # Diagnostics; not part of the wire contract.
    exact_total: int = Field(default=0, exclude=True)
    provider_estimate: int = Field(default=0, exclude=True)
    query: str = Field(default="", exclude=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class MailboxReport(BaseModel):
    """Activity for one user of a domain sweep."""

    employee_name: str
    employee_email: str
    department: str = "General"
    activity: PageResult | None = None
    error: str | None = None
