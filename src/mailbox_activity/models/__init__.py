"""Data models for Mailbox Activity.

This module contains Pydantic models for data validation and serialization.
"""

from .directory_user import DirectoryUser
from .page import ActivityRequest, MailboxReport, MailboxScope, PageResult
from .thread import (
    INBOX_LABEL,
    SENT_LABEL,
    ClassifiedThread,
    RawMessage,
    RawThread,
    ThreadFlags,
)

__all__ = [
    "INBOX_LABEL",
    "SENT_LABEL",
    "ActivityRequest",
    "ClassifiedThread",
    "DirectoryUser",
    "MailboxReport",
    "MailboxScope",
    "PageResult",
    "RawMessage",
    "RawThread",
    "ThreadFlags",
]
