"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import base64
from typing import Any

import pytest

from mailbox_activity.exceptions import GmailAPIError


def b64(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def gmail_message(
    message_id: str,
    *,
    thread_id: str = "t1",
    internal_date: int = 1_700_000_000_000,
    labels: list[str] | None = None,
    subject: str | None = "Hello",
    sender: str | None = '"Jane Recruiter" <jane@agency.example>',
    to: str | None = "owner@example.com",
    snippet: str = "",
    attachments: list[str] | None = None,
    body: str | None = None,
) -> dict[str, Any]:
    """Build a Gmail API message dict (format=full)."""

    headers = []
    if subject is not None:
        headers.append({"name": "Subject", "value": subject})
    if sender is not None:
        headers.append({"name": "From", "value": sender})
    if to is not None:
        headers.append({"name": "To", "value": to})

    parts: list[dict[str, Any]] = []
    if body is not None:
        parts.append({"mimeType": "text/plain", "filename": "", "body": {"data": b64(body)}})
    for name in attachments or []:
        parts.append(
            {"mimeType": "application/pdf", "filename": name, "body": {"attachmentId": f"a-{name}"}}
        )

    return {
        "id": message_id,
        "threadId": thread_id,
        "internalDate": str(internal_date),
        "labelIds": labels if labels is not None else ["INBOX"],
        "snippet": snippet,
        "payload": {"mimeType": "multipart/mixed", "headers": headers, "parts": parts},
    }


def gmail_thread(thread_id: str, *messages: dict[str, Any]) -> dict[str, Any]:
    return {"id": thread_id, "messages": [dict(m, threadId=thread_id) for m in messages]}


class FakeGmailClient:
    """In-memory stand-in for `GmailClient`.

    ``pages`` is a list of message-stub lists; page N's continuation token is
    ``"pN"``. Threads listed in ``failing_threads`` raise, those in
    ``slow_threads`` never finish.
    """

    def __init__(
        self,
        pages: list[list[dict[str, Any]]] | None = None,
        threads: dict[str, dict[str, Any]] | None = None,
        messages: dict[str, dict[str, Any]] | None = None,
        labels: list[dict[str, Any]] | None = None,
        estimate: int = 0,
        failing_threads: set[str] | None = None,
        slow_threads: set[str] | None = None,
        fail_listing: bool = False,
        fail_count: bool = False,
        fail_labels: bool = False,
    ) -> None:
        self.pages = pages if pages is not None else [[]]
        self.threads = threads or {}
        self.messages = messages or {}
        self.labels = labels or []
        self.estimate = estimate
        self.failing_threads = failing_threads or set()
        self.slow_threads = slow_threads or set()
        self.fail_listing = fail_listing
        self.fail_count = fail_count
        self.fail_labels = fail_labels

        self.authenticated = False
        self.list_calls: list[dict[str, Any]] = []
        self.thread_calls: list[str] = []
        self.message_calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def authenticate(self) -> None:
        self.authenticated = True

    async def list_messages_page(
        self,
        query: str,
        page_token: str | None = None,
        max_results: int | None = None,
        fields: str | None = None,
    ) -> dict[str, Any]:
        self.list_calls.append(
            {"query": query, "page_token": page_token, "max_results": max_results, "fields": fields}
        )
        if fields and self.fail_count:
            raise GmailAPIError("count pass failed")
        if not fields and self.fail_listing:
            raise GmailAPIError("listing failed")

        index = 0 if page_token is None else int(page_token[1:])
        stubs = self.pages[index]
        next_token = f"p{index + 1}" if index + 1 < len(self.pages) else None

        if fields:
            return {"messages": [{"threadId": s["threadId"]} for s in stubs], "nextPageToken": next_token}
        return {"messages": stubs, "nextPageToken": next_token, "resultSizeEstimate": self.estimate}

    async def get_thread(
        self,
        thread_id: str,
        *,
        format: str = "full",
        metadata_headers: list[str] | None = None,
    ) -> dict[str, Any]:
        self.thread_calls.append(thread_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            if thread_id in self.slow_threads:
                await asyncio.sleep(3600)
            if thread_id in self.failing_threads:
                raise GmailAPIError(f"thread {thread_id}: boom")
            return self.threads[thread_id]
        finally:
            self.in_flight -= 1

    async def get_message(
        self,
        message_id: str,
        *,
        format: str = "metadata",
        metadata_headers: list[str] | None = None,
    ) -> dict[str, Any]:
        self.message_calls.append(message_id)
        if message_id not in self.messages:
            raise GmailAPIError(f"message {message_id}: not found")
        return self.messages[message_id]

    async def list_labels(self) -> list[dict[str, Any]]:
        if self.fail_labels:
            raise GmailAPIError("labels unavailable")
        return self.labels


@pytest.fixture
def mock_settings(tmp_path):
    """Provide settings that never touch real credentials or Ollama."""
    from mailbox_activity.config import Settings

    return Settings(
        gmail_credentials_path=tmp_path / "credentials.json",
        gmail_token_path=tmp_path / "token.json",
        enrichment_enabled=False,
        thread_fetch_timeout=1.0,
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def sample_email_data() -> dict:
    """Provide a sample Gmail message payload."""
    return {
        "id": "msg123456",
        "threadId": "thread789",
        "internalDate": "1735473600000",
        "labelIds": ["INBOX", "UNREAD"],
        "snippet": "Please find attached my resume",
        "payload": {
            "mimeType": "multipart/mixed",
            "headers": [
                {"name": "Subject", "value": "Re: Senior Engineer | Remote"},
                {"name": "From", "value": '"Jane Doe" <jane@example.com>'},
                {"name": "To", "value": "owner@example.com"},
                {"name": "from", "value": "duplicate@example.com"},
            ],
            "parts": [
                {
                    "mimeType": "multipart/alternative",
                    "filename": "",
                    "parts": [
                        {"mimeType": "text/plain", "filename": "", "body": {"data": b64("Hi there")}},
                        {"mimeType": "text/html", "filename": "", "body": {"data": b64("<p>Hi</p>")}},
                    ],
                },
                {
                    "mimeType": "application/pdf",
                    "filename": "Jane_Resume.pdf",
                    "body": {"attachmentId": "att1"},
                },
            ],
        },
    }
