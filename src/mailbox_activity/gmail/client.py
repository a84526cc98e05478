"""Gmail API client implementation.

This module provides a read-only client for the Gmail API calls the activity
engine needs: paged message search, thread detail, single message metadata
and the label list.

Notes:
    The Google API client is synchronous. This project wraps those calls using
    `asyncio.to_thread` so the rest of the codebase can remain async-friendly.
    The underlying HTTP transport is not thread-safe, so every worker thread
    builds its own service object from the shared credentials.
"""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Any

import structlog

from mailbox_activity.config import Settings
from mailbox_activity.exceptions import AuthenticationError, ConfigurationError, GmailAPIError
from mailbox_activity.utils import retry_on_failure

logger = structlog.get_logger()

USER_ID = "me"

_TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})


def is_transient_http_error(exc: Exception) -> bool:
    """Return True for Gmail errors worth retrying (rate limits, 5xx)."""

    from googleapiclient.errors import HttpError

    if not isinstance(exc, HttpError):
        return False
    return getattr(exc.resp, "status", None) in _TRANSIENT_STATUSES


class GmailClient:
    """Gmail API client for one mailbox.

    This client handles authentication (OAuth token or domain-wide
    delegation) and the read-only calls used to build activity reports.
    """

    def __init__(self, settings: Settings | None = None, mailbox: str | None = None) -> None:
        """Initialize Gmail client.

        Args:
            settings: Application settings. If None, uses default settings.
            mailbox: Mailbox owner to impersonate when a service account is
                configured. Ignored for the OAuth token flow.
        """
        from mailbox_activity.config import get_settings

        self.settings = settings or get_settings()
        self.mailbox = mailbox
        self._credentials: Any | None = None
        self._local = threading.local()
        logger.info("gmail_client_initialized", mailbox=mailbox)

    @property
    def _service(self) -> Any | None:
        return getattr(self._local, "service", None)

    async def authenticate(self) -> None:
        """Authenticate with the Gmail API.

        Raises:
            ConfigurationError: If the configured credential file is missing.
            AuthenticationError: If authentication fails.
        """

        if self._credentials is not None:
            return

        service_account_file = self.settings.service_account_file
        if service_account_file is not None:
            if not Path(service_account_file).exists():
                raise ConfigurationError(f"Service account file not found: {service_account_file}")
            if not self.mailbox:
                raise ConfigurationError("A mailbox is required for delegated Gmail access.")
        elif not Path(self.settings.gmail_credentials_path).exists():
            raise ConfigurationError(
                f"Gmail credentials file not found: {self.settings.gmail_credentials_path}. "
                "See README.md -> Gmail API Setup."
            )

        logger.info(
            "gmail_authentication_started",
            mailbox=self.mailbox,
            delegated=service_account_file is not None,
            scope=self.settings.gmail_scope,
        )

        try:
            self._credentials = await asyncio.to_thread(self._build_credentials)
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_authentication_failed", mailbox=self.mailbox, error=str(exc))
            raise AuthenticationError(str(exc)) from exc

        logger.info("gmail_authentication_completed", mailbox=self.mailbox)

    async def list_messages_page(
        self,
        query: str,
        page_token: str | None = None,
        max_results: int | None = None,
        fields: str | None = None,
    ) -> dict[str, Any]:
        """List a single page of messages matching a search query.

        Args:
            query: Gmail search query string.
            page_token: Continuation token from a previous page, or None.
            max_results: Page size. Defaults to settings.page_size.
            fields: Optional partial-response field mask.

        Returns:
            Dict with ``messages``, ``nextPageToken`` and ``resultSizeEstimate``.

        Raises:
            GmailAPIError: If the API request fails.
        """

        self._ensure_authenticated()
        per_page = max_results or self.settings.page_size
        logger.debug("listing_messages_page", query=query, page_token=page_token, max_results=per_page)

        list_page = retry_on_failure(
            max_retries=self.settings.max_retries,
            delay=0.5,
            should_retry=is_transient_http_error,
        )(self._list_messages_page_sync)

        try:
            return await asyncio.to_thread(list_page, query, page_token, per_page, fields)
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_list_messages_failed", query=query, error=str(exc))
            raise GmailAPIError(str(exc)) from exc

    async def get_thread(
        self,
        thread_id: str,
        *,
        format: str = "full",
        metadata_headers: list[str] | None = None,
    ) -> dict[str, Any]:
        """Get a thread with all of its messages.

        Raises:
            GmailAPIError: If the API request fails.
        """

        self._ensure_authenticated()
        logger.debug("getting_thread", thread_id=thread_id, format=format)

        try:
            return await asyncio.to_thread(self._get_thread_sync, thread_id, format, metadata_headers)
        except Exception as exc:  # noqa: BLE001
            raise GmailAPIError(f"thread {thread_id}: {exc}") from exc

    async def get_message(
        self,
        message_id: str,
        *,
        format: str = "metadata",
        metadata_headers: list[str] | None = None,
    ) -> dict[str, Any]:
        """Get a specific message by ID.

        Args:
            message_id: The Gmail message ID.

        Returns:
            Message data dictionary.

        Raises:
            GmailAPIError: If the API request fails.
        """

        self._ensure_authenticated()
        logger.debug("getting_message", message_id=message_id, format=format)

        try:
            return await asyncio.to_thread(
                self._get_message_sync,
                message_id,
                format,
                metadata_headers,
            )
        except Exception as exc:  # noqa: BLE001
            raise GmailAPIError(f"message {message_id}: {exc}") from exc

    async def list_labels(self) -> list[dict[str, Any]]:
        """List the mailbox's labels (system and user).

        Raises:
            GmailAPIError: If the API request fails.
        """

        self._ensure_authenticated()

        try:
            return await asyncio.to_thread(self._list_labels_sync)
        except Exception as exc:  # noqa: BLE001
            raise GmailAPIError(str(exc)) from exc

    def _ensure_authenticated(self) -> None:
        if self._credentials is None:
            raise AuthenticationError(
                "Gmail client is not authenticated. Call await GmailClient.authenticate() first."
            )

    def _build_credentials(self) -> Any:
        # Imported lazily to keep import-time cost low and tests fast.
        scope = self.settings.gmail_scope

        if self.settings.service_account_file is not None:
            from google.oauth2 import service_account

            return service_account.Credentials.from_service_account_file(
                str(self.settings.service_account_file),
                scopes=[scope],
                subject=self.mailbox,
            )

        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials
        from google_auth_oauthlib.flow import InstalledAppFlow

        token_path = Path(self.settings.gmail_token_path)
        creds: Credentials | None = None
        if token_path.exists():
            creds = Credentials.from_authorized_user_file(str(token_path), scopes=[scope])

        if creds is not None and creds.expired and creds.refresh_token:
            creds.refresh(Request())

        if creds is None or not creds.valid:
            flow = InstalledAppFlow.from_client_secrets_file(
                str(self.settings.gmail_credentials_path), scopes=[scope]
            )
            creds = flow.run_local_server(port=0)
            token_path.parent.mkdir(parents=True, exist_ok=True)
            token_path.write_text(creds.to_json(), encoding="utf-8")

        return creds

    def _thread_service(self) -> Any:
        service = self._service
        if service is None:
            from googleapiclient.discovery import build

            # cache_discovery=False prevents writing discovery docs to disk.
            service = build("gmail", "v1", credentials=self._credentials, cache_discovery=False)
            self._local.service = service
        return service

    def _list_messages_page_sync(
        self,
        query: str,
        page_token: str | None,
        max_results: int,
        fields: str | None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"userId": USER_ID, "q": query, "maxResults": max_results}
        if page_token:
            params["pageToken"] = page_token
        if fields:
            params["fields"] = fields

        response = self._thread_service().users().messages().list(**params).execute()
        return {
            "messages": response.get("messages", []) or [],
            "nextPageToken": response.get("nextPageToken"),
            "resultSizeEstimate": int(response.get("resultSizeEstimate") or 0),
        }

    def _get_thread_sync(
        self,
        thread_id: str,
        format: str,
        metadata_headers: list[str] | None,
    ) -> dict[str, Any]:
        request = (
            self._thread_service()
            .users()
            .threads()
            .get(userId=USER_ID, id=thread_id, format=format, metadataHeaders=metadata_headers)
        )
        return request.execute()

    def _get_message_sync(
        self,
        message_id: str,
        format: str,
        metadata_headers: list[str] | None,
    ) -> dict[str, Any]:
        request = (
            self._thread_service()
            .users()
            .messages()
            .get(userId=USER_ID, id=message_id, format=format, metadataHeaders=metadata_headers)
        )
        return request.execute()

    def _list_labels_sync(self) -> list[dict[str, Any]]:
        response = self._thread_service().users().labels().list(userId=USER_ID).execute()
        return response.get("labels", []) or []
