"""Workspace directory lookups (Admin SDK Directory API)."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import structlog

from mailbox_activity.config import Settings
from mailbox_activity.exceptions import ConfigurationError, DirectoryError
from mailbox_activity.models import DirectoryUser

logger = structlog.get_logger()


def _to_directory_user(raw: dict[str, Any]) -> DirectoryUser:
    name = raw.get("name") or {}
    email = str(raw.get("primaryEmail") or "")
    return DirectoryUser(
        email=email,
        full_name=str(name.get("fullName") or email),
        org_unit_path=raw.get("orgUnitPath"),
        suspended=bool(raw.get("suspended", False)),
    )


class DirectoryClient:
    """Lists the users of a workspace domain as an admin identity."""

    def __init__(self, settings: Settings | None = None) -> None:
        from mailbox_activity.config import get_settings

        self.settings = settings or get_settings()

    async def list_domain_users(self, domain: str, admin_email: str | None) -> list[DirectoryUser]:
        """List users in ``domain`` ordered by email.

        Args:
            domain: Workspace domain, e.g. ``example.com``.
            admin_email: Admin account impersonated for the lookup.

        Returns:
            Directory users, at most ``settings.directory_max_results``.

        Raises:
            ConfigurationError: If no admin identity or service account is configured.
            DirectoryError: If the Directory API call fails.
        """

        if not admin_email:
            raise ConfigurationError("Admin email is required to list users.")

        key_file = self.settings.service_account_file
        if key_file is None or not Path(key_file).exists():
            raise ConfigurationError(
                "Listing domain users requires a service account with domain-wide delegation."
            )

        logger.info("listing_domain_users", domain=domain, admin_email=admin_email)

        try:
            raw_users = await asyncio.to_thread(self._list_users_sync, domain, admin_email)
        except Exception as exc:  # noqa: BLE001
            logger.exception("directory_list_users_failed", domain=domain, error=str(exc))
            raise DirectoryError(str(exc)) from exc

        users = [_to_directory_user(u) for u in raw_users]
        logger.info("domain_users_listed", domain=domain, user_count=len(users))
        return users

    def _list_users_sync(self, domain: str, admin_email: str) -> list[dict[str, Any]]:
        # Imported lazily to keep import-time cost low and tests fast.
        from google.oauth2 import service_account
        from googleapiclient.discovery import build

        creds = service_account.Credentials.from_service_account_file(
            str(self.settings.service_account_file),
            scopes=[self.settings.directory_scope],
            subject=admin_email,
        )
        service = build("admin", "directory_v1", credentials=creds, cache_discovery=False)
        response = (
            service.users()
            .list(
                domain=domain,
                maxResults=self.settings.directory_max_results,
                orderBy="email",
            )
            .execute()
        )
        return response.get("users", []) or []
