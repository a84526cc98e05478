"""Configuration management for Mailbox Activity.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the MAILBOX_ACTIVITY_ prefix (e.g., MAILBOX_ACTIVITY_PAGE_SIZE).
    """

    model_config = SettingsConfigDict(
        env_prefix="MAILBOX_ACTIVITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Gmail Configuration
    gmail_credentials_path: Path = Field(
        default=Path("credentials.json"),
        description="Path to the OAuth client secrets file (installed-app flow)",
    )
    gmail_token_path: Path = Field(
        default=Path("token.json"),
        description="Path to the cached OAuth token file",
    )
    gmail_scope: str = Field(
        default="https://www.googleapis.com/auth/gmail.readonly",
        description="OAuth scope used for Gmail access. Reporting only ever reads.",
    )
    service_account_file: Path | None = Field(
        default=None,
        description=(
            "Service account key with domain-wide delegation. When set, each mailbox "
            "is accessed by impersonating its owner instead of the OAuth token."
        ),
    )

    # Directory Configuration
    directory_scope: str = Field(
        default="https://www.googleapis.com/auth/admin.directory.user.readonly",
        description="OAuth scope used to list users of the workspace domain",
    )
    workspace_domain: str | None = Field(
        default=None,
        description="Workspace domain whose users are listed for a sweep",
    )
    admin_email: str | None = Field(
        default=None,
        description="Admin identity used for directory lookups",
    )
    directory_max_results: int = Field(
        default=50,
        gt=0,
        le=500,
        description="Maximum number of users returned by a directory lookup",
    )

    # Paging Configuration
    page_size: int = Field(
        default=100,
        gt=0,
        le=500,
        description="Messages requested per result page",
    )
    count_page_size: int = Field(
        default=500,
        gt=0,
        le=500,
        description="Messages requested per page during the exact count pass",
    )
    count_max_pages: int = Field(
        default=50,
        gt=0,
        description="Page ceiling for the exact count pass",
    )

    # Thread fetch Configuration
    thread_batch_size: int = Field(
        default=10,
        gt=0,
        description="Maximum number of thread detail fetches in flight at once",
    )
    thread_fetch_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single thread detail fetch in seconds",
    )
    thread_detail_format: Literal["full", "metadata"] = Field(
        default="full",
        description=(
            "Gmail format used for thread detail. 'full' is required for attachment "
            "filenames and bodies; 'metadata' is cheaper but only carries headers."
        ),
    )

    # Classification Configuration
    reply_policy: Literal["last_reply", "conversation"] = Field(
        default="last_reply",
        description="Reply detection rule: 'last_reply' (canonical) or 'conversation'",
    )

    # Enrichment Configuration
    enrichment_enabled: bool = Field(
        default=True,
        description="Extract structured fields from right-to-represent threads",
    )
    ollama_host: str = Field(
        default="http://localhost:11434",
        description="Ollama API host URL",
    )
    ollama_model: str = Field(
        default="llama3.1:8b",
        description="Ollama model used for field extraction",
    )
    ollama_timeout: int = Field(
        default=60,
        description="Timeout for Ollama API requests in seconds",
    )
    enrichment_max_chars: int = Field(
        default=3000,
        gt=0,
        description="Body characters passed to the extraction model",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Maximum number of retries for transient Gmail failures",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
