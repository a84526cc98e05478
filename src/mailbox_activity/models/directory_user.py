"""Directory user model."""

from __future__ import annotations

from pydantic import BaseModel, Field


class DirectoryUser(BaseModel):
    """A user account in the workspace directory."""

    email: str = Field(description="Primary email address")
    full_name: str = Field(default="", description="Display name")
    org_unit_path: str | None = Field(default=None, description="Organizational unit")
    suspended: bool = Field(default=False, description="Whether the account is suspended")
