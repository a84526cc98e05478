"""Models for right-to-represent (RTR) field extraction."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RtrFields(BaseModel):
    """Structured details extracted from a right-to-represent thread."""

    model_config = ConfigDict(extra="ignore")

    client: str | None = Field(default=None, description="End client company")
    rate: str | None = Field(default=None, description="Pay rate, e.g. $50/hr or 80k/yr")
    candidate: str | None = Field(default=None, description="Candidate being represented")
    position: str | None = Field(default=None, description="Job title / role")
    location: str | None = Field(default=None, description="City, state or Remote")
    vendor: str | None = Field(default=None, description="Vendor or staffing agency")
    date_context: str | None = Field(
        default=None, description="Date of the RTR when stated in the text"
    )
