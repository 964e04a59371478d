"""Pydantic models for the organization directory endpoint."""

from pydantic import BaseModel, Field


class OrganizationSummary(BaseModel):
    """Directory entry for one organization."""

    id: str = Field(..., description="Organization identifier")
    name: str = Field(..., description="Display name")


class OrganizationsResponse(BaseModel):
    """Response model for the organization listing."""

    organizations: list[OrganizationSummary] = Field(..., description="Organizations available for navigation")
