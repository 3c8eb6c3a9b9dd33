"""Pydantic schemas for scraping campaigns."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from socialscout_core.api.schemas.common import PaginationInfo


class CampaignCreate(BaseModel):
    """Request schema for creating a campaign."""

    name: str = Field(..., min_length=1, max_length=255, description="Campaign name")
    description: Optional[str] = None
    platforms: list[str] = Field(..., min_length=1, description="Platforms to scrape")
    scraping_type: str = Field(..., description="Scraping type used on every platform")
    target_queries: list[str] = Field(..., min_length=1, description="Queries to run")
    filters: Optional[dict[str, Any]] = Field(None, description="Candidate filters")
    schedule: Optional[dict[str, Any]] = Field(None, description="Stored schedule, not executed")


class CampaignResponse(BaseModel):
    """Response schema for a campaign."""

    id: int
    name: str
    description: Optional[str]
    platforms: list[str]
    scraping_type: str
    target_queries: list[str]
    filters: Optional[dict[str, Any]]
    schedule: Optional[dict[str, Any]]
    status: str
    contacts_found: int
    last_run_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CampaignListResponse(BaseModel):
    """Response schema for a page of campaigns."""

    campaigns: list[CampaignResponse]
    pagination: PaginationInfo


class CampaignRunResponse(BaseModel):
    """Response schema for a campaign run."""

    campaign_id: int
    contacts_found: int
    errors: list[str]

    class Config:
        from_attributes = True
