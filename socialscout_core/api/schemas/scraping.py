"""Pydantic schemas for scraping, logs, stats and compliance."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from socialscout_core.api.schemas.common import PaginationInfo


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================


class ScrapeFiltersSchema(BaseModel):
    """Candidate filters. Unset fields are not applied."""

    min_followers: Optional[int] = Field(None, ge=0, description="Inclusive lower follower bound")
    max_followers: Optional[int] = Field(None, ge=0, description="Inclusive upper follower bound")
    must_be_business: Optional[bool] = Field(None, description="Only business accounts")
    must_be_verified: Optional[bool] = Field(None, description="Only verified accounts")
    location: Optional[list[str]] = Field(None, description="Any of these location substrings")
    keywords: Optional[list[str]] = Field(None, description="Bio contains any of these")
    exclude_keywords: Optional[list[str]] = Field(None, description="Bio contains none of these")


class ScrapeOptionsSchema(BaseModel):
    """Options for a scrape request."""

    max_contacts: Optional[int] = Field(None, ge=1, description="Maximum candidates per query")
    rate_limit_delay: Optional[int] = Field(
        None, ge=0, description="Delay between queries in milliseconds"
    )
    filters: Optional[ScrapeFiltersSchema] = None


class ScrapeRequest(BaseModel):
    """Request schema for a scrape."""

    platform: str = Field(..., description="Target platform (e.g. 'instagram')")
    scraping_type: str = Field(..., description="Scraping type (e.g. 'hashtag')")
    queries: list[str] = Field(..., min_length=1, description="Queries, processed in order")
    options: ScrapeOptionsSchema = Field(default_factory=ScrapeOptionsSchema)


class ComplianceSettingsUpdate(BaseModel):
    """Request schema for updating compliance settings."""

    max_requests_per_hour: Optional[int] = Field(None, ge=1)
    max_requests_per_day: Optional[int] = Field(None, ge=1)
    respect_robots_txt: Optional[bool] = None
    avoid_private_profiles: Optional[bool] = None
    avoid_sensitive_content: Optional[bool] = None
    data_retention_days: Optional[int] = Field(None, ge=1)
    require_consent: Optional[bool] = None


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================


class ScrapeResponse(BaseModel):
    """Response schema for a scrape."""

    contacts_found: int
    contacts_saved: int
    execution_time: int = Field(..., description="Elapsed time in milliseconds")
    errors: list[str]


class ScrapingLogResponse(BaseModel):
    """Response schema for a scraping log entry."""

    id: int
    platform: str
    scraping_type: str
    query: str
    contacts_found: int
    contacts_saved: int
    status: str
    error_message: Optional[str]
    response_time: int
    created_at: datetime

    class Config:
        from_attributes = True


class ScrapingLogListResponse(BaseModel):
    """Response schema for a page of scraping logs."""

    logs: list[ScrapingLogResponse]
    pagination: PaginationInfo


class ComplianceSettingsResponse(BaseModel):
    """Response schema for compliance settings."""

    platform: str
    max_requests_per_hour: int
    max_requests_per_day: int
    respect_robots_txt: bool
    avoid_private_profiles: bool
    avoid_sensitive_content: bool
    data_retention_days: int
    require_consent: bool
    total_requests: int
    total_contacts: int
    last_activity_at: Optional[datetime]

    class Config:
        from_attributes = True


class PlatformStatsResponse(BaseModel):
    platform: str
    count: int
    avg_followers: float
    avg_engagement: Optional[float]

    class Config:
        from_attributes = True


class ActivityStatsResponse(BaseModel):
    date: str
    count: int
    contacts_found: int

    class Config:
        from_attributes = True


class StatsResponse(BaseModel):
    """Response schema for scraping statistics."""

    total_contacts: int
    platform_stats: list[PlatformStatsResponse]
    recent_activity: list[ActivityStatsResponse]

    class Config:
        from_attributes = True
