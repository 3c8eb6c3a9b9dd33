"""Pydantic schemas for contacts and tags."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from socialscout_core.api.schemas.common import PaginationInfo


# =============================================================================
# CONTACTS
# =============================================================================


class ContactResponse(BaseModel):
    """Response schema for a scraped contact."""

    id: int
    platform: str
    platform_user_id: str
    username: Optional[str]
    display_name: Optional[str]
    profile_url: Optional[str]
    avatar_url: Optional[str]
    bio: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    website: Optional[str]
    location: Optional[str]
    category: Optional[str]
    follower_count: int
    following_count: int
    post_count: int
    engagement_rate: Optional[float]
    is_verified: bool
    is_business: bool
    scraping_source: Optional[str]
    scraping_query: Optional[str]
    validation_status: str
    tag_names: list[str] = Field(default_factory=list, description="Names of attached tags")
    scraped_at: datetime
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ContactListResponse(BaseModel):
    """Response schema for a page of contacts."""

    contacts: list[ContactResponse]
    pagination: PaginationInfo


# =============================================================================
# TAGS
# =============================================================================


class TagData(BaseModel):
    """A tag to apply to contacts."""

    name: str = Field(..., min_length=1, max_length=128, description="Tag name")
    color: Optional[str] = Field(None, description="Hex color (e.g. '#ff0000')")
    description: Optional[str] = None
    confidence: float = Field(0.8, ge=0.0, le=1.0)


class BulkTagRequest(BaseModel):
    """Request schema for tagging many contacts."""

    contact_ids: list[int] = Field(..., min_length=1, description="Contact IDs to tag")
    tag: TagData


class BulkTagResponse(BaseModel):
    """Response schema for bulk tagging."""

    message: str
    tagged: list[int]
    failed: list[int]


class TagResponse(BaseModel):
    """Response schema for a tag."""

    id: int
    name: str
    color: str
    description: Optional[str]
    is_system: bool
    contacts_count: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TagListResponse(BaseModel):
    """Response schema for a user's tags."""

    tags: list[TagResponse]
