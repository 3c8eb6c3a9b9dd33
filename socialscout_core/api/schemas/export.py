"""Pydantic schemas for contact exports."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class ExportFiltersSchema(BaseModel):
    """Contact filters for an export."""

    platforms: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    min_followers: Optional[int] = Field(None, ge=0)
    max_followers: Optional[int] = Field(None, ge=0)
    is_verified: Optional[bool] = None
    is_business: Optional[bool] = None
    location: Optional[str] = Field(None, description="Location substring")
    category: Optional[str] = Field(None, description="Category substring")
    date_start: Optional[datetime] = Field(None, description="Earliest scraped_at")
    date_end: Optional[datetime] = Field(None, description="Latest scraped_at")


class ExportRequest(BaseModel):
    """Request schema for an export or preview."""

    format: Literal["csv", "json", "excel", "pdf"]
    fields: Optional[list[str]] = Field(None, description="Field keys, defaults to a standard set")
    filters: Optional[ExportFiltersSchema] = None
    include_analytics: bool = False
    custom_headers: Optional[dict[str, str]] = Field(None, description="Field key to header label")


class ExportPreviewResponse(BaseModel):
    """Response schema for an export preview."""

    format: str
    records: list[dict[str, Any]]
    record_count: int
    preview_count: int
    filename: str
    data: Optional[str] = None

    class Config:
        from_attributes = True


class ExportFieldResponse(BaseModel):
    key: str
    label: str
    type: str


class ExportFieldListResponse(BaseModel):
    """Response schema for the exportable fields."""

    fields: list[ExportFieldResponse]
