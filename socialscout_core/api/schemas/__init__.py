"""API schemas."""

from socialscout_core.api.schemas.campaigns import (
    CampaignCreate,
    CampaignListResponse,
    CampaignResponse,
    CampaignRunResponse,
)
from socialscout_core.api.schemas.common import MessageResponse, PaginationInfo
from socialscout_core.api.schemas.contacts import (
    BulkTagRequest,
    BulkTagResponse,
    ContactListResponse,
    ContactResponse,
    TagData,
    TagListResponse,
    TagResponse,
)
from socialscout_core.api.schemas.export import (
    ExportFieldListResponse,
    ExportFiltersSchema,
    ExportPreviewResponse,
    ExportRequest,
)
from socialscout_core.api.schemas.scraping import (
    ComplianceSettingsResponse,
    ComplianceSettingsUpdate,
    ScrapeRequest,
    ScrapeResponse,
    ScrapingLogListResponse,
    StatsResponse,
)

__all__ = [
    "BulkTagRequest",
    "BulkTagResponse",
    "CampaignCreate",
    "CampaignListResponse",
    "CampaignResponse",
    "CampaignRunResponse",
    "ComplianceSettingsResponse",
    "ComplianceSettingsUpdate",
    "ContactListResponse",
    "ContactResponse",
    "ExportFieldListResponse",
    "ExportFiltersSchema",
    "ExportPreviewResponse",
    "ExportRequest",
    "MessageResponse",
    "PaginationInfo",
    "ScrapeRequest",
    "ScrapeResponse",
    "ScrapingLogListResponse",
    "StatsResponse",
    "TagData",
    "TagListResponse",
    "TagResponse",
]
