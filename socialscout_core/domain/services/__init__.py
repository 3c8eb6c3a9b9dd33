"""Domain services for SocialScout."""

from socialscout_core.domain.services.campaigns import CampaignService
from socialscout_core.domain.services.compliance import ComplianceDecision, ComplianceService
from socialscout_core.domain.services.contacts import ContactsService
from socialscout_core.domain.services.export import ExportService
from socialscout_core.domain.services.scraping import (
    ScrapeFilters,
    ScrapeOptions,
    ScrapingLogService,
    ScrapingResult,
    ScrapingService,
    apply_filters,
)
from socialscout_core.domain.services.tagging import TaggingService, TagProposal, extract_tags

__all__ = [
    "CampaignService",
    "ComplianceDecision",
    "ComplianceService",
    "ContactsService",
    "ExportService",
    "ScrapeFilters",
    "ScrapeOptions",
    "ScrapingLogService",
    "ScrapingResult",
    "ScrapingService",
    "TaggingService",
    "TagProposal",
    "apply_filters",
    "extract_tags",
]
