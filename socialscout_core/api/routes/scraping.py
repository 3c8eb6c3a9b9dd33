"""Scraping API routes.

Provides endpoints for:
- POST /scraping/scrape - Run a scrape request
- GET /scraping/logs - List scraping logs
- GET /scraping/stats - Contact and activity statistics
- GET /scraping/compliance/{platform} - Get compliance settings
- PUT /scraping/compliance/{platform} - Update compliance settings
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from socialscout_core.api.deps import (
    ComplianceServiceDep,
    ContactsServiceDep,
    CurrentUserId,
    ScrapingLogServiceDep,
    ScrapingServiceDep,
)
from socialscout_core.api.schemas.common import PaginationInfo
from socialscout_core.api.schemas.scraping import (
    ComplianceSettingsResponse,
    ComplianceSettingsUpdate,
    ScrapeRequest,
    ScrapeResponse,
    ScrapingLogListResponse,
    ScrapingLogResponse,
    StatsResponse,
)
from socialscout_core.config import get_settings
from socialscout_core.domain.errors import (
    ConfigurationError,
    PersistenceError,
    RateLimitExceeded,
    ValidationError,
)
from socialscout_core.domain.models import SUPPORTED_PLATFORMS
from socialscout_core.domain.services.scraping import ScrapeFilters, ScrapeOptions


router = APIRouter(prefix="/scraping", tags=["scraping"])
logger = logging.getLogger(__name__)


def _require_platform(platform: str) -> None:
    if platform not in SUPPORTED_PLATFORMS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported platform: {platform}",
        )


# =============================================================================
# SCRAPE
# =============================================================================


@router.post("/scrape", response_model=ScrapeResponse)
async def scrape(
    request: ScrapeRequest,
    user_id: CurrentUserId,
    compliance: ComplianceServiceDep,
    scraping: ScrapingServiceDep,
) -> ScrapeResponse:
    """Run a scrape request.

    Args:
        request: Platform, scraping type, queries and options.
        user_id: Calling user.
        compliance: Compliance gate.
        scraping: Scrape orchestrator.

    Returns:
        Counts, elapsed time and per-query errors.

    Raises:
        HTTPException: 403 when not compliant, 400 on invalid input,
            429 when rate limited, 500 when settings are unavailable.
    """
    _require_platform(request.platform)

    try:
        compliance.get_settings(user_id, request.platform)
    except PersistenceError as e:
        logger.error(f"Compliance settings unavailable for {request.platform}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Compliance settings unavailable",
        )

    decision = compliance.is_compliant(
        user_id, request.platform, request.scraping_type, request.queries
    )
    if not decision.compliant:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=decision.reason)

    settings = get_settings()
    options = ScrapeOptions(
        max_contacts=request.options.max_contacts or settings.scrape_default_max_contacts,
        rate_limit_delay=(
            request.options.rate_limit_delay
            if request.options.rate_limit_delay is not None
            else settings.scrape_default_rate_limit_delay_ms
        ),
        filters=(
            ScrapeFilters(**request.options.filters.model_dump())
            if request.options.filters
            else None
        ),
    )

    try:
        result = await scraping.scrape_contacts(
            user_id,
            request.platform,
            request.scraping_type,
            request.queries,
            options,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RateLimitExceeded as e:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(e))
    except ConfigurationError as e:
        logger.error(f"Scrape failed for {request.platform}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return ScrapeResponse(
        contacts_found=result.total_found,
        contacts_saved=result.total_saved,
        execution_time=result.execution_time_ms,
        errors=result.errors,
    )


# =============================================================================
# LOGS
# =============================================================================


@router.get("/logs", response_model=ScrapingLogListResponse)
async def list_logs(
    user_id: CurrentUserId,
    logs_service: ScrapingLogServiceDep,
    platform: Optional[str] = Query(None, description="Filter by platform"),
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
) -> ScrapingLogListResponse:
    """List the caller's scraping logs, newest first."""
    logs, total = logs_service.list_logs(
        user_id, platform=platform, status=status_filter, page=page, limit=limit
    )
    return ScrapingLogListResponse(
        logs=[ScrapingLogResponse.model_validate(log) for log in logs],
        pagination=PaginationInfo.build(page, limit, total),
    )


# =============================================================================
# STATS
# =============================================================================


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    user_id: CurrentUserId,
    contacts: ContactsServiceDep,
) -> StatsResponse:
    """Get contact counts per platform and the last week's scraping activity."""
    return StatsResponse.model_validate(contacts.get_stats(user_id))


# =============================================================================
# COMPLIANCE
# =============================================================================


@router.get("/compliance/{platform}", response_model=ComplianceSettingsResponse)
async def get_compliance(
    platform: str,
    user_id: CurrentUserId,
    compliance: ComplianceServiceDep,
) -> ComplianceSettingsResponse:
    """Get (or create with defaults) the caller's settings for a platform."""
    _require_platform(platform)
    try:
        settings = compliance.get_settings(user_id, platform)
    except PersistenceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return ComplianceSettingsResponse.model_validate(settings)


@router.put("/compliance/{platform}", response_model=ComplianceSettingsResponse)
async def update_compliance(
    platform: str,
    request: ComplianceSettingsUpdate,
    user_id: CurrentUserId,
    compliance: ComplianceServiceDep,
) -> ComplianceSettingsResponse:
    """Update the caller's settings for a platform."""
    _require_platform(platform)
    try:
        settings = compliance.update_settings(
            user_id, platform, **request.model_dump(exclude_unset=True)
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return ComplianceSettingsResponse.model_validate(settings)
