"""Campaign API routes.

Provides endpoints for:
- GET /scraping/campaigns - List campaigns
- POST /scraping/campaigns - Create a campaign
- POST /scraping/campaigns/{id}/run - Run a campaign
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from socialscout_core.api.deps import CampaignServiceDep, CurrentUserId, ScrapingServiceDep
from socialscout_core.api.schemas.campaigns import (
    CampaignCreate,
    CampaignListResponse,
    CampaignResponse,
    CampaignRunResponse,
)
from socialscout_core.api.schemas.common import PaginationInfo
from socialscout_core.domain.errors import NotFoundError, ValidationError


router = APIRouter(prefix="/scraping/campaigns", tags=["campaigns"])
logger = logging.getLogger(__name__)


@router.get("", response_model=CampaignListResponse)
async def list_campaigns(
    user_id: CurrentUserId,
    campaigns: CampaignServiceDep,
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
) -> CampaignListResponse:
    """List the caller's campaigns, newest first."""
    try:
        items, total = campaigns.list_campaigns(
            user_id, status=status_filter, page=page, limit=limit
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return CampaignListResponse(
        campaigns=[CampaignResponse.model_validate(c) for c in items],
        pagination=PaginationInfo.build(page, limit, total),
    )


@router.post("", response_model=CampaignResponse, status_code=status.HTTP_201_CREATED)
async def create_campaign(
    request: CampaignCreate,
    user_id: CurrentUserId,
    campaigns: CampaignServiceDep,
) -> CampaignResponse:
    """Create a draft campaign."""
    try:
        campaign = campaigns.create_campaign(
            user_id,
            name=request.name,
            platforms=request.platforms,
            scraping_type=request.scraping_type,
            target_queries=request.target_queries,
            description=request.description,
            filters=request.filters,
            schedule=request.schedule,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CampaignResponse.model_validate(campaign)


@router.post("/{campaign_id}/run", response_model=CampaignRunResponse)
async def run_campaign(
    campaign_id: int,
    user_id: CurrentUserId,
    campaigns: CampaignServiceDep,
    scraping: ScrapingServiceDep,
) -> CampaignRunResponse:
    """Run a campaign across all of its platforms."""
    try:
        result = await campaigns.run_campaign(campaign_id, user_id, scraping)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return CampaignRunResponse.model_validate(result)
