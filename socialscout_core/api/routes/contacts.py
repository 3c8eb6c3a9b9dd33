"""Contacts API routes.

Provides endpoints for:
- GET /scraping/contacts - List contacts
- POST /scraping/contacts/tag - Tag many contacts
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from socialscout_core.api.deps import ContactsServiceDep, CurrentUserId, TaggingServiceDep
from socialscout_core.api.schemas.common import PaginationInfo
from socialscout_core.api.schemas.contacts import (
    BulkTagRequest,
    BulkTagResponse,
    ContactListResponse,
    ContactResponse,
)
from socialscout_core.domain.errors import ValidationError
from socialscout_core.domain.services.tagging import TagProposal


router = APIRouter(prefix="/scraping/contacts", tags=["contacts"])
logger = logging.getLogger(__name__)


@router.get("", response_model=ContactListResponse)
async def list_contacts(
    user_id: CurrentUserId,
    contacts: ContactsServiceDep,
    platform: Optional[str] = Query(None, description="Filter by platform"),
    tags: Optional[list[str]] = Query(None, description="Only contacts with any of these tags"),
    search: Optional[str] = Query(None, description="Search username, display name and bio"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    sort_by: str = Query("created_at", description="created_at, follower_count or engagement_rate"),
    sort_order: str = Query("desc", description="asc or desc"),
) -> ContactListResponse:
    """List the caller's contacts."""
    try:
        items, total = contacts.list_contacts(
            user_id,
            platform=platform,
            tags=tags,
            search=search,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return ContactListResponse(
        contacts=[ContactResponse.model_validate(c) for c in items],
        pagination=PaginationInfo.build(page, limit, total),
    )


@router.post("/tag", response_model=BulkTagResponse)
async def bulk_tag_contacts(
    request: BulkTagRequest,
    user_id: CurrentUserId,
    tagging: TaggingServiceDep,
) -> BulkTagResponse:
    """Apply one tag to many of the caller's contacts.

    Contacts that cannot be tagged are reported in ``failed``.
    """
    result = tagging.bulk_tag_contacts(
        user_id,
        request.contact_ids,
        TagProposal(
            name=request.tag.name,
            color=request.tag.color,
            description=request.tag.description,
            confidence=request.tag.confidence,
        ),
    )
    return BulkTagResponse(
        message=f'Tagged {len(result.tagged)} contacts with "{request.tag.name}"',
        tagged=result.tagged,
        failed=result.failed,
    )
