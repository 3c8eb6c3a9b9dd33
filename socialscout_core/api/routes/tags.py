"""Tags API routes.

Provides endpoints for:
- GET /scraping/tags - List tags
- POST /scraping/tags - Create a manual tag
- DELETE /scraping/tags/{id} - Delete a tag and its relations
"""

from fastapi import APIRouter, HTTPException, status

from socialscout_core.api.deps import CurrentUserId, TaggingServiceDep
from socialscout_core.api.schemas.contacts import TagData, TagListResponse, TagResponse
from socialscout_core.domain.errors import NotFoundError, ValidationError


router = APIRouter(prefix="/scraping/tags", tags=["tags"])


@router.get("", response_model=TagListResponse)
async def list_tags(user_id: CurrentUserId, tagging: TaggingServiceDep) -> TagListResponse:
    """List the caller's tags ordered by name."""
    tags = tagging.get_user_tags(user_id)
    return TagListResponse(tags=[TagResponse.model_validate(t) for t in tags])


@router.post("", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(
    request: TagData,
    user_id: CurrentUserId,
    tagging: TaggingServiceDep,
) -> TagResponse:
    """Create a manual tag, or return the existing tag with that name."""
    try:
        tag = tagging.create_tag(
            user_id, request.name, color=request.color, description=request.description
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return TagResponse.model_validate(tag)


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(tag_id: int, user_id: CurrentUserId, tagging: TaggingServiceDep) -> None:
    """Delete one of the caller's tags."""
    try:
        tagging.delete_tag(tag_id, user_id=user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
