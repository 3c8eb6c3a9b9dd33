"""Export API routes.

Provides endpoints for:
- POST /scraping/export - Download an export file
- POST /scraping/export/preview - Preview the first records of an export
- GET /scraping/export/fields - List exportable fields
"""

from fastapi import APIRouter, HTTPException, Response, status

from socialscout_core.api.deps import CurrentUserId, ExportServiceDep
from socialscout_core.api.schemas.export import (
    ExportFieldListResponse,
    ExportFieldResponse,
    ExportPreviewResponse,
    ExportRequest,
)
from socialscout_core.domain.errors import ValidationError
from socialscout_core.domain.services.export import EXPORT_FIELDS, ExportFilters, ExportOptions


router = APIRouter(prefix="/scraping/export", tags=["export"])


def _to_options(request: ExportRequest) -> ExportOptions:
    return ExportOptions(
        format=request.format,
        fields=request.fields,
        filters=ExportFilters(**request.filters.model_dump()) if request.filters else None,
        include_analytics=request.include_analytics,
        custom_headers=request.custom_headers,
    )


@router.post("")
async def export_contacts(
    request: ExportRequest,
    user_id: CurrentUserId,
    exporter: ExportServiceDep,
) -> Response:
    """Export the caller's contacts as a file download."""
    try:
        result = exporter.export_contacts(user_id, _to_options(request))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return Response(
        content=result.data,
        media_type=result.mime_type,
        headers={
            "Content-Disposition": f'attachment; filename="{result.filename}"',
            "X-Record-Count": str(result.record_count),
        },
    )


@router.post("/preview", response_model=ExportPreviewResponse)
async def preview_export(
    request: ExportRequest,
    user_id: CurrentUserId,
    exporter: ExportServiceDep,
) -> ExportPreviewResponse:
    """Preview an export."""
    try:
        preview = exporter.preview_export(user_id, _to_options(request))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ExportPreviewResponse.model_validate(preview)


@router.get("/fields", response_model=ExportFieldListResponse)
async def list_export_fields() -> ExportFieldListResponse:
    """List the fields that can be exported."""
    return ExportFieldListResponse(
        fields=[
            ExportFieldResponse(key=key, label=label, type=kind)
            for key, label, kind in EXPORT_FIELDS
        ]
    )
