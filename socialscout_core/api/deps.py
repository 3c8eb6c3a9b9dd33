"""API dependencies for dependency injection."""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from socialscout_core.config import get_settings
from socialscout_core.domain.services.campaigns import CampaignService
from socialscout_core.domain.services.compliance import ComplianceService
from socialscout_core.domain.services.contacts import ContactsService
from socialscout_core.domain.services.export import ExportService
from socialscout_core.domain.services.scraping import ScrapingLogService, ScrapingService
from socialscout_core.domain.services.tagging import TaggingService
from socialscout_core.infra.db import get_sync_session_factory
from socialscout_core.providers.base import CandidateSourceRegistry


def get_db() -> Session:
    """Get a database session."""
    session_factory = get_sync_session_factory()
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_current_user_id(
    x_user_id: Annotated[Optional[str], Header()] = None,
) -> str:
    """Get the calling user's ID from the X-User-Id header.

    Raises:
        HTTPException: If the header is missing or blank.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id.strip()


def get_candidate_sources(request: Request) -> CandidateSourceRegistry:
    """Get the process-wide candidate source registry."""
    return request.app.state.candidate_sources


def get_compliance_service(db: Annotated[Session, Depends(get_db)]) -> ComplianceService:
    return ComplianceService(db)


def get_tagging_service(db: Annotated[Session, Depends(get_db)]) -> TaggingService:
    return TaggingService(db)


def get_scraping_service(
    db: Annotated[Session, Depends(get_db)],
    compliance: Annotated[ComplianceService, Depends(get_compliance_service)],
    tagging: Annotated[TaggingService, Depends(get_tagging_service)],
    sources: Annotated[CandidateSourceRegistry, Depends(get_candidate_sources)],
) -> ScrapingService:
    """Get the scrape orchestrator wired to this request's session."""
    return ScrapingService(
        db,
        compliance=compliance,
        tagging=tagging,
        sources=sources,
        max_query_length=get_settings().scrape_max_query_length,
    )


def get_export_service(db: Annotated[Session, Depends(get_db)]) -> ExportService:
    settings = get_settings()
    return ExportService(
        db,
        pdf_max_rows=settings.export_pdf_max_rows,
        preview_rows=settings.export_preview_rows,
    )


# Type aliases for cleaner route signatures
DBSession = Annotated[Session, Depends(get_db)]
CurrentUserId = Annotated[str, Depends(get_current_user_id)]
ComplianceServiceDep = Annotated[ComplianceService, Depends(get_compliance_service)]
TaggingServiceDep = Annotated[TaggingService, Depends(get_tagging_service)]
ScrapingServiceDep = Annotated[ScrapingService, Depends(get_scraping_service)]
ExportServiceDep = Annotated[ExportService, Depends(get_export_service)]


def get_contacts_service(db: DBSession) -> ContactsService:
    return ContactsService(db)


def get_campaign_service(db: DBSession) -> CampaignService:
    return CampaignService(db)


def get_scraping_log_service(db: DBSession) -> ScrapingLogService:
    return ScrapingLogService(db)


ContactsServiceDep = Annotated[ContactsService, Depends(get_contacts_service)]
CampaignServiceDep = Annotated[CampaignService, Depends(get_campaign_service)]
ScrapingLogServiceDep = Annotated[ScrapingLogService, Depends(get_scraping_log_service)]
