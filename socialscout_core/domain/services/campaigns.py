"""Scraping campaign service.

This service provides:
1. Campaign creation (as drafts) and listing
2. Campaign runs that scrape every target platform in turn

Usage:
    service = CampaignService(db=session)

    campaign = service.create_campaign(
        user_id="u1",
        name="Fitness creators",
        platforms=["instagram", "tiktok"],
        scraping_type="hashtag",
        target_queries=["fitness", "gym"],
    )
    run = await service.run_campaign(campaign.id, "u1", orchestrator)
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from socialscout_core.domain.errors import NotFoundError, ScrapingError, ValidationError
from socialscout_core.domain.models import (
    SUPPORTED_PLATFORMS,
    CampaignStatus,
    ScrapingCampaign,
    utcnow,
)
from socialscout_core.domain.services.scraping import (
    ScrapeFilters,
    ScrapeOptions,
    ScrapingService,
)
from socialscout_core.observability import get_logger

logger = get_logger(__name__)


VALID_STATUSES = {
    CampaignStatus.DRAFT,
    CampaignStatus.ACTIVE,
    CampaignStatus.COMPLETED,
    CampaignStatus.PARTIAL_SUCCESS,
}


@dataclass
class CampaignRunResult:
    """Outcome of one campaign run."""

    campaign_id: int
    contacts_found: int
    errors: list[str] = field(default_factory=list)


class CampaignService:
    """Service for managing and running scraping campaigns."""

    def __init__(self, db: Session):
        """Initialize the campaign service.

        Args:
            db: SQLAlchemy database session.
        """
        self.db = db

    # =========================================================================
    # CREATE / READ
    # =========================================================================

    def create_campaign(
        self,
        user_id: str,
        name: str,
        platforms: list[str],
        scraping_type: str,
        target_queries: list[str],
        description: Optional[str] = None,
        filters: Optional[dict[str, Any]] = None,
        schedule: Optional[dict[str, Any]] = None,
    ) -> ScrapingCampaign:
        """Create a draft campaign.

        Raises:
            ValidationError: If a required field is missing or a platform is
                unknown.
        """
        if not name or not name.strip():
            raise ValidationError("Campaign name is required")
        if not platforms:
            raise ValidationError("At least one platform is required")
        if not scraping_type:
            raise ValidationError("Scraping type is required")
        if not target_queries:
            raise ValidationError("At least one target query is required")

        unknown = [p for p in platforms if p not in SUPPORTED_PLATFORMS]
        if unknown:
            raise ValidationError(f"Unsupported platforms: {', '.join(unknown)}")

        campaign = ScrapingCampaign(
            user_id=user_id,
            name=name.strip(),
            description=description,
            platforms=list(platforms),
            scraping_type=scraping_type,
            target_queries=list(target_queries),
            filters=filters,
            schedule=schedule,
            status=CampaignStatus.DRAFT,
            contacts_found=0,
        )
        self.db.add(campaign)
        self.db.flush()
        return campaign

    def get_campaign(self, campaign_id: int, user_id: str) -> ScrapingCampaign:
        """Get a user's campaign.

        Raises:
            NotFoundError: If the campaign does not exist for the user.
        """
        campaign = (
            self.db.query(ScrapingCampaign)
            .filter(ScrapingCampaign.id == campaign_id, ScrapingCampaign.user_id == user_id)
            .first()
        )
        if not campaign:
            raise NotFoundError(f"Campaign not found: {campaign_id}")
        return campaign

    def list_campaigns(
        self,
        user_id: str,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[ScrapingCampaign], int]:
        """List a user's campaigns, newest first."""
        if status and status not in VALID_STATUSES:
            raise ValidationError(f"Invalid status: {status}")

        query = self.db.query(ScrapingCampaign).filter(ScrapingCampaign.user_id == user_id)
        if status:
            query = query.filter(ScrapingCampaign.status == status)

        total = query.count()
        campaigns = (
            query.order_by(desc(ScrapingCampaign.created_at), desc(ScrapingCampaign.id))
            .offset((max(page, 1) - 1) * limit)
            .limit(limit)
            .all()
        )
        return campaigns, total

    # =========================================================================
    # RUN
    # =========================================================================

    async def run_campaign(
        self,
        campaign_id: int,
        user_id: str,
        orchestrator: ScrapingService,
    ) -> CampaignRunResult:
        """Run a campaign across its platforms, one after another.

        A platform whose scrape raises is recorded as "<platform>: <error>"
        and the run continues. The campaign ends as partial_success if any
        platform failed, completed otherwise.

        Raises:
            NotFoundError: If the campaign does not exist for the user.
        """
        campaign = self.get_campaign(campaign_id, user_id)
        log = logger.bind(user_id=user_id, campaign_id=campaign.id)

        campaign.status = CampaignStatus.ACTIVE
        campaign.last_run_at = utcnow()
        self.db.flush()

        options = ScrapeOptions(filters=ScrapeFilters.from_dict(campaign.filters))
        total_saved = 0
        errors: list[str] = []

        for platform in campaign.platforms:
            try:
                result = await orchestrator.scrape_contacts(
                    user_id,
                    platform,
                    campaign.scraping_type,
                    list(campaign.target_queries),
                    options,
                )
            except ScrapingError as e:
                errors.append(f"{platform}: {e}")
                log.error(
                    f"Campaign {campaign_id} scraping error for {platform}: {e}",
                    extra={"platform": platform},
                )
                continue

            total_saved += result.total_saved
            campaign.contacts_found = total_saved
            self.db.flush()

        campaign.status = (
            CampaignStatus.PARTIAL_SUCCESS if errors else CampaignStatus.COMPLETED
        )
        campaign.contacts_found = total_saved
        self.db.flush()

        log.info(
            f"Campaign {campaign_id} finished with status {campaign.status}: "
            f"{total_saved} contacts saved"
        )
        return CampaignRunResult(
            campaign_id=campaign.id, contacts_found=total_saved, errors=errors
        )


__all__ = [
    "CampaignService",
    "CampaignRunResult",
    "VALID_STATUSES",
]
