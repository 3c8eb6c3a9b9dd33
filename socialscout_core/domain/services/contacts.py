"""Contact listing and statistics service."""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.orm import Session

from socialscout_core.domain.errors import NotFoundError, ValidationError
from socialscout_core.domain.models import (
    ContactTag,
    ContactTagRelation,
    ScrapedContact,
    ScrapingLog,
    utcnow,
)

logger = logging.getLogger(__name__)


SORT_COLUMNS = {
    "created_at": ScrapedContact.created_at,
    "follower_count": ScrapedContact.follower_count,
    "engagement_rate": ScrapedContact.engagement_rate,
}
SORT_ORDERS = {"asc", "desc"}

STATS_ACTIVITY_DAYS = 7


@dataclass
class PlatformStats:
    platform: str
    count: int
    avg_followers: float
    avg_engagement: Optional[float]


@dataclass
class ActivityStats:
    date: str
    count: int
    contacts_found: int


@dataclass
class ScrapingStats:
    total_contacts: int
    platform_stats: list[PlatformStats] = field(default_factory=list)
    recent_activity: list[ActivityStats] = field(default_factory=list)


def tagged_contact_ids(user_id: str, tag_names: list[str]):
    """Select the IDs of contacts carrying any of the named tags."""
    return (
        select(ContactTagRelation.contact_id)
        .join(ContactTag, ContactTag.id == ContactTagRelation.tag_id)
        .where(ContactTag.user_id == user_id, ContactTag.name.in_(tag_names))
    )


class ContactsService:
    """Read access to a user's scraped contacts."""

    def __init__(self, db: Session):
        """Initialize the contacts service.

        Args:
            db: SQLAlchemy database session.
        """
        self.db = db

    def get_contact(self, user_id: str, contact_id: int) -> ScrapedContact:
        """Get one of the user's contacts.

        Raises:
            NotFoundError: If the contact does not exist for the user.
        """
        contact = (
            self.db.query(ScrapedContact)
            .filter(ScrapedContact.id == contact_id, ScrapedContact.user_id == user_id)
            .first()
        )
        if not contact:
            raise NotFoundError(f"Contact not found: {contact_id}")
        return contact

    def list_contacts(
        self,
        user_id: str,
        platform: Optional[str] = None,
        tags: Optional[list[str]] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> tuple[list[ScrapedContact], int]:
        """List contacts with filtering, search, sorting and pagination.

        Args:
            user_id: Owner of the contacts.
            platform: Only contacts from this platform.
            tags: Only contacts carrying at least one of these tag names.
            search: Case-insensitive substring of username, display name
                or bio.
            page: 1-based page number.
            limit: Page size.
            sort_by: One of created_at, follower_count, engagement_rate.
            sort_order: asc or desc.

        Returns:
            Tuple of (contacts on the page, total matching count).

        Raises:
            ValidationError: If the sort field or order is unknown.
        """
        if sort_by not in SORT_COLUMNS:
            raise ValidationError(
                f"Invalid sort_by: {sort_by}. Must be one of {sorted(SORT_COLUMNS)}"
            )
        if sort_order not in SORT_ORDERS:
            raise ValidationError(f"Invalid sort_order: {sort_order}")

        query = self.db.query(ScrapedContact).filter(ScrapedContact.user_id == user_id)

        if platform:
            query = query.filter(ScrapedContact.platform == platform)

        if tags:
            query = query.filter(ScrapedContact.id.in_(tagged_contact_ids(user_id, tags)))

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    ScrapedContact.username.ilike(pattern),
                    ScrapedContact.display_name.ilike(pattern),
                    ScrapedContact.bio.ilike(pattern),
                )
            )

        total = query.count()

        direction = desc if sort_order == "desc" else asc
        contacts = (
            query.order_by(direction(SORT_COLUMNS[sort_by]), direction(ScrapedContact.id))
            .offset((max(page, 1) - 1) * limit)
            .limit(limit)
            .all()
        )
        return contacts, total

    def get_stats(self, user_id: str) -> ScrapingStats:
        """Aggregate contact and activity statistics for a user."""
        total = (
            self.db.query(func.count(ScrapedContact.id))
            .filter(ScrapedContact.user_id == user_id)
            .scalar()
            or 0
        )

        platform_rows = (
            self.db.query(
                ScrapedContact.platform,
                func.count(ScrapedContact.id),
                func.avg(ScrapedContact.follower_count),
                func.avg(ScrapedContact.engagement_rate),
            )
            .filter(ScrapedContact.user_id == user_id)
            .group_by(ScrapedContact.platform)
            .order_by(ScrapedContact.platform)
            .all()
        )

        day = func.date(ScrapingLog.created_at)
        since = utcnow() - timedelta(days=STATS_ACTIVITY_DAYS)
        activity_rows = (
            self.db.query(day, func.count(ScrapingLog.id), func.sum(ScrapingLog.contacts_found))
            .filter(ScrapingLog.user_id == user_id, ScrapingLog.created_at >= since)
            .group_by(day)
            .order_by(desc(day))
            .all()
        )

        return ScrapingStats(
            total_contacts=total,
            platform_stats=[
                PlatformStats(
                    platform=platform,
                    count=count,
                    avg_followers=float(avg_followers or 0),
                    avg_engagement=float(avg_engagement) if avg_engagement is not None else None,
                )
                for platform, count, avg_followers, avg_engagement in platform_rows
            ],
            recent_activity=[
                ActivityStats(date=str(date), count=count, contacts_found=int(found or 0))
                for date, count, found in activity_rows
            ],
        )


__all__ = [
    "ContactsService",
    "ScrapingStats",
    "PlatformStats",
    "ActivityStats",
    "SORT_COLUMNS",
    "tagged_contact_ids",
]
