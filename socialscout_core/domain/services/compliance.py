"""Compliance gate for scraping requests.

This service provides:
1. Lazily created per-platform compliance settings
2. Allowed scraping type checks
3. Rolling hour and day request caps counted from scraping logs
4. Informational activity counters

Usage:
    compliance = ComplianceService(db=session)

    settings = compliance.get_settings("u1", "instagram")
    decision = compliance.is_compliant("u1", "instagram", "hashtag", ["fitness"])
    compliance.check_rate_limit("u1", "instagram")
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from socialscout_core.domain.errors import (
    PersistenceError,
    RateLimitExceeded,
    ValidationError,
)
from socialscout_core.domain.models import ScrapingCompliance, ScrapingLog, utcnow
from socialscout_core.providers.base import ALLOWED_SCRAPING_TYPES

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================


DEFAULT_HOURLY_LIMITS = {
    "instagram": 60,
    "tiktok": 80,
    "twitter": 100,
    "facebook": 40,
    "linkedin": 20,
    "youtube": 120,
}
DEFAULT_HOURLY_LIMIT = 50

DEFAULT_DAILY_LIMITS = {
    "instagram": 1000,
    "tiktok": 1500,
    "twitter": 2000,
    "facebook": 800,
    "linkedin": 300,
    "youtube": 2500,
}
DEFAULT_DAILY_LIMIT = 1000

CONSENT_REQUIRED_PLATFORMS = frozenset({"linkedin", "facebook"})

DEFAULT_RETENTION_DAYS = 365

# Settings fields that may be changed through update_settings
MUTABLE_FIELDS = (
    "max_requests_per_hour",
    "max_requests_per_day",
    "respect_robots_txt",
    "avoid_private_profiles",
    "avoid_sensitive_content",
    "data_retention_days",
    "require_consent",
)


@dataclass
class ComplianceDecision:
    """Outcome of a compliance check."""

    compliant: bool
    reason: Optional[str] = None


# =============================================================================
# SERVICE
# =============================================================================


class ComplianceService:
    """Per user and platform rate gate.

    The rate checks count scraping log rows and compare against the
    configured caps. There is no locking: two concurrent requests from the
    same user can both pass before either is logged.
    """

    def __init__(self, db: Session):
        """Initialize the compliance service.

        Args:
            db: SQLAlchemy database session.
        """
        self.db = db

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def find_settings(self, user_id: str, platform: str) -> Optional[ScrapingCompliance]:
        """Get existing settings without creating them."""
        return (
            self.db.query(ScrapingCompliance)
            .filter(
                ScrapingCompliance.user_id == user_id,
                ScrapingCompliance.platform == platform,
            )
            .first()
        )

    def get_settings(self, user_id: str, platform: str) -> ScrapingCompliance:
        """Get settings for a user and platform, creating defaults if absent.

        Args:
            user_id: Owner of the settings.
            platform: Platform name.

        Returns:
            The existing or newly created ScrapingCompliance.

        Raises:
            PersistenceError: If the settings row cannot be read or written.
        """
        try:
            settings = self.find_settings(user_id, platform)
            if settings:
                return settings

            settings = ScrapingCompliance(
                user_id=user_id,
                platform=platform,
                max_requests_per_hour=DEFAULT_HOURLY_LIMITS.get(platform, DEFAULT_HOURLY_LIMIT),
                max_requests_per_day=DEFAULT_DAILY_LIMITS.get(platform, DEFAULT_DAILY_LIMIT),
                respect_robots_txt=True,
                avoid_private_profiles=True,
                avoid_sensitive_content=True,
                data_retention_days=DEFAULT_RETENTION_DAYS,
                require_consent=platform in CONSENT_REQUIRED_PLATFORMS,
            )
            self.db.add(settings)
            self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to load compliance settings for {platform}: {e}"
            ) from e

        logger.info(f"Created default compliance settings for user {user_id} on {platform}")
        return settings

    def update_settings(
        self, user_id: str, platform: str, **changes: Any
    ) -> ScrapingCompliance:
        """Update mutable settings fields.

        Args:
            user_id: Owner of the settings.
            platform: Platform name.
            **changes: Field values to set. None values are ignored.

        Returns:
            The updated settings.

        Raises:
            ValidationError: If a field is unknown or a limit is not positive.
            PersistenceError: If the write fails.
        """
        unknown = set(changes) - set(MUTABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown compliance fields: {', '.join(sorted(unknown))}")

        for name in ("max_requests_per_hour", "max_requests_per_day", "data_retention_days"):
            value = changes.get(name)
            if value is not None and value < 1:
                raise ValidationError(f"{name} must be at least 1")

        settings = self.get_settings(user_id, platform)
        for name, value in changes.items():
            if value is not None:
                setattr(settings, name, value)

        try:
            self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update compliance settings: {e}") from e

        return settings

    # =========================================================================
    # DECISIONS
    # =========================================================================

    def is_compliant(
        self,
        user_id: str,
        platform: str,
        scraping_type: str,
        queries: list[str],
    ) -> ComplianceDecision:
        """Decide whether a scraping request is allowed.

        Does not create settings or write anything.

        Args:
            user_id: Requesting user.
            platform: Target platform.
            scraping_type: Requested scraping type.
            queries: Requested queries.

        Returns:
            ComplianceDecision with a reason when not compliant.
        """
        settings = self.find_settings(user_id, platform)
        if not settings:
            return ComplianceDecision(False, "Compliance settings not found")

        allowed = ALLOWED_SCRAPING_TYPES.get(platform, frozenset())
        if scraping_type not in allowed:
            return ComplianceDecision(
                False,
                f"Scraping type '{scraping_type}' is not allowed for {platform}",
            )

        return ComplianceDecision(True)

    def count_recent_requests(
        self, user_id: str, platform: str, window: timedelta
    ) -> int:
        """Count scraping log rows newer than now minus window."""
        since = utcnow() - window
        return (
            self.db.query(func.count(ScrapingLog.id))
            .filter(
                ScrapingLog.user_id == user_id,
                ScrapingLog.platform == platform,
                ScrapingLog.created_at >= since,
            )
            .scalar()
            or 0
        )

    def check_rate_limit(self, user_id: str, platform: str) -> None:
        """Fail if the rolling hour or day count meets the configured cap.

        Raises:
            RateLimitExceeded: With the cap in the message and on ``limit``.
        """
        settings = self.get_settings(user_id, platform)

        hourly = self.count_recent_requests(user_id, platform, timedelta(hours=1))
        if hourly >= settings.max_requests_per_hour:
            raise RateLimitExceeded(
                f"Rate limit exceeded: maximum {settings.max_requests_per_hour} "
                f"requests per hour for {platform}",
                settings.max_requests_per_hour,
            )

        daily = self.count_recent_requests(user_id, platform, timedelta(days=1))
        if daily >= settings.max_requests_per_day:
            raise RateLimitExceeded(
                f"Rate limit exceeded: maximum {settings.max_requests_per_day} "
                f"requests per day for {platform}",
                settings.max_requests_per_day,
            )

    # =========================================================================
    # ACTIVITY
    # =========================================================================

    def record_activity(
        self,
        user_id: str,
        platform: str,
        scraping_type: str,
        contact_count: int,
    ) -> None:
        """Increment the informational activity counters.

        Failures are logged and never raised.
        """
        try:
            with self.db.begin_nested():
                settings = self.get_settings(user_id, platform)
                settings.total_requests = (settings.total_requests or 0) + 1
                settings.total_contacts = (settings.total_contacts or 0) + contact_count
                settings.last_activity_at = utcnow()
        except (SQLAlchemyError, PersistenceError) as e:
            logger.warning(
                f"Failed to record {scraping_type} activity for user {user_id} "
                f"on {platform}: {e}"
            )


__all__ = [
    "ComplianceService",
    "ComplianceDecision",
    "DEFAULT_HOURLY_LIMITS",
    "DEFAULT_DAILY_LIMITS",
    "MUTABLE_FIELDS",
]
