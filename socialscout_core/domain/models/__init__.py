"""Domain models for SocialScout.

This module defines the SQLAlchemy ORM models for scraped contacts,
their tags, per-platform compliance settings, scraping logs and campaigns.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


# =============================================================================
# ENUMS
# =============================================================================


class Platform(str):
    """Supported social platforms."""

    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    TWITTER = "twitter"
    FACEBOOK = "facebook"
    LINKEDIN = "linkedin"
    YOUTUBE = "youtube"


SUPPORTED_PLATFORMS = (
    Platform.INSTAGRAM,
    Platform.TIKTOK,
    Platform.TWITTER,
    Platform.FACEBOOK,
    Platform.LINKEDIN,
    Platform.YOUTUBE,
)


class ValidationStatus(str):
    """Contact validation status values."""

    PENDING = "pending"
    VALID = "valid"
    INVALID = "invalid"
    UNKNOWN = "unknown"


class ScrapingLogStatus(str):
    """Scraping log status values."""

    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"


class CampaignStatus(str):
    """Campaign status values."""

    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    PARTIAL_SUCCESS = "partial_success"


# =============================================================================
# MODELS
# =============================================================================


class ScrapedContact(Base):
    """A deduplicated social media account discovered by scraping.

    Identity is (user_id, platform, platform_user_id); re-scraping the same
    identity updates the row instead of inserting a new one.
    """

    __tablename__ = "scraped_contacts"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    platform: Mapped[str] = mapped_column(String(32), nullable=False)
    platform_user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    # Profile
    username: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    profile_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    # Tags as carried by the source profile (not the tag relations)
    profile_tags: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    # Metrics
    follower_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    following_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    post_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    engagement_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Flags
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_business: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Provenance
    scraping_source: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    scraping_query: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    validation_status: Mapped[str] = mapped_column(
        Enum("pending", "valid", "invalid", "unknown", name="validation_status_enum"),
        nullable=False,
        default=ValidationStatus.PENDING,
    )

    # Timestamps
    scraped_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "platform", "platform_user_id", name="uq_scraped_contact"
        ),
        Index("idx_contact_user_platform", "user_id", "platform"),
        Index("idx_contact_followers", "user_id", "follower_count"),
    )

    # Relationships
    tag_relations: Mapped[list["ContactTagRelation"]] = relationship(
        back_populates="contact",
        cascade="all, delete-orphan",
    )

    @property
    def tag_names(self) -> list[str]:
        return sorted(relation.tag.name for relation in self.tag_relations)


class ContactTag(Base):
    """A user-scoped label applied to contacts."""

    __tablename__ = "contact_tags"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default="#6B7280")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Denormalized count of relations
    contacts_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_contact_tag"),
    )

    # Relationships
    relations: Mapped[list["ContactTagRelation"]] = relationship(
        back_populates="tag",
        cascade="all, delete-orphan",
    )


class ContactTagRelation(Base):
    """Join row linking one contact to one tag."""

    __tablename__ = "contact_tag_relations"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    contact_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("scraped_contacts.id", ondelete="CASCADE"), nullable=False
    )
    tag_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("contact_tags.id", ondelete="CASCADE"), nullable=False
    )
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.8)
    source: Mapped[str] = mapped_column(String(32), nullable=False, default="manual")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("contact_id", "tag_id", name="uq_contact_tag_relation"),
        Index("idx_relation_tag", "tag_id"),
    )

    # Relationships
    contact: Mapped["ScrapedContact"] = relationship(back_populates="tag_relations")
    tag: Mapped["ContactTag"] = relationship(back_populates="relations")


class ScrapingCompliance(Base):
    """Per user and platform rate caps and data policy settings."""

    __tablename__ = "scraping_compliance"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    platform: Mapped[str] = mapped_column(String(32), nullable=False)

    max_requests_per_hour: Mapped[int] = mapped_column(Integer, nullable=False)
    max_requests_per_day: Mapped[int] = mapped_column(Integer, nullable=False)
    respect_robots_txt: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    avoid_private_profiles: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    avoid_sensitive_content: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    # Advisory only; nothing deletes contacts based on it
    data_retention_days: Mapped[int] = mapped_column(Integer, nullable=False, default=365)
    require_consent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Informational activity counters
    total_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_contacts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_activity_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint("user_id", "platform", name="uq_scraping_compliance"),
    )


class ScrapingLog(Base):
    """Append-only record of one (platform, scraping type, query) attempt."""

    __tablename__ = "scraping_logs"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    platform: Mapped[str] = mapped_column(String(32), nullable=False)
    scraping_type: Mapped[str] = mapped_column(String(32), nullable=False)
    query: Mapped[str] = mapped_column(String(255), nullable=False)

    contacts_found: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    contacts_saved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        Enum("success", "partial_success", name="scraping_log_status_enum"),
        nullable=False,
        default=ScrapingLogStatus.SUCCESS,
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    response_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_scraping_log_window", "user_id", "platform", "created_at"),
    )


class ScrapingCampaign(Base):
    """A saved scraping configuration that can be run across platforms."""

    __tablename__ = "scraping_campaigns"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Targets
    platforms: Mapped[list] = mapped_column(JSON, nullable=False)
    scraping_type: Mapped[str] = mapped_column(String(32), nullable=False)
    target_queries: Mapped[list] = mapped_column(JSON, nullable=False)
    filters: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    # Stored for the UI; nothing executes it
    schedule: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    status: Mapped[str] = mapped_column(
        Enum(
            "draft",
            "active",
            "completed",
            "partial_success",
            name="campaign_status_enum",
        ),
        nullable=False,
        default=CampaignStatus.DRAFT,
    )
    contacts_found: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_run_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index("idx_campaign_user_status", "user_id", "status"),
    )


__all__ = [
    "Base",
    "utcnow",
    "Platform",
    "SUPPORTED_PLATFORMS",
    "ValidationStatus",
    "ScrapingLogStatus",
    "CampaignStatus",
    "ScrapedContact",
    "ContactTag",
    "ContactTagRelation",
    "ScrapingCompliance",
    "ScrapingLog",
    "ScrapingCampaign",
]
