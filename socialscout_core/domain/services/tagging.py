"""Auto-tagging service for scraped contacts.

This service provides:
1. Rule-based tag derivation from bio, category, location, platform,
   profile tags, engagement, followers and account flags
2. Tag and relation persistence with per-user unique tag names
3. Bulk and manual tagging operations

Usage:
    tagging = TaggingService(db=session)

    proposals = extract_tags(contact)
    tagging.auto_tag_contact(contact)
    tagging.bulk_tag_contacts("u1", [1, 2, 3], TagProposal(name="vip", color="#ff0000"))
"""

import logging
import re
import zlib
from dataclasses import dataclass, field
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from socialscout_core.domain.errors import (
    NotFoundError,
    PersistenceError,
    ScrapingError,
    ValidationError,
)
from socialscout_core.domain.models import ContactTag, ContactTagRelation, ScrapedContact
from socialscout_core.providers.base import CandidateContact

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================


INDUSTRY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "fitness": ("fitness", "gym", "workout", "health", "exercise", "training"),
    "food": ("food", "cooking", "recipe", "restaurant", "chef", "culinary", "dining"),
    "travel": ("travel", "wanderlust", "adventure", "explore", "journey", "trip", "vacation"),
    "technology": (
        "tech", "technology", "coding", "programming", "software", "developer", "startup",
    ),
    "fashion": ("fashion", "style", "outfit", "clothing", "trend", "designer"),
    "music": ("music", "song", "artist", "band", "concert", "album", "musician"),
    "art": ("art", "artist", "creative", "design", "painting", "drawing", "illustration"),
    "business": ("business", "entrepreneur", "startup", "marketing", "sales", "consulting"),
    "lifestyle": ("lifestyle", "life", "living", "daily", "routine", "habits"),
}

MAJOR_CITIES = (
    "new york", "los angeles", "chicago", "houston", "phoenix", "philadelphia",
    "san antonio", "san diego", "dallas", "san jose", "austin", "jacksonville",
    "fort worth", "columbus", "charlotte", "san francisco", "indianapolis",
    "seattle", "denver", "washington", "boston", "el paso", "detroit",
    "nashville", "portland", "oklahoma city", "las vegas", "louisville",
    "baltimore", "milwaukee",
)

CATEGORY_COLORS = {
    "fitness": "#EF4444",
    "food": "#F59E0B",
    "travel": "#10B981",
    "technology": "#3B82F6",
    "fashion": "#8B5CF6",
    "music": "#EC4899",
    "art": "#F97316",
    "business": "#6B7280",
}

PLATFORM_COLORS = {
    "instagram": "#E4405F",
    "tiktok": "#000000",
    "twitter": "#1DA1F2",
    "facebook": "#1877F2",
    "linkedin": "#0A66C2",
    "youtube": "#FF0000",
}
DEFAULT_PLATFORM_COLOR = "#6B7280"

PALETTE = (
    "#EF4444", "#F59E0B", "#10B981", "#3B82F6", "#8B5CF6",
    "#EC4899", "#F97316", "#06B6D4", "#84CC16",
)

HASHTAG_PATTERN = re.compile(r"#\w+")

DEFAULT_MANUAL_CONFIDENCE = 0.8


@dataclass
class TagProposal:
    """A tag to attach to a contact, with its relation metadata."""

    name: str
    color: Optional[str] = None
    description: Optional[str] = None
    confidence: float = DEFAULT_MANUAL_CONFIDENCE
    source: str = "manual"


@dataclass
class BulkTagResult:
    """Outcome of tagging many contacts with one tag."""

    tagged: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


TaggableContact = Union[CandidateContact, ScrapedContact]


# =============================================================================
# TAG DERIVATION
# =============================================================================


def palette_color(name: str) -> str:
    """Pick a palette color for a tag name (stable across runs)."""
    return PALETTE[zlib.crc32(name.encode("utf-8")) % len(PALETTE)]


def category_color(category: str) -> str:
    return CATEGORY_COLORS.get(category.lower(), palette_color(category.lower()))


def platform_color(platform: str) -> str:
    return PLATFORM_COLORS.get(platform.lower(), DEFAULT_PLATFORM_COLOR)


def _profile_tags(contact: TaggableContact) -> list:
    if isinstance(contact, ScrapedContact):
        return list(contact.profile_tags or [])
    return list(contact.tags or [])


def _bio_tags(bio: str) -> list[TagProposal]:
    proposals = []
    lowered = bio.lower()

    for category, keywords in INDUSTRY_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            proposals.append(
                TagProposal(
                    name=category,
                    color=category_color(category),
                    description=f"Industry: {category}",
                    confidence=0.7,
                    source="bio-analysis",
                )
            )

    for match in HASHTAG_PATTERN.findall(bio):
        name = match[1:].lower()
        if len(name) > 2:
            proposals.append(
                TagProposal(
                    name=name,
                    color=palette_color(name),
                    description=f"Hashtag: #{name}",
                    confidence=0.8,
                    source="hashtag",
                )
            )

    return proposals


def _engagement_tag(rate: float) -> Optional[TagProposal]:
    if rate >= 10:
        name, color, label = "high-engagement", "#EF4444", "High"
    elif rate >= 5:
        name, color, label = "medium-engagement", "#F97316", "Medium"
    elif rate >= 2:
        name, color, label = "low-engagement", "#6B7280", "Low"
    else:
        return None

    return TagProposal(
        name=name,
        color=color,
        description=f"{label} engagement: {rate:.1f}%",
        confidence=1.0,
        source="engagement",
    )


def _follower_tag(followers: int) -> Optional[TagProposal]:
    if followers >= 100000:
        name, color, label = "mega-influencer", "#8B5CF6", "Mega"
    elif followers >= 10000:
        name, color, label = "macro-influencer", "#A855F7", "Macro"
    elif followers >= 1000:
        name, color, label = "micro-influencer", "#C084FC", "Micro"
    else:
        return None

    return TagProposal(
        name=name,
        color=color,
        description=f"{label} influencer: {followers:,} followers",
        confidence=1.0,
        source="followers",
    )


def extract_tags(contact: TaggableContact) -> list[TagProposal]:
    """Derive tag proposals for one contact.

    Rules are applied in a fixed order and only the first proposal for each
    tag name is kept.

    Args:
        contact: A candidate or stored contact.

    Returns:
        Deduplicated tag proposals in rule order.
    """
    proposals: list[TagProposal] = []

    if contact.bio:
        proposals.extend(_bio_tags(contact.bio))

    if contact.category:
        slug = re.sub(r"\s+", "-", contact.category.strip().lower())
        if slug:
            proposals.append(
                TagProposal(
                    name=slug,
                    color=category_color(contact.category),
                    description=f"Category: {contact.category}",
                    confidence=0.9,
                    source="category",
                )
            )

    if contact.location:
        lowered = contact.location.lower()
        if any(city in lowered for city in MAJOR_CITIES):
            proposals.append(
                TagProposal(
                    name="major-city",
                    color="#F59E0B",
                    description=f"Location: {contact.location}",
                    confidence=0.9,
                    source="location",
                )
            )

    for raw_tag in _profile_tags(contact):
        name = re.sub(r"[^a-z0-9-]", "", str(raw_tag).lower())
        if name:
            proposals.append(
                TagProposal(
                    name=name,
                    color=palette_color(name),
                    description="Extracted from profile tags",
                    confidence=0.8,
                    source="profile-tags",
                )
            )

    if contact.platform:
        proposals.append(
            TagProposal(
                name=contact.platform.lower(),
                color=platform_color(contact.platform),
                description=f"Platform: {contact.platform}",
                confidence=1.0,
                source="platform",
            )
        )

    if contact.engagement_rate is not None:
        tag = _engagement_tag(contact.engagement_rate)
        if tag:
            proposals.append(tag)

    tag = _follower_tag(contact.follower_count or 0)
    if tag:
        proposals.append(tag)

    if contact.is_business:
        proposals.append(
            TagProposal(
                name="business-account",
                color="#10B981",
                description="Business account",
                confidence=1.0,
                source="account-type",
            )
        )
    if contact.is_verified:
        proposals.append(
            TagProposal(
                name="verified-account",
                color="#3B82F6",
                description="Verified account",
                confidence=1.0,
                source="account-type",
            )
        )

    seen: set[str] = set()
    unique = []
    for proposal in proposals:
        if proposal.name not in seen:
            seen.add(proposal.name)
            unique.append(proposal)
    return unique


# =============================================================================
# SERVICE
# =============================================================================


class TaggingService:
    """Persists tags and contact-tag relations."""

    def __init__(self, db: Session):
        """Initialize the tagging service.

        Args:
            db: SQLAlchemy database session.
        """
        self.db = db

    # =========================================================================
    # TAGS
    # =========================================================================

    def _find_tag(self, user_id: str, name: str) -> Optional[ContactTag]:
        return (
            self.db.query(ContactTag)
            .filter(ContactTag.user_id == user_id, ContactTag.name == name)
            .first()
        )

    def get_or_create_tag(self, user_id: str, proposal: TagProposal) -> ContactTag:
        """Get the user's tag by name, creating it if absent.

        The insert runs in a savepoint. If a concurrent creator wins the
        unique (user_id, name) constraint, its row is returned instead.

        Raises:
            ValidationError: If the tag name is empty.
            PersistenceError: If the tag can be neither created nor read.
        """
        name = (proposal.name or "").strip()
        if not name:
            raise ValidationError("Tag name is required")

        tag = self._find_tag(user_id, name)
        if tag:
            return tag

        try:
            with self.db.begin_nested():
                tag = ContactTag(
                    user_id=user_id,
                    name=name,
                    color=proposal.color or palette_color(name),
                    description=proposal.description,
                    is_system=False,
                    contacts_count=0,
                )
                self.db.add(tag)
                self.db.flush()
            return tag
        except IntegrityError:
            logger.info(f"Tag '{name}' was created concurrently, reusing existing row")

        tag = self._find_tag(user_id, name)
        if tag is None:
            raise PersistenceError(f"Failed to create tag '{name}'")
        return tag

    def create_tag(
        self,
        user_id: str,
        name: str,
        color: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ContactTag:
        """Create (or return the existing) manual tag for a user."""
        return self.get_or_create_tag(
            user_id, TagProposal(name=name, color=color, description=description)
        )

    def get_user_tags(self, user_id: str) -> list[ContactTag]:
        """List a user's tags ordered by name."""
        return (
            self.db.query(ContactTag)
            .filter(ContactTag.user_id == user_id)
            .order_by(ContactTag.name)
            .all()
        )

    def get_contact_tags(self, contact_id: int) -> list[tuple[ContactTag, ContactTagRelation]]:
        """List the tags attached to a contact with their relation rows."""
        return (
            self.db.query(ContactTag, ContactTagRelation)
            .join(ContactTagRelation, ContactTagRelation.tag_id == ContactTag.id)
            .filter(ContactTagRelation.contact_id == contact_id)
            .order_by(ContactTag.name)
            .all()
        )

    def delete_tag(self, tag_id: int, user_id: Optional[str] = None) -> None:
        """Delete a tag and all of its relations.

        Raises:
            NotFoundError: If the tag does not exist (for this user).
            PersistenceError: If the delete fails.
        """
        query = self.db.query(ContactTag).filter(ContactTag.id == tag_id)
        if user_id is not None:
            query = query.filter(ContactTag.user_id == user_id)
        tag = query.first()
        if not tag:
            raise NotFoundError(f"Tag not found: {tag_id}")

        try:
            # Relations go with the tag through the ORM cascade
            self.db.delete(tag)
            self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to delete tag {tag_id}: {e}") from e

    # =========================================================================
    # RELATIONS
    # =========================================================================

    def add_tag_to_contact(
        self,
        platform_user_id: str,
        user_id: str,
        tag_data: TagProposal,
        platform: Optional[str] = None,
    ) -> bool:
        """Attach a tag to a contact, creating the tag if needed.

        Re-applying a tag the contact already carries is a no-op.

        Args:
            platform_user_id: Platform user ID of the contact.
            user_id: Owner of the contact and tag.
            tag_data: Tag to apply.
            platform: Platform of the contact, to disambiguate IDs shared
                across platforms.

        Returns:
            True if a new relation was created, False if it already existed.

        Raises:
            NotFoundError: If the contact does not exist.
            PersistenceError: If a write fails.
        """
        tag = self.get_or_create_tag(user_id, tag_data)

        query = self.db.query(ScrapedContact).filter(
            ScrapedContact.user_id == user_id,
            ScrapedContact.platform_user_id == platform_user_id,
        )
        if platform:
            query = query.filter(ScrapedContact.platform == platform)
        contact = query.first()
        if not contact:
            raise NotFoundError(f"Contact not found: {platform_user_id}")

        existing = (
            self.db.query(ContactTagRelation)
            .filter(
                ContactTagRelation.contact_id == contact.id,
                ContactTagRelation.tag_id == tag.id,
            )
            .first()
        )
        if existing:
            return False

        try:
            self.db.add(
                ContactTagRelation(
                    contact_id=contact.id,
                    tag_id=tag.id,
                    confidence=tag_data.confidence,
                    source=tag_data.source or "manual",
                )
            )
            tag.contacts_count = (tag.contacts_count or 0) + 1
            self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to add tag '{tag.name}' to contact {contact.id}: {e}"
            ) from e

        return True

    def remove_tag_from_contact(self, contact_id: int, tag_id: int) -> bool:
        """Remove a tag from a contact.

        The tag's counter is decremented only when a relation was deleted.

        Returns:
            True if a relation was removed.

        Raises:
            PersistenceError: If the delete fails.
        """
        try:
            deleted = (
                self.db.query(ContactTagRelation)
                .filter(
                    ContactTagRelation.contact_id == contact_id,
                    ContactTagRelation.tag_id == tag_id,
                )
                .delete()
            )
            if not deleted:
                return False

            tag = self.db.query(ContactTag).filter(ContactTag.id == tag_id).first()
            if tag:
                tag.contacts_count = max((tag.contacts_count or 0) - deleted, 0)
            self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to remove tag {tag_id} from contact {contact_id}: {e}"
            ) from e

        return True

    # =========================================================================
    # BATCH OPERATIONS
    # =========================================================================

    def auto_tag_contact(self, contact: ScrapedContact) -> int:
        """Apply every derived tag to a stored contact.

        Per-tag failures are logged and skipped.

        Returns:
            Number of new relations created.
        """
        created = 0
        for proposal in extract_tags(contact):
            try:
                with self.db.begin_nested():
                    if self.add_tag_to_contact(
                        contact.platform_user_id,
                        contact.user_id,
                        proposal,
                        platform=contact.platform,
                    ):
                        created += 1
            except (ScrapingError, SQLAlchemyError) as e:
                logger.warning(
                    f"Failed to apply tag '{proposal.name}' to contact {contact.id}: {e}"
                )
        return created

    def bulk_tag_contacts(
        self,
        user_id: str,
        contact_ids: list[int],
        tag_data: TagProposal,
    ) -> BulkTagResult:
        """Apply one tag to many contacts.

        Missing contacts and per-contact failures are logged and reported in
        the result; the batch always continues.
        """
        result = BulkTagResult()

        for contact_id in contact_ids:
            try:
                with self.db.begin_nested():
                    contact = (
                        self.db.query(ScrapedContact)
                        .filter(
                            ScrapedContact.id == contact_id,
                            ScrapedContact.user_id == user_id,
                        )
                        .first()
                    )
                    if not contact:
                        raise NotFoundError(f"Contact not found: {contact_id}")

                    self.add_tag_to_contact(
                        contact.platform_user_id,
                        user_id,
                        tag_data,
                        platform=contact.platform,
                    )
                result.tagged.append(contact_id)
            except (ScrapingError, SQLAlchemyError) as e:
                logger.error(f"Failed to bulk tag contact {contact_id}: {e}")
                result.failed.append(contact_id)

        return result


__all__ = [
    "TaggingService",
    "TagProposal",
    "BulkTagResult",
    "extract_tags",
    "palette_color",
    "INDUSTRY_KEYWORDS",
    "MAJOR_CITIES",
]
