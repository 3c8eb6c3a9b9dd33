"""Base candidate source interface and DTOs.

This module defines the platform-agnostic interface that every candidate
source implements, together with the normalized contact record that enters
the scraping core.

Raw records coming out of a source are loosely typed dictionaries (the
mock generators and any future real scraper may use camelCase or
snake_case keys). ``normalize_candidate`` coerces them into a
``CandidateContact`` at the boundary so the rest of the core never handles
untyped data.

Usage:
    class InstagramSource(CandidateSource):
        @property
        def platform(self) -> str:
            return "instagram"

        async def fetch(self, scraping_type, query, limit) -> list[dict]:
            ...
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Optional, Union


# =============================================================================
# ALLOWED SCRAPING TYPES
# =============================================================================


ALLOWED_SCRAPING_TYPES: dict[str, frozenset[str]] = {
    "instagram": frozenset({"hashtag", "followers", "location", "profile"}),
    "tiktok": frozenset({"hashtag", "trending", "creators", "profile"}),
    "twitter": frozenset({"keyword", "trending", "followers", "profile"}),
    "facebook": frozenset({"pages", "groups", "business", "profile"}),
    "linkedin": frozenset({"professionals", "companies", "jobtitle", "profile"}),
    "youtube": frozenset({"channels", "trending", "subscribers", "profile"}),
}


def is_scraping_type_allowed(platform: str, scraping_type: str) -> bool:
    """Check whether a scraping type is supported for a platform."""
    return scraping_type in ALLOWED_SCRAPING_TYPES.get(platform, frozenset())


# =============================================================================
# DATA TRANSFER OBJECTS
# =============================================================================


@dataclass
class CandidateContact:
    """Normalized raw contact produced by a candidate source.

    Mirrors the profile and metric attributes of a stored contact plus the
    platform user ID that identifies it.
    """

    platform_user_id: str

    # Optional profile fields
    platform: Optional[str] = None
    username: Optional[str] = None
    display_name: Optional[str] = None
    profile_url: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = field(default_factory=list)

    # Metrics
    follower_count: int = 0
    following_count: int = 0
    post_count: int = 0
    engagement_rate: Optional[float] = None

    # Flags
    is_verified: bool = False
    is_business: bool = False

    # Provenance
    scraping_query: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


RawCandidate = Union[dict, CandidateContact]


# =============================================================================
# BOUNDARY COERCION
# =============================================================================


# camelCase keys accepted from loosely typed sources
_KEY_ALIASES = {
    "platformUserId": "platform_user_id",
    "displayName": "display_name",
    "profileUrl": "profile_url",
    "avatarUrl": "avatar_url",
    "followerCount": "follower_count",
    "followingCount": "following_count",
    "postCount": "post_count",
    "engagementRate": "engagement_rate",
    "isVerified": "is_verified",
    "isBusiness": "is_business",
    "scrapingQuery": "scraping_query",
}

_STRING_FIELDS = (
    "platform",
    "username",
    "display_name",
    "profile_url",
    "avatar_url",
    "bio",
    "email",
    "phone",
    "website",
    "location",
    "category",
    "scraping_query",
)

_COUNT_FIELDS = ("follower_count", "following_count", "post_count")


def _coerce_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_count(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        count = int(float(value))
    except (TypeError, ValueError):
        return 0
    return max(count, 0)


def _coerce_rate(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        rate = float(value)
    except (TypeError, ValueError):
        return None
    return min(max(rate, 0.0), 100.0)


def normalize_candidate(
    raw: RawCandidate, platform: Optional[str] = None
) -> CandidateContact:
    """Coerce a raw source record into a CandidateContact.

    Missing counts default to 0, the engagement rate is clamped to 0-100,
    and string fields are stripped (empty strings become None).

    Args:
        raw: Source record (dict with camelCase or snake_case keys, or an
            existing CandidateContact).
        platform: Platform to stamp on the record if it does not carry one.

    Returns:
        The normalized CandidateContact.

    Raises:
        ValueError: If the record has no platform user ID.
    """
    if isinstance(raw, CandidateContact):
        data = raw.to_dict()
    elif isinstance(raw, dict):
        data = {_KEY_ALIASES.get(key, key): value for key, value in raw.items()}
    else:
        raise ValueError(f"Unsupported candidate record type: {type(raw).__name__}")

    platform_user_id = _coerce_str(data.get("platform_user_id"))
    if not platform_user_id:
        raise ValueError("Candidate record is missing platform_user_id")

    fields: dict[str, Any] = {"platform_user_id": platform_user_id}
    for name in _STRING_FIELDS:
        fields[name] = _coerce_str(data.get(name))
    for name in _COUNT_FIELDS:
        fields[name] = _coerce_count(data.get(name))

    fields["engagement_rate"] = _coerce_rate(data.get("engagement_rate"))
    fields["is_verified"] = bool(data.get("is_verified") or False)
    fields["is_business"] = bool(data.get("is_business") or False)

    raw_tags = data.get("tags") or []
    if isinstance(raw_tags, str):
        raw_tags = [raw_tags]
    fields["tags"] = [str(tag) for tag in raw_tags if tag is not None]

    if not fields["platform"]:
        fields["platform"] = platform

    return CandidateContact(**fields)


# =============================================================================
# SOURCE INTERFACE
# =============================================================================


class CandidateSource(ABC):
    """Abstract producer of raw candidate contacts for one platform.

    Implementations may hit the network or generate data; the core treats
    them as opaque async producers that may raise.
    """

    @property
    @abstractmethod
    def platform(self) -> str:
        """Platform this source produces candidates for."""
        ...

    @property
    def supported_types(self) -> frozenset[str]:
        """Scraping types this source can serve."""
        return ALLOWED_SCRAPING_TYPES.get(self.platform, frozenset())

    @abstractmethod
    async def fetch(
        self,
        scraping_type: str,
        query: str,
        limit: Optional[int] = None,
    ) -> list[RawCandidate]:
        """Fetch raw candidates for one query.

        Args:
            scraping_type: How to interpret the query (e.g. 'hashtag').
            query: The literal query string.
            limit: Maximum number of candidates to return (optional).

        Returns:
            List of raw candidate records.
        """
        ...


class CandidateSourceRegistry:
    """Registry of candidate sources keyed by platform."""

    def __init__(self, sources: Optional[list[CandidateSource]] = None):
        self._sources: dict[str, CandidateSource] = {}
        for source in sources or []:
            self.register(source)

    def register(self, source: CandidateSource) -> None:
        """Register (or replace) the source for its platform."""
        self._sources[source.platform] = source

    def get(self, platform: str) -> Optional[CandidateSource]:
        """Get the source for a platform, or None if none is registered."""
        return self._sources.get(platform)

    @property
    def platforms(self) -> list[str]:
        return sorted(self._sources)
