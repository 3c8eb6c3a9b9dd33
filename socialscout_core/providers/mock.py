"""Mock candidate sources for every supported platform.

No network scraping happens here. Each (platform, scraping type) pair is
described by a ``MockProfile`` and candidates are generated from it with a
random generator seeded by platform, type and query, so repeating a query
yields the same candidates (and therefore updates, not duplicates, on
re-scrape).
"""

import random
import re
from dataclasses import dataclass
from typing import Optional

from socialscout_core.domain.errors import ExternalFetchError
from socialscout_core.providers.base import (
    CandidateSource,
    CandidateSourceRegistry,
    RawCandidate,
)


@dataclass(frozen=True)
class MockProfile:
    """Shape of the candidates generated for one scraping type."""

    handle: str
    bio: str
    followers: tuple[int, int]
    engagement: tuple[float, float]
    default_count: int = 30
    categories: tuple[str, ...] = ()
    locations: tuple[str, ...] = ()
    business_ratio: float = 0.4
    verified_ratio: float = 0.2
    with_email: bool = False


_CREATOR_CATEGORIES = ("Digital Creator", "Blogger", "Photographer")
_CITIES = ("New York", "Los Angeles", "London", "Tokyo", "Paris", "Chicago", "Austin")

PLATFORM_URLS = {
    "instagram": "https://instagram.com/{username}",
    "tiktok": "https://tiktok.com/@{username}",
    "twitter": "https://twitter.com/{username}",
    "facebook": "https://facebook.com/{username}",
    "linkedin": "https://linkedin.com/in/{username}",
    "youtube": "https://youtube.com/@{username}",
}

MOCK_PROFILES: dict[str, dict[str, MockProfile]] = {
    "instagram": {
        "hashtag": MockProfile(
            "user_{slug}", "Love #{slug} | Content creator | DM for collabs",
            (100, 10100), (1.0, 6.0), 50, _CREATOR_CATEGORIES,
        ),
        "followers": MockProfile(
            "follower_{slug}", "Fan of @{slug} | Lifestyle and travel",
            (50, 5050), (0.5, 4.0), 40, _CREATOR_CATEGORIES,
        ),
        "location": MockProfile(
            "local_{slug}", "Based in {location} | Local business | #{slug}life",
            (200, 15200), (1.0, 7.0), 30, ("Local Business", "Restaurant", "Shop"),
            _CITIES, business_ratio=0.7,
        ),
        "profile": MockProfile(
            "{slug}", "Creator | #{slug} | Business inquiries via email",
            (1000, 500000), (2.0, 12.0), 1, _CREATOR_CATEGORIES, with_email=True,
        ),
    },
    "tiktok": {
        "hashtag": MockProfile(
            "tiktoker_{slug}", "#{slug} videos daily | Follow for more",
            (500, 200500), (3.0, 15.0), 50, ("Entertainment", "Comedy", "Dance"),
        ),
        "trending": MockProfile(
            "trending_{slug}", "Trending creator | #{slug} #fyp",
            (10000, 1010000), (5.0, 20.0), 30, ("Entertainment", "Music"),
            verified_ratio=0.4,
        ),
        "creators": MockProfile(
            "{slug}_creator", "{slug} creator | Brand deals open",
            (1000, 101000), (4.0, 14.0), 40, ("Fitness", "Food", "Fashion", "Technology"),
            with_email=True,
        ),
        "profile": MockProfile(
            "{slug}", "TikTok creator | #{slug}",
            (1000, 300000), (3.0, 15.0), 1, ("Entertainment",),
        ),
    },
    "twitter": {
        "keyword": MockProfile(
            "tweeter_{slug}", "Tweeting about {slug} | Opinions are my own",
            (100, 50100), (0.5, 5.0), 50, ("Technology", "News", "Business"),
            ("San Francisco", "New York", "Seattle", "Boston", "Remote"),
        ),
        "trending": MockProfile(
            "trend_{slug}", "Talking #{slug} | Breaking news and takes",
            (5000, 505000), (1.0, 8.0), 30, ("News", "Media"), verified_ratio=0.5,
        ),
        "followers": MockProfile(
            "follows_{slug}", "Following @{slug} | Tech and startups",
            (50, 10050), (0.5, 4.0), 40, ("Technology",),
        ),
        "profile": MockProfile(
            "{slug}", "Writer and builder | {slug}",
            (500, 250000), (1.0, 6.0), 1, ("Technology",),
        ),
    },
    "facebook": {
        "pages": MockProfile(
            "{slug}_page", "Official {slug} page | Like and follow for updates",
            (1000, 101000), (0.5, 4.5), 30, ("Local Business", "Brand", "Community"),
            _CITIES, business_ratio=0.9, with_email=True,
        ),
        "groups": MockProfile(
            "member_{slug}", "Member of the {slug} community",
            (20, 2020), (0.5, 3.0), 50, ("Community",), business_ratio=0.1,
        ),
        "business": MockProfile(
            "{slug}_business", "{slug} business | Contact us for quotes",
            (500, 50500), (1.0, 5.0), 25, ("Local Business", "Services", "Retail"),
            _CITIES, business_ratio=1.0, with_email=True,
        ),
        "profile": MockProfile(
            "{slug}", "Facebook profile of {slug}",
            (100, 5100), (0.5, 3.0), 1, ("Personal",), business_ratio=0.0,
        ),
    },
    "linkedin": {
        "professionals": MockProfile(
            "{slug}_professional", "Experienced {slug} professional | Open to opportunities",
            (500, 20500), (2.0, 8.0), 40, ("Technology", "Finance", "Healthcare", "Marketing"),
            ("San Francisco Bay Area", "New York City", "Boston", "Seattle", "Austin"),
            business_ratio=1.0, with_email=True,
        ),
        "companies": MockProfile(
            "{slug}_company", "{slug} company | We are hiring | Business solutions",
            (1000, 101000), (1.0, 5.0), 25, ("Startup", "Enterprise", "Agency", "Consulting Firm"),
            ("San Francisco", "New York", "Chicago", "Denver"), business_ratio=1.0,
            with_email=True,
        ),
        "jobtitle": MockProfile(
            "{slug}_title", "{slug} | Leading teams | Software and strategy",
            (300, 15300), (1.5, 6.0), 30, ("Technology", "Consulting"),
            ("Seattle", "Austin", "Boston", "Remote"), business_ratio=0.8,
            with_email=True,
        ),
        "profile": MockProfile(
            "{slug}", "Professional profile of {slug}",
            (500, 30500), (1.0, 5.0), 1, ("Business",), business_ratio=0.8,
        ),
    },
    "youtube": {
        "channels": MockProfile(
            "{slug}_creator", "{slug} content creator | Subscribe for new {slug} videos",
            (1000, 101000), (2.0, 10.0), 30, ("Gaming", "Music", "Education", "Entertainment"),
            ("United States", "United Kingdom", "Canada", "Australia", "Global"),
            verified_ratio=0.3, with_email=True,
        ),
        "trending": MockProfile(
            "trending_{slug}", "Trending on YouTube | {slug} | New video every week",
            (50000, 2050000), (4.0, 15.0), 20, ("Entertainment", "Music", "Gaming"),
            verified_ratio=0.6, with_email=True,
        ),
        "subscribers": MockProfile(
            "sub_{slug}", "Subscriber of {slug} | Gaming and tech fan",
            (0, 1000), (0.5, 3.0), 50, ("Viewer",), business_ratio=0.05,
        ),
        "profile": MockProfile(
            "{slug}", "YouTube channel {slug}",
            (1000, 1000000), (2.0, 12.0), 1, ("Entertainment",),
        ),
    },
}


def _slugify(query: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", query.lower()).strip("_")
    return slug or "query"


class MockCandidateSource(CandidateSource):
    """Candidate source that generates plausible contacts for a platform."""

    def __init__(self, platform: str, profiles: dict[str, MockProfile]):
        self._platform = platform
        self._profiles = profiles

    @property
    def platform(self) -> str:
        return self._platform

    @property
    def supported_types(self) -> frozenset[str]:
        return frozenset(self._profiles)

    async def fetch(
        self,
        scraping_type: str,
        query: str,
        limit: Optional[int] = None,
    ) -> list[RawCandidate]:
        profile = self._profiles.get(scraping_type)
        if profile is None:
            raise ExternalFetchError(
                f"Unsupported {self._platform} scraping type: {scraping_type}"
            )

        count = profile.default_count if limit is None else min(limit, profile.default_count)
        rng = random.Random(f"{self._platform}:{scraping_type}:{query}")
        slug = _slugify(query)

        return [
            self._build_candidate(profile, rng, slug, query, scraping_type, index)
            for index in range(max(count, 0))
        ]

    def _build_candidate(
        self,
        profile: MockProfile,
        rng: random.Random,
        slug: str,
        query: str,
        scraping_type: str,
        index: int,
    ) -> dict:
        handle = profile.handle.format(slug=slug)
        username = handle if profile.default_count == 1 else f"{handle}_{index}"
        location = rng.choice(profile.locations) if profile.locations else None
        category = rng.choice(profile.categories) if profile.categories else None

        candidate = {
            "platformUserId": f"{self._platform}_{scraping_type}_{slug}_{index}",
            "username": username,
            "displayName": username.replace("_", " ").title(),
            "profileUrl": PLATFORM_URLS[self._platform].format(username=username),
            "avatarUrl": f"https://via.placeholder.com/150?text={self._platform[:2].upper()}{index}",
            "bio": profile.bio.format(slug=slug, location=location or ""),
            "location": location,
            "category": category,
            "followerCount": rng.randint(*profile.followers),
            "followingCount": rng.randint(10, 1500),
            "postCount": rng.randint(5, 2000),
            "isVerified": rng.random() < profile.verified_ratio,
            "isBusiness": rng.random() < profile.business_ratio,
            "engagementRate": round(rng.uniform(*profile.engagement), 2),
            "scrapingQuery": query,
        }
        if profile.with_email:
            candidate["email"] = f"{username}@example.com"
        return candidate


def build_mock_registry() -> CandidateSourceRegistry:
    """Build a registry with a mock source for every supported platform."""
    return CandidateSourceRegistry(
        [MockCandidateSource(platform, profiles) for platform, profiles in MOCK_PROFILES.items()]
    )
