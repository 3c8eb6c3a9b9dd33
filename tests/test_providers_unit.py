"""Unit tests for candidate sources and record normalization."""

import pytest

from socialscout_core.domain.errors import ExternalFetchError
from socialscout_core.domain.models import SUPPORTED_PLATFORMS
from socialscout_core.providers import (
    ALLOWED_SCRAPING_TYPES,
    CandidateContact,
    CandidateSourceRegistry,
    build_mock_registry,
    is_scraping_type_allowed,
    normalize_candidate,
)
from socialscout_core.providers.mock import MOCK_PROFILES, MockCandidateSource
from tests.factories import FakeCandidateSource


class TestNormalizeCandidate:
    """Tests for normalize_candidate."""

    def test_camel_case_keys(self):
        """camelCase keys should map onto the snake_case fields."""
        contact = normalize_candidate(
            {
                "platformUserId": "ig_1",
                "displayName": "Anna",
                "followerCount": "1500",
                "engagementRate": 4.25,
                "isVerified": 1,
                "scrapingQuery": "food",
            },
            platform="instagram",
        )

        assert contact.platform_user_id == "ig_1"
        assert contact.platform == "instagram"
        assert contact.display_name == "Anna"
        assert contact.follower_count == 1500
        assert contact.engagement_rate == 4.25
        assert contact.is_verified is True
        assert contact.is_business is False
        assert contact.scraping_query == "food"

    def test_record_platform_wins(self):
        """A platform carried by the record should not be overwritten."""
        contact = normalize_candidate(
            {"platform_user_id": "x", "platform": "tiktok"}, platform="instagram"
        )

        assert contact.platform == "tiktok"

    def test_missing_counts_default_to_zero(self):
        """Missing, negative or garbage counts should become 0."""
        contact = normalize_candidate(
            {"platform_user_id": "x", "following_count": -5, "post_count": "many"}
        )

        assert contact.follower_count == 0
        assert contact.following_count == 0
        assert contact.post_count == 0
        assert contact.engagement_rate is None

    @pytest.mark.parametrize("raw,expected", [(-3, 0.0), (250, 100.0), ("7.5", 7.5)])
    def test_engagement_rate_is_clamped(self, raw, expected):
        """The engagement rate should be clamped to 0-100."""
        contact = normalize_candidate({"platform_user_id": "x", "engagementRate": raw})

        assert contact.engagement_rate == expected

    def test_strings_are_stripped(self):
        """Blank strings should become None."""
        contact = normalize_candidate(
            {"platform_user_id": " x ", "username": "  anna ", "bio": "   "}
        )

        assert contact.platform_user_id == "x"
        assert contact.username == "anna"
        assert contact.bio is None

    def test_tags(self):
        """A single tag string should become a list."""
        contact = normalize_candidate({"platform_user_id": "x", "tags": "vegan"})

        assert contact.tags == ["vegan"]

    @pytest.mark.parametrize("raw", [{}, {"platformUserId": "  "}, {"platform_user_id": None}])
    def test_missing_id_raises(self, raw):
        """A record without a platform user ID should be rejected."""
        with pytest.raises(ValueError):
            normalize_candidate(raw)

    def test_unsupported_type_raises(self):
        """Only dicts and CandidateContacts are accepted."""
        with pytest.raises(ValueError):
            normalize_candidate(["ig_1"])

    def test_candidate_contact_passthrough(self):
        """An existing CandidateContact should be re-normalized."""
        contact = normalize_candidate(
            CandidateContact(platform_user_id="x", engagement_rate=120.0), platform="youtube"
        )

        assert contact.platform == "youtube"
        assert contact.engagement_rate == 100.0


class TestAllowedScrapingTypes:
    """Tests for is_scraping_type_allowed."""

    def test_every_platform_has_types(self):
        """Every supported platform should have allowed types."""
        assert set(ALLOWED_SCRAPING_TYPES) == set(SUPPORTED_PLATFORMS)

    @pytest.mark.parametrize(
        "platform,scraping_type,expected",
        [
            ("instagram", "hashtag", True),
            ("instagram", "keyword", False),
            ("twitter", "keyword", True),
            ("linkedin", "jobtitle", True),
            ("myspace", "hashtag", False),
        ],
    )
    def test_allowed(self, platform, scraping_type, expected):
        assert is_scraping_type_allowed(platform, scraping_type) is expected


class TestMockCandidateSource:
    """Tests for the generated mock sources."""

    async def test_deterministic(self):
        """Repeating a query should yield identical candidates."""
        source = MockCandidateSource("instagram", MOCK_PROFILES["instagram"])

        first = await source.fetch("hashtag", "fitness")
        second = await source.fetch("hashtag", "fitness")

        assert first == second
        assert len(first) == 50

    async def test_different_queries_differ(self):
        """Different queries should yield different identities."""
        source = MockCandidateSource("tiktok", MOCK_PROFILES["tiktok"])

        first = await source.fetch("hashtag", "dance")
        second = await source.fetch("hashtag", "cooking")

        assert {c["platformUserId"] for c in first}.isdisjoint(
            c["platformUserId"] for c in second
        )

    async def test_limit(self):
        """The limit should cap the number of candidates."""
        source = MockCandidateSource("youtube", MOCK_PROFILES["youtube"])

        candidates = await source.fetch("channels", "gaming", limit=5)

        assert len(candidates) == 5

    async def test_candidates_normalize(self):
        """Generated records should normalize within bounds."""
        source = MockCandidateSource("linkedin", MOCK_PROFILES["linkedin"])

        for raw in await source.fetch("professionals", "Data Science"):
            contact = normalize_candidate(raw, platform="linkedin")
            assert contact.platform_user_id.startswith("linkedin_professionals_data_science_")
            assert 500 <= contact.follower_count <= 20500
            assert 2.0 <= contact.engagement_rate <= 8.0
            assert contact.email.endswith("@example.com")
            assert contact.profile_url.startswith("https://linkedin.com/in/")

    async def test_profile_lookup_returns_one(self):
        """A profile lookup should return the named account."""
        source = MockCandidateSource("twitter", MOCK_PROFILES["twitter"])

        candidates = await source.fetch("profile", "jack")

        assert len(candidates) == 1
        assert candidates[0]["username"] == "jack"

    async def test_unsupported_type_raises(self):
        """An unknown scraping type should raise ExternalFetchError."""
        source = MockCandidateSource("facebook", MOCK_PROFILES["facebook"])

        with pytest.raises(ExternalFetchError):
            await source.fetch("hashtag", "food")

    def test_supported_types_match_allowed(self):
        """Mock sources should serve exactly the allowed types."""
        for platform, profiles in MOCK_PROFILES.items():
            source = MockCandidateSource(platform, profiles)
            assert source.supported_types == ALLOWED_SCRAPING_TYPES[platform]


class TestCandidateSourceRegistry:
    """Tests for CandidateSourceRegistry."""

    def test_mock_registry_covers_all_platforms(self):
        """The mock registry should have a source per platform."""
        registry = build_mock_registry()

        assert registry.platforms == sorted(SUPPORTED_PLATFORMS)

    def test_register_replaces(self):
        """Registering a platform twice should keep the latest source."""
        first = FakeCandidateSource("instagram")
        second = FakeCandidateSource("instagram")
        registry = CandidateSourceRegistry([first])

        registry.register(second)

        assert registry.get("instagram") is second

    def test_missing_platform(self):
        """An unregistered platform should return None."""
        assert CandidateSourceRegistry().get("instagram") is None
