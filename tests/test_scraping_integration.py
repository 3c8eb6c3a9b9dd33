"""Integration tests for the scraping API endpoints.

Tests cover:
1. Health and auth
2. POST /scraping/scrape endpoint
3. GET /scraping/logs endpoint
4. GET /scraping/stats endpoint
5. GET/PUT /scraping/compliance/{platform} endpoints
"""

import pytest

from socialscout_core.domain.models import ScrapedContact, ScrapingLog
from tests.factories import (
    FAILING_QUERY,
    OTHER_USER_ID,
    TEST_USER_ID,
    create_contact,
    create_scraping_log,
    create_scraping_logs,
)


# =============================================================================
# HEALTH AND AUTH
# =============================================================================


class TestHealth:
    """Tests for the unauthenticated endpoints."""

    @pytest.mark.asyncio
    async def test_healthz(self, anonymous_client):
        response = await anonymous_client.get("/healthz")

        assert response.status_code == 200
        assert response.json() == {"ok": True, "service": "socialscout-core"}

    @pytest.mark.asyncio
    async def test_missing_user_header(self, anonymous_client):
        """Scraping endpoints should require the X-User-Id header."""
        response = await anonymous_client.get("/scraping/logs")

        assert response.status_code == 401


# =============================================================================
# POST /SCRAPING/SCRAPE TESTS
# =============================================================================


class TestScrapeEndpoint:
    """Tests for POST /scraping/scrape endpoint."""

    @pytest.mark.asyncio
    async def test_scrape_saves_contacts(self, client, db_session):
        """A scrape should report counts and persist contacts and logs."""
        response = await client.post(
            "/scraping/scrape",
            json={
                "platform": "instagram",
                "scraping_type": "hashtag",
                "queries": ["fitness", FAILING_QUERY],
                "options": {"max_contacts": 20, "filters": {"min_followers": 1000}},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["contacts_found"] == 20
        assert data["contacts_saved"] == 20
        assert len(data["errors"]) == 1
        assert FAILING_QUERY in data["errors"][0]
        assert data["execution_time"] >= 0

        assert db_session.query(ScrapedContact).filter_by(user_id=TEST_USER_ID).count() == 20
        assert db_session.query(ScrapingLog).filter_by(user_id=TEST_USER_ID).count() == 2

    @pytest.mark.asyncio
    async def test_scrape_uses_default_max_contacts(self, client, fake_source):
        """Without max_contacts the configured default should be passed on."""
        response = await client.post(
            "/scraping/scrape",
            json={"platform": "instagram", "scraping_type": "hashtag", "queries": ["yoga"]},
        )

        assert response.status_code == 200
        assert fake_source.calls == [("hashtag", "yoga", 50)]

    @pytest.mark.asyncio
    async def test_unsupported_platform(self, client):
        """An unknown platform should return 400."""
        response = await client.post(
            "/scraping/scrape",
            json={"platform": "myspace", "scraping_type": "hashtag", "queries": ["x"]},
        )

        assert response.status_code == 400
        assert "myspace" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_disallowed_type_is_forbidden(self, client):
        """A scraping type the platform does not allow should return 403."""
        response = await client.post(
            "/scraping/scrape",
            json={"platform": "instagram", "scraping_type": "trending", "queries": ["x"]},
        )

        assert response.status_code == 403
        assert "trending" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_blank_query(self, client):
        """A blank query should return 400."""
        response = await client.post(
            "/scraping/scrape",
            json={"platform": "instagram", "scraping_type": "hashtag", "queries": ["  "]},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_empty_queries(self, client):
        """An empty query list should fail request validation."""
        response = await client.post(
            "/scraping/scrape",
            json={"platform": "instagram", "scraping_type": "hashtag", "queries": []},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_rate_limited(self, client, db_session):
        """A user at the hourly cap should get 429."""
        create_scraping_logs(db_session, 60)
        db_session.commit()

        response = await client.post(
            "/scraping/scrape",
            json={"platform": "instagram", "scraping_type": "hashtag", "queries": ["x"]},
        )

        assert response.status_code == 429

    @pytest.mark.asyncio
    async def test_platform_without_source(self, client):
        """A platform with no registered source should report a query error."""
        response = await client.post(
            "/scraping/scrape",
            json={"platform": "tiktok", "scraping_type": "hashtag", "queries": ["dance"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["contacts_found"] == 0
        assert len(data["errors"]) == 1


# =============================================================================
# GET /SCRAPING/LOGS TESTS
# =============================================================================


class TestLogsEndpoint:
    """Tests for GET /scraping/logs endpoint."""

    @pytest.mark.asyncio
    async def test_list_logs(self, client, db_session):
        """Only the caller's logs should be listed, with pagination."""
        create_scraping_logs(db_session, 3)
        create_scraping_log(db_session, platform="tiktok", status="partial_success")
        create_scraping_log(db_session, user_id=OTHER_USER_ID)
        db_session.commit()

        response = await client.get("/scraping/logs", params={"limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert len(data["logs"]) == 2
        assert data["pagination"] == {"page": 1, "limit": 2, "total": 4, "pages": 2}

    @pytest.mark.asyncio
    async def test_filters(self, client, db_session):
        """Platform and status filters should narrow the list."""
        create_scraping_logs(db_session, 3)
        create_scraping_log(db_session, platform="tiktok", status="partial_success")
        db_session.commit()

        by_platform = await client.get("/scraping/logs", params={"platform": "tiktok"})
        by_status = await client.get("/scraping/logs", params={"status": "success"})

        assert by_platform.json()["pagination"]["total"] == 1
        assert by_platform.json()["logs"][0]["status"] == "partial_success"
        assert by_status.json()["pagination"]["total"] == 3


# =============================================================================
# GET /SCRAPING/STATS TESTS
# =============================================================================


class TestStatsEndpoint:
    """Tests for GET /scraping/stats endpoint."""

    @pytest.mark.asyncio
    async def test_stats(self, client, db_session):
        """Stats should count the caller's contacts per platform."""
        create_contact(db_session, platform_user_id="a", follower_count=100)
        create_contact(db_session, platform_user_id="b", follower_count=300)
        create_contact(db_session, platform="tiktok", platform_user_id="c")
        create_scraping_log(db_session, contacts_found=12)
        db_session.commit()

        response = await client.get("/scraping/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["total_contacts"] == 3
        instagram = next(p for p in data["platform_stats"] if p["platform"] == "instagram")
        assert instagram["count"] == 2
        assert instagram["avg_followers"] == 200
        assert data["recent_activity"][0]["contacts_found"] == 12


# =============================================================================
# COMPLIANCE TESTS
# =============================================================================


class TestComplianceEndpoints:
    """Tests for GET/PUT /scraping/compliance/{platform} endpoints."""

    @pytest.mark.asyncio
    async def test_get_creates_defaults(self, client):
        """Reading settings should create the platform defaults."""
        response = await client.get("/scraping/compliance/linkedin")

        assert response.status_code == 200
        data = response.json()
        assert data["platform"] == "linkedin"
        assert data["max_requests_per_hour"] == 20
        assert data["max_requests_per_day"] == 300
        assert data["require_consent"] is True
        assert data["total_requests"] == 0

    @pytest.mark.asyncio
    async def test_update(self, client):
        """Only the sent fields should change."""
        response = await client.put(
            "/scraping/compliance/instagram", json={"max_requests_per_hour": 10}
        )

        assert response.status_code == 200
        assert response.json()["max_requests_per_hour"] == 10
        assert response.json()["max_requests_per_day"] == 1000

        again = await client.get("/scraping/compliance/instagram")
        assert again.json()["max_requests_per_hour"] == 10

    @pytest.mark.asyncio
    async def test_update_rejects_invalid_values(self, client):
        """Non-positive caps should fail request validation."""
        response = await client.put(
            "/scraping/compliance/instagram", json={"max_requests_per_hour": 0}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_platform(self, client):
        response = await client.get("/scraping/compliance/myspace")

        assert response.status_code == 400
