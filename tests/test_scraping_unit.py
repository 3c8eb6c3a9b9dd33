"""Unit tests for scrape orchestration.

Tests cover:
1. Candidate filters and their boundaries
2. Query validation
3. End-to-end scrape with a failing query, save or auto-tag
4. Upserts on re-scrape
5. Pre-flight failures
6. Scraping log listing
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from socialscout_core.domain.errors import (
    ConfigurationError,
    ExternalFetchError,
    PersistenceError,
    RateLimitExceeded,
    ValidationError,
)
from socialscout_core.domain.models import (
    ContactTag,
    ContactTagRelation,
    ScrapedContact,
    ScrapingLog,
)
from socialscout_core.domain.services.scraping import (
    ScrapeFilters,
    ScrapeOptions,
    ScrapingLogService,
    apply_filters,
    validate_queries,
)
from socialscout_core.providers.base import CandidateContact
from tests.factories import (
    FAILING_QUERY,
    OTHER_USER_ID,
    TEST_USER_ID,
    create_scraping_log,
    create_scraping_logs,
)


def _candidate(index: int = 0, **kwargs) -> CandidateContact:
    return CandidateContact(platform_user_id=f"ig_{index}", **kwargs)


# =============================================================================
# FILTERS
# =============================================================================


class TestApplyFilters:
    """Tests for apply_filters."""

    def test_no_filters_keeps_everything(self):
        """None filters should return all candidates."""
        candidates = [_candidate(i) for i in range(3)]

        assert apply_filters(candidates, None) == candidates

    def test_min_followers_is_inclusive(self):
        """A candidate exactly at the minimum should be kept."""
        candidates = [
            _candidate(0, follower_count=999),
            _candidate(1, follower_count=1000),
            _candidate(2, follower_count=1001),
        ]

        kept = apply_filters(candidates, ScrapeFilters(min_followers=1000))

        assert [c.platform_user_id for c in kept] == ["ig_1", "ig_2"]

    def test_max_followers_is_inclusive(self):
        """A candidate exactly at the maximum should be kept."""
        candidates = [
            _candidate(0, follower_count=4999),
            _candidate(1, follower_count=5000),
            _candidate(2, follower_count=5001),
        ]

        kept = apply_filters(candidates, ScrapeFilters(max_followers=5000))

        assert [c.platform_user_id for c in kept] == ["ig_0", "ig_1"]

    def test_business_and_verified_required_when_true(self):
        """Flag filters set to True should require the flag."""
        candidates = [
            _candidate(0, is_business=True, is_verified=True),
            _candidate(1, is_business=True),
            _candidate(2, is_verified=True),
        ]

        kept = apply_filters(
            candidates, ScrapeFilters(must_be_business=True, must_be_verified=True)
        )

        assert [c.platform_user_id for c in kept] == ["ig_0"]

    def test_false_flags_are_not_applied(self):
        """Flag filters set to False should not filter."""
        candidates = [_candidate(0, is_business=True), _candidate(1)]

        kept = apply_filters(candidates, ScrapeFilters(must_be_business=False))

        assert len(kept) == 2

    def test_location_matches_any_substring(self):
        """Any location entry matching case-insensitively should keep the candidate."""
        candidates = [
            _candidate(0, location="Austin, TX"),
            _candidate(1, location="Paris"),
            _candidate(2),
        ]

        kept = apply_filters(candidates, ScrapeFilters(location=["austin", "LONDON"]))

        assert [c.platform_user_id for c in kept] == ["ig_0"]

    def test_keywords_and_exclusions(self):
        """Keywords require a bio match and exclusions reject one."""
        candidates = [
            _candidate(0, bio="Vegan chef"),
            _candidate(1, bio="Vegan chef, sponsored"),
            _candidate(2, bio="Runner"),
        ]

        kept = apply_filters(
            candidates, ScrapeFilters(keywords=["chef"], exclude_keywords=["Sponsored"])
        )

        assert [c.platform_user_id for c in kept] == ["ig_0"]

    def test_from_dict_ignores_unknown_keys(self):
        """Stored filter dicts may carry keys that are not filters."""
        filters = ScrapeFilters.from_dict({"min_followers": 10, "sort": "desc"})

        assert filters.min_followers == 10
        assert ScrapeFilters.from_dict(None) is None


class TestValidateQueries:
    """Tests for validate_queries."""

    def test_valid_queries(self):
        """Normal queries should pass."""
        validate_queries(["fitness", "a" * 100])

    def test_empty_list(self):
        """An empty query list should fail."""
        with pytest.raises(ValidationError):
            validate_queries([])

    def test_blank_query(self):
        """A blank query should fail."""
        with pytest.raises(ValidationError, match="Empty query"):
            validate_queries(["fitness", "   "])

    def test_too_long_query(self):
        """A query over the maximum length should fail."""
        with pytest.raises(ValidationError, match="too long"):
            validate_queries(["a" * 101])


# =============================================================================
# SCRAPE
# =============================================================================


class TestScrapeContacts:
    """Tests for ScrapingService.scrape_contacts."""

    async def test_failing_query_does_not_abort_batch(self, scraping_service, db_session):
        """A failing query should be reported while the others are saved."""
        result = await scraping_service.scrape_contacts(
            TEST_USER_ID,
            "instagram",
            "hashtag",
            ["fitness", FAILING_QUERY],
            ScrapeOptions(filters=ScrapeFilters(min_followers=1000)),
        )

        assert result.total_found == 30
        assert result.total_saved == 30
        assert len(result.errors) == 1
        assert FAILING_QUERY in result.errors[0]

        logs = {log.query: log for log in db_session.query(ScrapingLog).all()}
        assert set(logs) == {"fitness", FAILING_QUERY}
        assert logs["fitness"].status == "success"
        assert logs["fitness"].contacts_found == 30
        assert logs["fitness"].contacts_saved == 30
        assert logs[FAILING_QUERY].status == "partial_success"
        assert logs[FAILING_QUERY].contacts_saved == 0
        assert FAILING_QUERY in logs[FAILING_QUERY].error_message

    async def test_failed_contact_save_is_skipped(self, scraping_service, db_session):
        """A contact that fails to save should not stop the others."""
        upsert = scraping_service._upsert_contact

        def fail_one(user_id, platform, candidate, scraping_source):
            if candidate.platform_user_id == "instagram_fitness_1":
                raise OperationalError("INSERT INTO scraped_contacts", {}, Exception("disk I/O error"))
            return upsert(user_id, platform, candidate, scraping_source)

        with patch.object(scraping_service, "_upsert_contact", side_effect=fail_one):
            result = await scraping_service.scrape_contacts(
                TEST_USER_ID, "instagram", "hashtag", ["fitness"], ScrapeOptions(max_contacts=4)
            )

        assert result.total_found == 4
        assert result.total_saved == 3
        assert result.errors == []
        stored = {c.platform_user_id for c in db_session.query(ScrapedContact).all()}
        assert stored == {"instagram_fitness_0", "instagram_fitness_2", "instagram_fitness_3"}
        log = db_session.query(ScrapingLog).one()
        assert log.contacts_found == 4
        assert log.contacts_saved == 3

    async def test_failed_auto_tag_is_skipped(self, scraping_service, db_session):
        """A contact that fails to auto-tag should stay saved, and others tagged."""
        auto_tag = scraping_service.tagging.auto_tag_contact

        def fail_one(contact):
            if contact.platform_user_id == "instagram_fitness_2":
                raise OperationalError("INSERT INTO contact_tag_relations", {}, Exception("locked"))
            return auto_tag(contact)

        with patch.object(scraping_service.tagging, "auto_tag_contact", side_effect=fail_one):
            result = await scraping_service.scrape_contacts(
                TEST_USER_ID, "instagram", "hashtag", ["fitness"], ScrapeOptions(max_contacts=3)
            )

        assert result.total_saved == 3
        assert db_session.query(ScrapedContact).count() == 3
        tagged = {
            row.platform_user_id
            for row in db_session.query(ScrapedContact.platform_user_id)
            .join(ContactTagRelation, ContactTagRelation.contact_id == ScrapedContact.id)
            .distinct()
        }
        assert tagged == {"instagram_fitness_0", "instagram_fitness_1"}

    async def test_saved_contacts_are_populated(self, scraping_service, db_session):
        """Saved contacts should carry source, query and validation status."""
        await scraping_service.scrape_contacts(
            TEST_USER_ID, "instagram", "hashtag", ["fitness"], ScrapeOptions(max_contacts=5)
        )

        contact = (
            db_session.query(ScrapedContact)
            .filter(ScrapedContact.platform_user_id == "instagram_fitness_0")
            .one()
        )
        assert contact.user_id == TEST_USER_ID
        assert contact.platform == "instagram"
        assert contact.scraping_source == "hashtag"
        assert contact.scraping_query == "fitness"
        assert contact.validation_status == "valid"
        assert contact.follower_count == 1000
        assert contact.engagement_rate == 3.5

    async def test_saved_contacts_are_auto_tagged(self, scraping_service, db_session):
        """Saved contacts should receive derived tags."""
        await scraping_service.scrape_contacts(
            TEST_USER_ID, "instagram", "hashtag", ["fitness"], ScrapeOptions(max_contacts=3)
        )

        names = {t.name for t in db_session.query(ContactTag).all()}
        assert {"fitness", "instagram", "low-engagement", "micro-influencer"} <= names

    async def test_max_contacts_is_passed_to_source(self, scraping_service, fake_source):
        """The fetch limit should come from max_contacts."""
        result = await scraping_service.scrape_contacts(
            TEST_USER_ID, "instagram", "hashtag", ["fitness"], ScrapeOptions(max_contacts=7)
        )

        assert fake_source.calls == [("hashtag", "fitness", 7)]
        assert result.total_found == 7

    async def test_rescrape_updates_instead_of_duplicating(self, scraping_service, db_session):
        """Scraping the same identities twice should reuse the rows."""
        options = ScrapeOptions(max_contacts=10)

        first = await scraping_service.scrape_contacts(
            TEST_USER_ID, "instagram", "hashtag", ["fitness"], options
        )
        second = await scraping_service.scrape_contacts(
            TEST_USER_ID, "instagram", "hashtag", ["fitness"], options
        )

        assert first.total_saved == 10
        assert second.total_saved == 10
        assert {c.id for c in first.contacts} == {c.id for c in second.contacts}
        assert db_session.query(ScrapedContact).count() == 10

    async def test_duplicate_queries_count_once(self, scraping_service, db_session):
        """The same identity from two queries in one call should be saved once."""
        result = await scraping_service.scrape_contacts(
            TEST_USER_ID,
            "instagram",
            "hashtag",
            ["fitness", "fitness"],
            ScrapeOptions(max_contacts=5),
        )

        assert result.total_found == 10
        assert result.total_saved == 5
        assert db_session.query(ScrapedContact).count() == 5
        # Each log counts its own contacts that were persisted
        assert [log.contacts_saved for log in db_session.query(ScrapingLog).all()] == [5, 5]

    async def test_delay_between_queries_only(self, scraping_service):
        """The delay should run between queries, not after the last one."""
        with patch(
            "socialscout_core.domain.services.scraping.asyncio.sleep", new=AsyncMock()
        ) as sleep:
            await scraping_service.scrape_contacts(
                TEST_USER_ID,
                "instagram",
                "hashtag",
                ["a1", "b2", "c3"],
                ScrapeOptions(max_contacts=1, rate_limit_delay=250),
            )

        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.25)

    async def test_unsupported_type_is_a_query_error(self, scraping_service):
        """A type the source cannot serve should fail per query."""
        result = await scraping_service.scrape_contacts(
            TEST_USER_ID, "instagram", "unknown_type", ["fitness"]
        )

        assert result.total_found == 0
        assert len(result.errors) == 1
        assert "Unsupported scraping type" in result.errors[0]

    async def test_platform_without_source_is_a_query_error(self, scraping_service):
        """A platform with no registered source should fail per query."""
        result = await scraping_service.scrape_contacts(
            TEST_USER_ID, "tiktok", "hashtag", ["dance"]
        )

        assert result.total_saved == 0
        assert "No candidate source" in result.errors[0]

    async def test_records_activity(self, scraping_service):
        """Successful queries should bump compliance counters."""
        await scraping_service.scrape_contacts(
            TEST_USER_ID, "instagram", "hashtag", ["fitness", FAILING_QUERY],
            ScrapeOptions(max_contacts=4),
        )

        settings = scraping_service.compliance.get_settings(TEST_USER_ID, "instagram")
        assert settings.total_requests == 1
        assert settings.total_contacts == 4

    async def test_invalid_query_raises(self, scraping_service, fake_source):
        """Validation should abort before any fetch."""
        with pytest.raises(ValidationError):
            await scraping_service.scrape_contacts(
                TEST_USER_ID, "instagram", "hashtag", ["ok", ""]
            )

        assert fake_source.calls == []

    async def test_rate_limit_raises(self, scraping_service, db_session, fake_source):
        """A met hourly cap should abort before any fetch."""
        create_scraping_logs(db_session, 60)

        with pytest.raises(RateLimitExceeded):
            await scraping_service.scrape_contacts(
                TEST_USER_ID, "instagram", "hashtag", ["fitness"]
            )

        assert fake_source.calls == []

    async def test_settings_failure_raises_configuration_error(self, scraping_service):
        """Unloadable settings should abort with ConfigurationError."""
        with patch.object(
            scraping_service.compliance,
            "get_settings",
            side_effect=PersistenceError("down"),
        ):
            with pytest.raises(ConfigurationError):
                await scraping_service.scrape_contacts(
                    TEST_USER_ID, "instagram", "hashtag", ["fitness"]
                )


class TestFetchCandidates:
    """Tests for ScrapingService.fetch_candidates."""

    async def test_unknown_platform(self, scraping_service):
        """No registered source should raise ExternalFetchError."""
        with pytest.raises(ExternalFetchError):
            await scraping_service.fetch_candidates("youtube", "channels", "x")

    async def test_returns_raw_records(self, scraping_service):
        """Raw records should be returned unchanged."""
        records = await scraping_service.fetch_candidates("instagram", "hashtag", "x", 2)

        assert len(records) == 2
        assert records[0]["platformUserId"] == "instagram_x_0"


class TestSaveContacts:
    """Tests for ScrapingService.save_contacts."""

    def test_bulk_import_default_query(self, scraping_service):
        """Candidates without a query should be saved as bulk_import."""
        saved = scraping_service.save_contacts(
            TEST_USER_ID, "instagram", [_candidate(1, username="someone")], "manual"
        )

        assert saved[0].scraping_query == "bulk_import"
        assert saved[0].scraping_source == "manual"

    def test_update_keeps_existing_profile_fields(self, scraping_service):
        """Missing profile fields on re-save should not erase stored values."""
        scraping_service.save_contacts(
            TEST_USER_ID, "instagram", [_candidate(1, bio="Chef", follower_count=10)], "hashtag"
        )

        saved = scraping_service.save_contacts(
            TEST_USER_ID, "instagram", [_candidate(1, follower_count=20)], "hashtag"
        )

        assert saved[0].bio == "Chef"
        assert saved[0].follower_count == 20


# =============================================================================
# LOGS
# =============================================================================


class TestScrapingLogService:
    """Tests for ScrapingLogService.list_logs."""

    def test_lists_newest_first_with_filters(self, db_session):
        """Logs should be filtered per user and ordered newest first."""
        create_scraping_logs(db_session, 3)
        newest = create_scraping_log(db_session, query="latest")
        create_scraping_log(db_session, platform="tiktok")
        create_scraping_log(db_session, user_id=OTHER_USER_ID)

        logs, total = ScrapingLogService(db_session).list_logs(
            TEST_USER_ID, platform="instagram", limit=2
        )

        assert total == 4
        assert len(logs) == 2
        assert logs[0].id == newest.id

    def test_status_filter(self, db_session):
        """Only logs with the requested status should be returned."""
        create_scraping_log(db_session)
        create_scraping_log(db_session, status="partial_success", error_message="boom")

        logs, total = ScrapingLogService(db_session).list_logs(
            TEST_USER_ID, status="partial_success"
        )

        assert total == 1
        assert logs[0].error_message == "boom"
