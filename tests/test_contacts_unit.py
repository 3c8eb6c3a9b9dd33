"""Unit tests for contact listing and statistics."""

from datetime import timedelta

import pytest

from socialscout_core.domain.errors import NotFoundError, ValidationError
from socialscout_core.domain.models import utcnow
from socialscout_core.domain.services.contacts import ContactsService
from tests.factories import (
    OTHER_USER_ID,
    TEST_USER_ID,
    attach_tag,
    create_contact,
    create_scraping_log,
    create_tag,
)


@pytest.fixture
def contacts(db_session):
    """Four contacts for the test user and one for someone else."""
    rows = [
        create_contact(
            db_session, platform_user_id="ig_1", username="chef_anna",
            follower_count=500, engagement_rate=2.0, bio="Vegan chef",
        ),
        create_contact(
            db_session, platform_user_id="ig_2", username="runner_bob",
            follower_count=5000, engagement_rate=8.0, display_name="Bob Runs",
        ),
        create_contact(
            db_session, platform="tiktok", platform_user_id="tt_1", username="dancer",
            follower_count=90000, engagement_rate=None,
        ),
        create_contact(
            db_session, platform_user_id="ig_3", username="quiet",
            follower_count=50, engagement_rate=0.5,
        ),
    ]
    create_contact(db_session, user_id=OTHER_USER_ID, platform_user_id="ig_1")
    return rows


class TestGetContact:
    """Tests for ContactsService.get_contact."""

    def test_returns_owned_contact(self, db_session, contacts):
        """A user's own contact should be returned."""
        found = ContactsService(db_session).get_contact(TEST_USER_ID, contacts[0].id)

        assert found.username == "chef_anna"

    def test_other_users_contact_is_not_found(self, db_session, contacts):
        """Another user's contact should raise NotFoundError."""
        with pytest.raises(NotFoundError):
            ContactsService(db_session).get_contact(OTHER_USER_ID, contacts[0].id)


class TestListContacts:
    """Tests for ContactsService.list_contacts."""

    def test_lists_only_own_contacts(self, db_session, contacts):
        """Only the user's contacts should be counted."""
        items, total = ContactsService(db_session).list_contacts(TEST_USER_ID)

        assert total == 4
        assert len(items) == 4

    def test_platform_filter(self, db_session, contacts):
        """The platform filter should narrow the list."""
        items, total = ContactsService(db_session).list_contacts(
            TEST_USER_ID, platform="tiktok"
        )

        assert total == 1
        assert items[0].username == "dancer"

    def test_search_matches_username_display_name_and_bio(self, db_session, contacts):
        """Search should be a case-insensitive substring match."""
        service = ContactsService(db_session)

        assert service.list_contacts(TEST_USER_ID, search="CHEF")[1] == 1
        assert service.list_contacts(TEST_USER_ID, search="bob runs")[1] == 1
        assert service.list_contacts(TEST_USER_ID, search="vegan")[1] == 1

    def test_tag_filter(self, db_session, contacts):
        """Only contacts carrying one of the tags should be listed."""
        vip = create_tag(db_session, name="vip")
        lead = create_tag(db_session, name="lead")
        attach_tag(db_session, contacts[0], vip)
        attach_tag(db_session, contacts[2], lead)

        items, total = ContactsService(db_session).list_contacts(
            TEST_USER_ID, tags=["vip", "lead"]
        )

        assert total == 2
        assert {c.id for c in items} == {contacts[0].id, contacts[2].id}

    def test_sort_by_followers(self, db_session, contacts):
        """Sorting by follower count should honor the order."""
        service = ContactsService(db_session)

        desc_items, _ = service.list_contacts(TEST_USER_ID, sort_by="follower_count")
        asc_items, _ = service.list_contacts(
            TEST_USER_ID, sort_by="follower_count", sort_order="asc"
        )

        assert [c.follower_count for c in desc_items] == [90000, 5000, 500, 50]
        assert [c.follower_count for c in asc_items] == [50, 500, 5000, 90000]

    def test_pagination(self, db_session, contacts):
        """Pages should slice the sorted list and keep the total."""
        items, total = ContactsService(db_session).list_contacts(
            TEST_USER_ID, page=2, limit=3, sort_by="follower_count"
        )

        assert total == 4
        assert [c.follower_count for c in items] == [50]

    def test_invalid_sort_field(self, db_session):
        """An unknown sort field should raise ValidationError."""
        with pytest.raises(ValidationError):
            ContactsService(db_session).list_contacts(TEST_USER_ID, sort_by="bio")

    def test_invalid_sort_order(self, db_session):
        """An unknown sort order should raise ValidationError."""
        with pytest.raises(ValidationError):
            ContactsService(db_session).list_contacts(TEST_USER_ID, sort_order="up")


class TestGetStats:
    """Tests for ContactsService.get_stats."""

    def test_platform_stats(self, db_session, contacts):
        """Per-platform counts and averages should be reported."""
        stats = ContactsService(db_session).get_stats(TEST_USER_ID)

        by_platform = {p.platform: p for p in stats.platform_stats}
        assert stats.total_contacts == 4
        assert by_platform["instagram"].count == 3
        assert by_platform["instagram"].avg_followers == pytest.approx((500 + 5000 + 50) / 3)
        assert by_platform["instagram"].avg_engagement == pytest.approx((2.0 + 8.0 + 0.5) / 3)
        assert by_platform["tiktok"].avg_engagement is None

    def test_recent_activity_groups_by_day(self, db_session):
        """Logs from the last week should be grouped per day."""
        now = utcnow()
        create_scraping_log(db_session, contacts_found=10, created_at=now)
        create_scraping_log(db_session, contacts_found=5, created_at=now)
        create_scraping_log(db_session, contacts_found=7, created_at=now - timedelta(days=2))
        create_scraping_log(db_session, contacts_found=99, created_at=now - timedelta(days=10))

        stats = ContactsService(db_session).get_stats(TEST_USER_ID)

        assert [a.count for a in stats.recent_activity] == [2, 1]
        assert [a.contacts_found for a in stats.recent_activity] == [15, 7]
        assert stats.recent_activity[0].date == now.date().isoformat()

    def test_empty(self, db_session):
        """A user with no data should get zeros."""
        stats = ContactsService(db_session).get_stats(TEST_USER_ID)

        assert stats.total_contacts == 0
        assert stats.platform_stats == []
        assert stats.recent_activity == []
