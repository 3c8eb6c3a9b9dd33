"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates all tables for the SocialScout schema:
- scraped_contacts
- contact_tags
- contact_tag_relations
- scraping_compliance
- scraping_logs
- scraping_campaigns
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Scraped contacts table
    op.create_table(
        "scraped_contacts",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("platform", sa.String(32), nullable=False),
        sa.Column("platform_user_id", sa.String(128), nullable=False),
        sa.Column("username", sa.String(128), nullable=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("profile_url", sa.String(512), nullable=True),
        sa.Column("avatar_url", sa.String(512), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("website", sa.String(512), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("category", sa.String(128), nullable=True),
        sa.Column("profile_tags", sa.JSON, nullable=True),
        sa.Column("follower_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("following_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("post_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("engagement_rate", sa.Float, nullable=True),
        sa.Column("is_verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_business", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("scraping_source", sa.String(64), nullable=True),
        sa.Column("scraping_query", sa.String(255), nullable=True),
        sa.Column(
            "validation_status",
            sa.Enum("pending", "valid", "invalid", "unknown", name="validation_status_enum"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("scraped_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "user_id", "platform", "platform_user_id", name="uq_scraped_contact"
        ),
    )
    op.create_index("idx_contact_user_platform", "scraped_contacts", ["user_id", "platform"])
    op.create_index("idx_contact_followers", "scraped_contacts", ["user_id", "follower_count"])

    # Contact tags table
    op.create_table(
        "contact_tags",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("color", sa.String(16), nullable=False, server_default="#6B7280"),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_system", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("contacts_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "name", name="uq_contact_tag"),
    )

    # Contact tag relations table
    op.create_table(
        "contact_tag_relations",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("contact_id", sa.BigInteger, nullable=False),
        sa.Column("tag_id", sa.BigInteger, nullable=False),
        sa.Column("confidence", sa.Float, nullable=False, server_default="0.8"),
        sa.Column("source", sa.String(32), nullable=False, server_default="manual"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["contact_id"], ["scraped_contacts.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["tag_id"], ["contact_tags.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("contact_id", "tag_id", name="uq_contact_tag_relation"),
    )
    op.create_index("idx_relation_tag", "contact_tag_relations", ["tag_id"])

    # Scraping compliance table
    op.create_table(
        "scraping_compliance",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("platform", sa.String(32), nullable=False),
        sa.Column("max_requests_per_hour", sa.Integer, nullable=False),
        sa.Column("max_requests_per_day", sa.Integer, nullable=False),
        sa.Column("respect_robots_txt", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column(
            "avoid_private_profiles", sa.Boolean, nullable=False, server_default=sa.true()
        ),
        sa.Column(
            "avoid_sensitive_content", sa.Boolean, nullable=False, server_default=sa.true()
        ),
        sa.Column("data_retention_days", sa.Integer, nullable=False, server_default="365"),
        sa.Column("require_consent", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("total_requests", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_contacts", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_activity_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "platform", name="uq_scraping_compliance"),
    )

    # Scraping logs table
    op.create_table(
        "scraping_logs",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("platform", sa.String(32), nullable=False),
        sa.Column("scraping_type", sa.String(32), nullable=False),
        sa.Column("query", sa.String(255), nullable=False),
        sa.Column("contacts_found", sa.Integer, nullable=False, server_default="0"),
        sa.Column("contacts_saved", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "status",
            sa.Enum("success", "partial_success", name="scraping_log_status_enum"),
            nullable=False,
            server_default="success",
        ),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("response_time", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "idx_scraping_log_window", "scraping_logs", ["user_id", "platform", "created_at"]
    )

    # Scraping campaigns table
    op.create_table(
        "scraping_campaigns",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("platforms", sa.JSON, nullable=False),
        sa.Column("scraping_type", sa.String(32), nullable=False),
        sa.Column("target_queries", sa.JSON, nullable=False),
        sa.Column("filters", sa.JSON, nullable=True),
        sa.Column("schedule", sa.JSON, nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "draft", "active", "completed", "partial_success", name="campaign_status_enum"
            ),
            nullable=False,
            server_default="draft",
        ),
        sa.Column("contacts_found", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_run_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_campaign_user_status", "scraping_campaigns", ["user_id", "status"])


def downgrade() -> None:
    op.drop_index("idx_campaign_user_status", table_name="scraping_campaigns")
    op.drop_table("scraping_campaigns")

    op.drop_index("idx_scraping_log_window", table_name="scraping_logs")
    op.drop_table("scraping_logs")

    op.drop_table("scraping_compliance")

    op.drop_index("idx_relation_tag", table_name="contact_tag_relations")
    op.drop_table("contact_tag_relations")

    op.drop_table("contact_tags")

    op.drop_index("idx_contact_followers", table_name="scraped_contacts")
    op.drop_index("idx_contact_user_platform", table_name="scraped_contacts")
    op.drop_table("scraped_contacts")
