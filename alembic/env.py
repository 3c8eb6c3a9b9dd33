"""Alembic environment for the SocialScout schema.

The database URL comes from application settings (MYSQL_URL), so migrations
always target the same database the API uses. An explicit
``sqlalchemy.url`` passed with ``alembic -x url=...`` wins.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from socialscout_core.config import get_settings
from socialscout_core.domain.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# JSON and enum-like string columns change type on edits
COMPARE_OPTIONS = {"compare_type": True, "compare_server_default": True}


def database_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("url")
    return override or get_settings().mysql_url


def migrate_offline() -> None:
    """Write migration SQL to stdout without connecting."""
    context.configure(
        url=database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def migrate_online() -> None:
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = database_url()
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            **COMPARE_OPTIONS,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    migrate_offline()
else:
    migrate_online()
