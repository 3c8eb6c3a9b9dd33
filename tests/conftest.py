"""Pytest configuration and fixtures for SocialScout Core tests.

This module provides fixtures for:
- Database: SQLite in-memory with savepoint support
- Candidate sources: a deterministic fake source
- HTTP client: AsyncClient for FastAPI testing
"""

from collections.abc import AsyncGenerator, Generator
from contextlib import contextmanager

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool, create_engine, event
from sqlalchemy.dialects import sqlite
from sqlalchemy.orm import Session, sessionmaker

from socialscout_core.domain.models import Base
from socialscout_core.domain.services.compliance import ComplianceService
from socialscout_core.domain.services.scraping import ScrapingService
from socialscout_core.domain.services.tagging import TaggingService
from socialscout_core.providers.base import CandidateSourceRegistry
from tests.factories import TEST_USER_ID, FakeCandidateSource


@contextmanager
def bigint_as_integer():
    """Compile BIGINT as INTEGER so SQLite autoincrements primary keys."""
    compiler = sqlite.dialect.type_compiler_cls
    original = compiler.visit_BIGINT
    compiler.visit_BIGINT = lambda self, type_, **kw: "INTEGER"
    try:
        yield
    finally:
        compiler.visit_BIGINT = original


def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Yield a session that commits on success and rolls back on error."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def sync_engine():
    """In-memory SQLite engine shared by every session in a test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None
        dbapi_conn.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(engine, "begin")
    def on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    with bigint_as_integer():
        Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def sync_session_factory(sync_engine) -> sessionmaker[Session]:
    return sessionmaker(bind=sync_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(sync_session_factory) -> Generator[Session, None, None]:
    """Session used by tests to seed and inspect data."""
    yield from session_scope(sync_session_factory)


# -----------------------------------------------------------------------------
# Candidate Source Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def fake_source() -> FakeCandidateSource:
    """Fake instagram candidate source."""
    return FakeCandidateSource()


@pytest.fixture
def source_registry(fake_source) -> CandidateSourceRegistry:
    """Registry serving the fake source for instagram."""
    return CandidateSourceRegistry([fake_source])


@pytest.fixture
def scraping_service(db_session, source_registry) -> ScrapingService:
    """Scraping service wired to the test session and fake source."""
    return ScrapingService(
        db_session,
        compliance=ComplianceService(db_session),
        tagging=TaggingService(db_session),
        sources=source_registry,
    )


# -----------------------------------------------------------------------------
# FastAPI Test Client Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def test_app(sync_engine, sync_session_factory, source_registry) -> FastAPI:
    """Create a FastAPI test application with the DB and sources overridden."""
    from socialscout_core.api.deps import get_db
    from socialscout_core.main import create_app

    app = create_app()
    app.state.candidate_sources = source_registry

    # Override the database dependency to use test database
    def override_get_db():
        yield from session_scope(sync_session_factory)

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client sending the test user's header."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
        headers={"X-User-Id": TEST_USER_ID},
    ) as ac:
        yield ac


@pytest.fixture
async def anonymous_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client without a user header."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac
