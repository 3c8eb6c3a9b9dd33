"""Scrape orchestration service.

This service provides:
1. Pre-flight validation and rate limiting of a scrape request
2. Sequential per-query fetching from a candidate source, with filtering
3. Contact upserts keyed by (user, platform, platform user ID)
4. Auto-tagging of saved contacts
5. Scraping log writes and listing

Pre-flight failures raise. Everything after the pre-flight is isolated per
query or per contact: failures are logged and collected, and the caller
gets a partial result.

Usage:
    orchestrator = ScrapingService(
        db=session,
        compliance=ComplianceService(session),
        tagging=TaggingService(session),
        sources=build_mock_registry(),
    )

    result = await orchestrator.scrape_contacts(
        user_id="u1",
        platform="instagram",
        scraping_type="hashtag",
        queries=["fitness"],
        options=ScrapeOptions(filters=ScrapeFilters(min_followers=1000)),
    )
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from socialscout_core.domain.errors import (
    ConfigurationError,
    ExternalFetchError,
    PersistenceError,
    ScrapingError,
    ValidationError,
)
from socialscout_core.domain.models import (
    ScrapedContact,
    ScrapingLog,
    ScrapingLogStatus,
    ValidationStatus,
    utcnow,
)
from socialscout_core.domain.services.compliance import ComplianceService
from socialscout_core.domain.services.tagging import TaggingService
from socialscout_core.observability import get_logger
from socialscout_core.providers.base import (
    CandidateContact,
    CandidateSourceRegistry,
    normalize_candidate,
)

logger = logging.getLogger(__name__)
scrape_logger = get_logger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================


MAX_QUERY_LENGTH = 100
BULK_IMPORT_QUERY = "bulk_import"

# Fields copied from a candidate onto a stored contact when present
PROFILE_FIELDS = (
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
    "engagement_rate",
)
METRIC_FIELDS = (
    "follower_count",
    "following_count",
    "post_count",
    "is_verified",
    "is_business",
)


# =============================================================================
# REQUEST AND RESULT TYPES
# =============================================================================


@dataclass
class ScrapeFilters:
    """Candidate filters. A field left as None is not applied."""

    min_followers: Optional[int] = None
    max_followers: Optional[int] = None
    must_be_business: Optional[bool] = None
    must_be_verified: Optional[bool] = None
    location: Optional[list[str]] = None
    keywords: Optional[list[str]] = None
    exclude_keywords: Optional[list[str]] = None

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["ScrapeFilters"]:
        if not data:
            return None
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class ScrapeOptions:
    """Options for one scrape call."""

    max_contacts: Optional[int] = None
    rate_limit_delay: int = 0  # milliseconds between queries
    filters: Optional[ScrapeFilters] = None


@dataclass
class QueryOutcome:
    """Result of one query: either contacts or an error message."""

    query: str
    contacts: list[CandidateContact] = field(default_factory=list)
    error: Optional[str] = None
    response_time_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ScrapingResult:
    """Aggregate result of a scrape call."""

    contacts: list[ScrapedContact]
    total_found: int
    total_saved: int
    errors: list[str]
    execution_time_ms: int
    outcomes: list[QueryOutcome] = field(default_factory=list)


# =============================================================================
# FILTERING
# =============================================================================


def _contains_any(text: str, needles: list[str]) -> bool:
    return any(needle.lower() in text for needle in needles)


def apply_filters(
    candidates: list[CandidateContact],
    filters: Optional[ScrapeFilters],
) -> list[CandidateContact]:
    """Filter candidates.

    Follower bounds are inclusive. Business and verified flags are required
    only when set to True. Location and keywords match if any entry is a
    case-insensitive substring; exclude_keywords rejects on any match.

    Args:
        candidates: Normalized candidates.
        filters: Filters to apply, or None to keep everything.

    Returns:
        Candidates that pass every set filter, in input order.
    """
    if filters is None:
        return list(candidates)

    def keep(contact: CandidateContact) -> bool:
        followers = contact.follower_count or 0
        if filters.min_followers is not None and followers < filters.min_followers:
            return False
        if filters.max_followers is not None and followers > filters.max_followers:
            return False

        if filters.must_be_business and not contact.is_business:
            return False
        if filters.must_be_verified and not contact.is_verified:
            return False

        if filters.location:
            if not _contains_any((contact.location or "").lower(), filters.location):
                return False

        bio = (contact.bio or "").lower()
        if filters.keywords and not _contains_any(bio, filters.keywords):
            return False
        if filters.exclude_keywords and _contains_any(bio, filters.exclude_keywords):
            return False

        return True

    return [contact for contact in candidates if keep(contact)]


def validate_queries(queries: list[str], max_length: int = MAX_QUERY_LENGTH) -> None:
    """Validate query strings.

    Raises:
        ValidationError: If there are no queries, a query is blank or one is
            longer than max_length.
    """
    if not queries:
        raise ValidationError("At least one query is required")

    for query in queries:
        if query is None or not str(query).strip():
            raise ValidationError("Empty query provided")
        if len(query) > max_length:
            raise ValidationError(f"Query too long (max {max_length} characters)")


# =============================================================================
# SERVICE
# =============================================================================


class ScrapingService:
    """Runs scrape requests end to end."""

    def __init__(
        self,
        db: Session,
        compliance: ComplianceService,
        tagging: TaggingService,
        sources: CandidateSourceRegistry,
        max_query_length: int = MAX_QUERY_LENGTH,
    ):
        """Initialize the scraping service.

        Args:
            db: SQLAlchemy database session.
            compliance: Compliance gate.
            tagging: Tagging service for saved contacts.
            sources: Candidate sources keyed by platform.
            max_query_length: Maximum accepted query length.
        """
        self.db = db
        self.compliance = compliance
        self.tagging = tagging
        self.sources = sources
        self.max_query_length = max_query_length

    # =========================================================================
    # SCRAPE
    # =========================================================================

    async def scrape_contacts(
        self,
        user_id: str,
        platform: str,
        scraping_type: str,
        queries: list[str],
        options: Optional[ScrapeOptions] = None,
    ) -> ScrapingResult:
        """Scrape, filter, save and tag contacts for a batch of queries.

        Args:
            user_id: Requesting user.
            platform: Target platform.
            scraping_type: How queries are interpreted (e.g. 'hashtag').
            queries: Query strings, processed sequentially in order.
            options: Filters, fetch limit and inter-query delay.

        Returns:
            ScrapingResult with saved contacts and per-query errors.

        Raises:
            ConfigurationError: If compliance settings cannot be loaded.
            ValidationError: If a query is invalid.
            RateLimitExceeded: If the user's recent request count meets a cap.
        """
        options = options or ScrapeOptions()
        started = time.monotonic()
        log = scrape_logger.bind(user_id=user_id, platform=platform, scraping_type=scraping_type)

        try:
            self.compliance.get_settings(user_id, platform)
        except PersistenceError as e:
            raise ConfigurationError(
                f"No compliance settings available for platform: {platform}"
            ) from e

        validate_queries(queries, self.max_query_length)
        self.compliance.check_rate_limit(user_id, platform)

        outcomes: list[QueryOutcome] = []
        log_entries: list[tuple[ScrapingLog, QueryOutcome]] = []
        for index, query in enumerate(queries):
            outcome = await self._run_query(user_id, platform, scraping_type, query, options)
            outcomes.append(outcome)

            if outcome.ok:
                log.info(
                    f"Scraped {len(outcome.contacts)} contacts for query '{query}'",
                    extra={"query": query, "contacts_found": len(outcome.contacts)},
                )
                self.compliance.record_activity(
                    user_id, platform, scraping_type, len(outcome.contacts)
                )
            else:
                log.error(outcome.error, extra={"query": query})

            entry = self._write_log(user_id, platform, scraping_type, outcome)
            if entry is not None:
                log_entries.append((entry, outcome))

            if options.rate_limit_delay > 0 and index < len(queries) - 1:
                await asyncio.sleep(options.rate_limit_delay / 1000)

        candidates = [c for outcome in outcomes if outcome.ok for c in outcome.contacts]
        saved = self.save_contacts(user_id, platform, candidates, scraping_type)
        self.auto_tag_contacts(saved)
        self._record_saved_counts(log_entries, saved)

        execution_time_ms = int((time.monotonic() - started) * 1000)
        log.info(
            f"Scrape finished: {len(candidates)} found, {len(saved)} saved",
            extra={"execution_time_ms": execution_time_ms},
        )

        return ScrapingResult(
            contacts=saved,
            total_found=len(candidates),
            total_saved=len(saved),
            errors=[outcome.error for outcome in outcomes if not outcome.ok],
            execution_time_ms=execution_time_ms,
            outcomes=outcomes,
        )

    async def _run_query(
        self,
        user_id: str,
        platform: str,
        scraping_type: str,
        query: str,
        options: ScrapeOptions,
    ) -> QueryOutcome:
        started = time.monotonic()
        try:
            raw_candidates = await self.fetch_candidates(
                platform, scraping_type, query, options.max_contacts
            )
            contacts = apply_filters(
                self._normalize(raw_candidates, platform, query), options.filters
            )
        except Exception as e:
            return QueryOutcome(
                query=query,
                error=f'Failed to scrape query "{query}": {e}',
                response_time_ms=int((time.monotonic() - started) * 1000),
            )

        return QueryOutcome(
            query=query,
            contacts=contacts,
            response_time_ms=int((time.monotonic() - started) * 1000),
        )

    async def fetch_candidates(
        self,
        platform: str,
        scraping_type: str,
        query: str,
        limit: Optional[int] = None,
    ) -> list:
        """Fetch raw candidates for one query from the platform's source.

        Raises:
            ExternalFetchError: If no source serves the platform and type.
        """
        source = self.sources.get(platform)
        if source is None:
            raise ExternalFetchError(f"No candidate source for platform: {platform}")
        if scraping_type not in source.supported_types:
            raise ExternalFetchError(
                f"Unsupported scraping type for {platform}: {scraping_type}"
            )
        return await source.fetch(scraping_type, query, limit)

    def _normalize(
        self, raw_candidates: list, platform: str, query: str
    ) -> list[CandidateContact]:
        contacts = []
        for raw in raw_candidates:
            try:
                contact = normalize_candidate(raw, platform=platform)
            except ValueError as e:
                logger.warning(f"Dropping candidate from query '{query}': {e}")
                continue
            contacts.append(contact)
        return contacts

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def save_contacts(
        self,
        user_id: str,
        platform: str,
        candidates: list[CandidateContact],
        scraping_source: str,
    ) -> list[ScrapedContact]:
        """Upsert candidates as contacts.

        Existing identities are updated; new ones are inserted with
        ``scraping_source`` and a ``scraping_query`` defaulting to
        'bulk_import'. Each save runs in its own savepoint; failures are
        logged and skipped.

        Returns:
            Distinct saved contacts, in first-save order.
        """
        saved: dict[int, ScrapedContact] = {}

        for candidate in candidates:
            try:
                with self.db.begin_nested():
                    contact = self._upsert_contact(user_id, platform, candidate, scraping_source)
                saved.setdefault(contact.id, contact)
            except SQLAlchemyError as e:
                logger.error(f"Failed to save contact {candidate.platform_user_id}: {e}")

        return list(saved.values())

    def _upsert_contact(
        self,
        user_id: str,
        platform: str,
        candidate: CandidateContact,
        scraping_source: str,
    ) -> ScrapedContact:
        contact = (
            self.db.query(ScrapedContact)
            .filter(
                ScrapedContact.user_id == user_id,
                ScrapedContact.platform == platform,
                ScrapedContact.platform_user_id == candidate.platform_user_id,
            )
            .first()
        )

        if contact is None:
            contact = ScrapedContact(
                user_id=user_id,
                platform=platform,
                platform_user_id=candidate.platform_user_id,
                scraping_source=scraping_source,
                scraping_query=candidate.scraping_query or BULK_IMPORT_QUERY,
            )
            self.db.add(contact)
        elif candidate.scraping_query:
            contact.scraping_query = candidate.scraping_query

        for name in PROFILE_FIELDS:
            value = getattr(candidate, name)
            if value is not None:
                setattr(contact, name, value)
        for name in METRIC_FIELDS:
            setattr(contact, name, getattr(candidate, name))
        if candidate.tags:
            contact.profile_tags = list(candidate.tags)

        now = utcnow()
        contact.validation_status = ValidationStatus.VALID
        contact.scraped_at = now
        contact.updated_at = now

        self.db.flush()
        return contact

    def auto_tag_contacts(self, contacts: list[ScrapedContact]) -> None:
        """Auto-tag saved contacts. Failures are logged, never raised."""
        for contact in contacts:
            try:
                with self.db.begin_nested():
                    self.tagging.auto_tag_contact(contact)
            except (ScrapingError, SQLAlchemyError) as e:
                logger.error(f"Failed to auto-tag contact {contact.platform_user_id}: {e}")

    def _write_log(
        self,
        user_id: str,
        platform: str,
        scraping_type: str,
        outcome: QueryOutcome,
    ) -> Optional[ScrapingLog]:
        entry = ScrapingLog(
            user_id=user_id,
            platform=platform,
            scraping_type=scraping_type,
            query=outcome.query,
            contacts_found=len(outcome.contacts),
            contacts_saved=0,
            status=(
                ScrapingLogStatus.SUCCESS if outcome.ok else ScrapingLogStatus.PARTIAL_SUCCESS
            ),
            error_message=outcome.error,
            response_time=outcome.response_time_ms,
        )
        try:
            with self.db.begin_nested():
                self.db.add(entry)
                self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to write scraping log for query '{outcome.query}': {e}")
            return None
        return entry

    def _record_saved_counts(
        self,
        entries: list[tuple[ScrapingLog, QueryOutcome]],
        saved: list[ScrapedContact],
    ) -> None:
        """Set each log's contacts_saved to how many of its contacts persisted."""
        saved_ids = {contact.platform_user_id for contact in saved}
        try:
            with self.db.begin_nested():
                for entry, outcome in entries:
                    found_ids = {c.platform_user_id for c in outcome.contacts}
                    entry.contacts_saved = len(found_ids & saved_ids)
                self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to record saved counts on scraping logs: {e}")


# =============================================================================
# LOGS
# =============================================================================


class ScrapingLogService:
    """Read access to scraping logs."""

    def __init__(self, db: Session):
        self.db = db

    def list_logs(
        self,
        user_id: str,
        platform: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[ScrapingLog], int]:
        """List a user's logs, newest first.

        Returns:
            Tuple of (logs on the page, total matching count).
        """
        query = self.db.query(ScrapingLog).filter(ScrapingLog.user_id == user_id)
        if platform:
            query = query.filter(ScrapingLog.platform == platform)
        if status:
            query = query.filter(ScrapingLog.status == status)

        total = query.count()
        logs = (
            query.order_by(desc(ScrapingLog.created_at), desc(ScrapingLog.id))
            .offset((max(page, 1) - 1) * limit)
            .limit(limit)
            .all()
        )
        return logs, total


__all__ = [
    "ScrapingService",
    "ScrapingLogService",
    "ScrapeOptions",
    "ScrapeFilters",
    "QueryOutcome",
    "ScrapingResult",
    "apply_filters",
    "validate_queries",
    "MAX_QUERY_LENGTH",
]
