"""Candidate source providers.

Provides the platform-agnostic candidate source interface and the mock
generators used in place of real scrapers.
"""

from socialscout_core.providers.base import (
    ALLOWED_SCRAPING_TYPES,
    CandidateContact,
    CandidateSource,
    CandidateSourceRegistry,
    is_scraping_type_allowed,
    normalize_candidate,
)
from socialscout_core.providers.mock import MockCandidateSource, build_mock_registry

__all__ = [
    "ALLOWED_SCRAPING_TYPES",
    "CandidateContact",
    "CandidateSource",
    "CandidateSourceRegistry",
    "MockCandidateSource",
    "build_mock_registry",
    "is_scraping_type_allowed",
    "normalize_candidate",
]
