"""Domain exceptions shared by the scraping services.

Pre-flight errors (ValidationError, RateLimitExceeded, ConfigurationError)
abort a scrape request. The remaining errors are raised by single-item
operations and are caught by the per-query and per-contact loops.
"""


class ScrapingError(Exception):
    """Base class for scraping domain errors."""

    pass


class ValidationError(ScrapingError):
    """Raised when a request carries invalid input."""

    pass


class RateLimitExceeded(ScrapingError):
    """Raised when the user's recent request count meets the configured cap."""

    def __init__(self, message: str, limit: int):
        super().__init__(message)
        self.limit = limit


class ConfigurationError(ScrapingError):
    """Raised when compliance settings cannot be loaded or created."""

    pass


class NotFoundError(ScrapingError):
    """Raised when a referenced contact, tag or campaign does not exist."""

    pass


class PersistenceError(ScrapingError):
    """Raised when a storage operation fails."""

    pass


class ExternalFetchError(ScrapingError):
    """Raised when the candidate source fails for one query."""

    pass


__all__ = [
    "ScrapingError",
    "ValidationError",
    "RateLimitExceeded",
    "ConfigurationError",
    "NotFoundError",
    "PersistenceError",
    "ExternalFetchError",
]
