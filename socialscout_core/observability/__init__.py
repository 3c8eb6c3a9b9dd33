"""Observability package for structured logging."""

from socialscout_core.observability.logging import (
    JsonFormatter,
    ScrapeContext,
    ScrapeLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "ScrapeLogger",
    "JsonFormatter",
    "ScrapeContext",
    "get_logger",
    "configure_logging",
]
