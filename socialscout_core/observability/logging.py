"""Structured logging for SocialScout services.

Every line emitted while a scrape or campaign runs carries the same
identifying fields (user, platform, scraping type, campaign), so per-query
and per-contact failures can be traced in aggregated logs.

Usage:
    log = get_logger(__name__).bind(user_id="u1", platform="instagram")
    log.info("Scraped 12 contacts", extra={"query": "fitness"})
"""

import json
import logging
import sys
import traceback
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any, Optional


DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_SERVICE_NAME = "socialscout"

# Chatty libraries held at WARNING unless the root level is stricter
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "uvicorn.access")

_loggers: dict[str, "ScrapeLogger"] = {}


# =============================================================================
# FORMATTING
# =============================================================================


class JsonFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    # Attributes every LogRecord has; anything else came in through `extra`
    RESERVED_FIELDS = frozenset(
        logging.LogRecord("", 0, "", 0, "", (), None).__dict__
    ) | {"message", "asctime", "taskName"}

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        if record.levelno >= logging.WARNING:
            entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            entry["exception"] = "".join(traceback.format_exception(*record.exc_info))

        for key, value in record.__dict__.items():
            if key in self.RESERVED_FIELDS or key.startswith("_"):
                continue
            entry[key] = self._jsonable(value)

        return json.dumps(entry)

    @staticmethod
    def _jsonable(value: Any) -> Any:
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            return str(value)
        return value


# =============================================================================
# CONTEXT
# =============================================================================


@dataclass(frozen=True)
class ScrapeContext:
    """Fields stamped onto every record logged during one scrape call."""

    user_id: Optional[str] = None
    platform: Optional[str] = None
    scraping_type: Optional[str] = None
    campaign_id: Optional[int] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def merge(self, **values: Any) -> "ScrapeContext":
        """Return a copy with the given fields set; unknown names go to extra."""
        known = {f.name for f in fields(self)} - {"extra"}
        direct = {k: v for k, v in values.items() if k in known}
        extra = {**self.extra, **{k: v for k, v in values.items() if k not in known}}
        return replace(self, extra=extra, **direct)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for name in ("user_id", "platform", "scraping_type"):
            value = getattr(self, name)
            if value:
                result[name] = value
        if self.campaign_id is not None:
            result["campaign_id"] = self.campaign_id
        result.update(self.extra)
        return result


class ScrapeLogger(logging.LoggerAdapter):
    """Logger adapter that adds its ScrapeContext to each record.

    Per-call fields passed as ``extra`` are merged over the context rather
    than replacing it.
    """

    def __init__(self, logger: logging.Logger, context: Optional[ScrapeContext] = None):
        super().__init__(logger, {})
        self.context = context or ScrapeContext()

    def bind(self, **values: Any) -> "ScrapeLogger":
        """Return a logger whose context also carries ``values``."""
        return ScrapeLogger(self.logger, self.context.merge(**values))

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        merged = self.context.to_dict()
        merged.update(kwargs.get("extra") or {})
        kwargs["extra"] = merged
        return msg, kwargs


def get_logger(name: str) -> ScrapeLogger:
    """Get the (cached, unbound) scrape logger for a module."""
    if name not in _loggers:
        _loggers[name] = ScrapeLogger(logging.getLogger(name))
    return _loggers[name]


# =============================================================================
# SETUP
# =============================================================================


def configure_logging(
    level: str = DEFAULT_LOG_LEVEL,
    json_format: bool = True,
    service_name: str = DEFAULT_SERVICE_NAME,
) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        level: Log level name, case-insensitive.
        json_format: Emit JSON lines instead of plain text.
        service_name: Value of the "service" field in JSON lines.
    """
    numeric_level = logging.getLevelName(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    if json_format:
        handler.setFormatter(JsonFormatter(service_name=service_name))
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))
