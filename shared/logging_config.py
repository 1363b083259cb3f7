"""
logging_config.py - Centralized JSON Logging Configuration

PURPOSE:
    Provides structured JSON logging for the cart service with timezone-aware timestamps
    and cart-specific context injection.

JSON LOG FIELDS:
    - timestamp: ISO 8601 time the record was created, in the configured timezone
    - level: Log level (INFO, ERROR, WARNING, DEBUG, CRITICAL)
    - logger: Module where the log originated (e.g., "cart_service.cart_store")
    - message: The actual log message
    - service_name: Name of the service (injected automatically)
    - session_id: Optional browser session the cart belongs to
    - cart_version: Optional cart version after a mutation
    - event_type: Optional cart event type being published
    - exception: Full stack trace (only when exc_info is set)

USAGE:
    from shared.logging_config import setup_logging
    setup_logging("cart-service", level="INFO")

    logger = logging.getLogger(__name__)
    logger.info("Added item to cart", extra={"session_id": "abc", "cart_version": 3})

EXAMPLE JSON OUTPUT:
    {
        "timestamp": "2026-10-19T09:12:03.114021-07:00",
        "level": "INFO",
        "logger": "cart_service.cart_store",
        "message": "Added item ard-uno-r3 to cart",
        "service_name": "cart-service",
        "session_id": "3f0c1a",
        "cart_version": 4
    }
"""

import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

EXTRA_FIELDS = ("service_name", "session_id", "cart_version", "event_type")

DEFAULT_TIMEZONE = "America/Los_Angeles"

# Timezone for log and event timestamps; set once by setup_logging
_timezone = ZoneInfo(DEFAULT_TIMEZONE)


def set_timezone(timezone_name: str) -> None:
    global _timezone
    _timezone = ZoneInfo(timezone_name)


def get_timezone() -> ZoneInfo:
    return _timezone


def local_now() -> datetime:
    """Current time in the service timezone."""
    return datetime.now(_timezone)


class JsonFormatter(logging.Formatter):
    """Formatter that renders each record as a single JSON object."""

    def __init__(self, timezone_name: Optional[str] = None):
        super().__init__()
        self.tz = ZoneInfo(timezone_name) if timezone_name else None

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, self.tz or _timezone).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ServiceFilter(logging.Filter):
    """Stamp every record with the service name."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        return True


def setup_logging(
    service_name: str,
    level: str = "INFO",
    timezone_name: str = DEFAULT_TIMEZONE,
    stream: Optional[Any] = None,
) -> logging.Handler:
    """Setup JSON logging for a service and return the installed handler."""
    set_timezone(timezone_name)
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(ServiceFilter(service_name))

    root = logging.getLogger()
    root.setLevel(level.upper())

    # Re-running setup (tests, reloads) must not stack duplicate handlers
    for existing in list(root.handlers):
        if isinstance(existing.formatter, JsonFormatter):
            root.removeHandler(existing)
    root.addHandler(handler)

    return handler
