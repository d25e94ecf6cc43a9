"""Structured JSON logging with request ID support.

This module provides:
- JSON-formatted log output for machine parsing
- Request ID propagation shared with the structured logger's correlation ID
- Console handler, plus an optional rotating file handler
"""

import json
import logging
import logging.handlers
import os
import uuid
from datetime import datetime, timezone
from typing import Optional

from core.structured_logger import get_correlation_id, set_correlation_id


def get_request_id() -> str:
    """Get current request ID from context."""
    return get_correlation_id() or '-'


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set request ID in context. Generates a short UUID if not provided."""
    rid = request_id or str(uuid.uuid4())[:8]
    set_correlation_id(rid)
    return rid


class JSONFormatter(logging.Formatter):
    """JSON log formatter with structured output.

    Outputs logs as JSON with fields:
    - timestamp: ISO 8601 formatted timestamp
    - level: Log level (INFO, WARNING, ERROR, etc.)
    - logger: Logger name
    - message: Log message
    - request_id: Correlation ID for request tracing
    - exception: Formatted exception (if present)
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": get_request_id(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry)


class RequestIdFilter(logging.Filter):
    """Injects request_id into records that do not carry one."""

    def filter(self, record):
        if not hasattr(record, 'request_id'):
            record.request_id = get_request_id()
        return True


def setup_logging(json_format: bool = False, log_file: Optional[str] = None, level: int = logging.INFO):
    """Configure centralized logging.

    Args:
        json_format: If True, use JSON formatter. If False, use human-readable format.
        log_file: Optional path for a rotating file handler (5MB, 3 backups)
        level: Root logger level
    """
    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] - %(message)s'
        )

    handlers = [logging.StreamHandler()]
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=5 * 1024 * 1024, backupCount=3
        ))

    request_id_filter = RequestIdFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(request_id_filter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    logger = logging.getLogger(__name__)
    logger.info("Logging configured", extra={'extra_fields': {'log_file': log_file}})
