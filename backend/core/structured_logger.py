"""Structured Logger with Consistent Formatting.

Provides:
- Consistent [COMPONENT] prefix format
- Correlation ID support for request tracing
- Structured JSON output for provider telemetry
"""

import logging
import json
from typing import Optional, Dict, Any
from contextvars import ContextVar

# Context variable for correlation ID (thread/async-safe)
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: Unique identifier for request tracing
    """
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    """Get the correlation ID for the current context."""
    return correlation_id_var.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID for the current context."""
    correlation_id_var.set(None)


class StructuredLogger:
    """Logger wrapper with consistent formatting.

    Features:
    - Component prefix: [COMPONENT] message
    - Correlation ID in error logs (and everywhere in verbose mode)
    - Structured JSON for metrics/telemetry data

    Usage:
        logger = StructuredLogger("DataService")
        logger.info("Returning cached data", entity_id="london")
        logger.metric("provider_attempt", 1, tags={"provider": "GitHub API"})
    """

    PREFIX_FORMAT = "[{component}]"

    def __init__(
        self,
        component: str,
        logger: Optional[logging.Logger] = None,
        verbose: bool = False,
    ):
        """Initialize structured logger.

        Args:
            component: Component name for prefix (e.g., "DataService")
            logger: Custom logger instance, defaults to one named after the component
            verbose: If True, every line carries the correlation ID
        """
        self.component = component
        self._logger = logger or logging.getLogger(component)
        self._verbose = verbose

    @classmethod
    def from_config(cls, component: str) -> 'StructuredLogger':
        """Create logger with configuration from environment."""
        from config.provider_config import get_logging_config
        return cls(component=component, verbose=get_logging_config().dev_mode)

    def _format_message(self, message: str, include_correlation: bool = False) -> str:
        prefix = self.PREFIX_FORMAT.format(component=self.component)

        if include_correlation or self._verbose:
            corr_id = get_correlation_id()
            if corr_id:
                prefix = f"{prefix}[{corr_id}]"

        return f"{prefix} {message}"

    def debug(self, message: str, **kwargs) -> None:
        self._logger.debug(self._format_message(message), extra=kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._logger.info(self._format_message(message), extra=kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._logger.warning(self._format_message(message), extra=kwargs)

    def error(
        self,
        message: str,
        exc_info: bool = False,
        **kwargs
    ) -> None:
        """Log error message with correlation ID and optional stack trace.

        Args:
            message: Log message
            exc_info: Whether to include exception info
            **kwargs: Additional context (logged as extra)
        """
        formatted = self._format_message(message, include_correlation=True)
        self._logger.error(formatted, exc_info=exc_info, extra=kwargs)

    def metric(
        self,
        metric_name: str,
        value: float,
        unit: str = "",
        tags: Optional[Dict[str, str]] = None,
    ) -> None:
        """Log a metric in structured JSON format.

        Args:
            metric_name: Name of the metric
            value: Metric value
            unit: Unit of measurement (e.g., "ms", "count")
            tags: Additional tags for the metric
        """
        metric_data: Dict[str, Any] = {
            "component": self.component,
            "metric": metric_name,
            "value": value,
        }

        if unit:
            metric_data["unit"] = unit

        if tags:
            metric_data["tags"] = tags

        corr_id = get_correlation_id()
        if corr_id:
            metric_data["correlation_id"] = corr_id

        self._logger.info(f"METRIC: {json.dumps(metric_data)}")


def get_structured_logger(component: str) -> StructuredLogger:
    """Get a structured logger for a component."""
    return StructuredLogger.from_config(component)
