"""Base service class with common functionality."""

import logging
from abc import ABC
from typing import Any

from wa_panel.config import Settings, get_settings
from wa_panel.core.metrics import API_CALLS, ERROR_COUNT


class BaseService(ABC):
    """Abstract base service with common functionality."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.logger = logging.getLogger(self.__class__.__name__)

    def _log_error(
        self, operation: str, error: Exception, extra_context: dict[str, Any] | None = None
    ) -> None:
        """Log error with context."""
        ERROR_COUNT.labels(error_type=type(error).__name__).inc()
        if extra_context:
            self.logger.error(
                f"{operation} failed: {error}",
                extra={"context": extra_context},
            )
        else:
            self.logger.error(f"{operation} failed: {error}")

    def _log_info(self, message: str, **kwargs: Any) -> None:
        """Log info with context."""
        extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
        self.logger.info(f"{message} {extra}".strip())

    def _track_api_call(self, endpoint: str, status: str = "success") -> None:
        """Track API call metric.

        Args:
            endpoint: API path template called (e.g., "api/general/contacto")
            status: Call status (success | error | unauthorized)
        """
        API_CALLS.labels(endpoint=endpoint, status=status).inc()
