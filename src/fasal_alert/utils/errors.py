"""
Error types shared across the advisory engine.
"""

from typing import Any, Dict, Optional

from .logger import get_logger

logger = get_logger(__name__)


class AlertError(Exception):
    """Base error for the advisory engine."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class WeatherUnavailableError(AlertError):
    """Raised when no weather observation can be served for a location."""

    status_code = 503


class QuotaExhaustedError(WeatherUnavailableError):
    """Raised when the daily upstream quota is spent and nothing is cached."""

    def __init__(self, call_count: int, daily_limit: int):
        self.call_count = call_count
        self.daily_limit = daily_limit
        super().__init__(
            "Daily API limit reached and no cached data available. Please try again tomorrow.",
            {"call_count": call_count, "daily_limit": daily_limit},
        )


class OpenWeatherError(WeatherUnavailableError):
    """Raised by the OpenWeatherMap client for any upstream failure."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        api_code: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.http_status = status_code
        self.api_code = api_code


class NotFoundError(AlertError):
    status_code = 404


class ValidationError(AlertError):
    status_code = 400


class DatabaseError(AlertError):
    status_code = 500


def log_error(error: BaseException, context: Optional[str] = None) -> None:
    """Log an error with a level matching its severity."""
    prefix = f"[{context}] " if context else ""

    if isinstance(error, AlertError):
        if error.status_code >= 500:
            logger.error(f"{prefix}{type(error).__name__}: {error.message} {error.details}")
        else:
            logger.warning(f"{prefix}{type(error).__name__}: {error.message}")
    else:
        logger.error(f"{prefix}Unexpected error: {error!r}")
