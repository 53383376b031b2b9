# Shared utilities
from .errors import (
    AlertError,
    DatabaseError,
    NotFoundError,
    OpenWeatherError,
    QuotaExhaustedError,
    ValidationError,
    WeatherUnavailableError,
    log_error,
)
from .logger import get_logger

__all__ = [
    "AlertError",
    "DatabaseError",
    "NotFoundError",
    "OpenWeatherError",
    "QuotaExhaustedError",
    "ValidationError",
    "WeatherUnavailableError",
    "get_logger",
    "log_error",
]
