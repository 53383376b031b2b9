"""
Advisory Engine Configuration
-----------------------------
Central configuration for weather caching, API quota and alert batching.
"""

import os
from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class GeoBounds:
    """Rectangular bounding box in decimal degrees."""
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    def contains(self, lat: float, lon: float) -> bool:
        return self.lat_min <= lat <= self.lat_max and self.lon_min <= lon <= self.lon_max


# Bangladesh
SERVICE_BOUNDS = GeoBounds(lat_min=20.0, lat_max=27.0, lon_min=88.0, lon_max=93.0)

# Dhaka
DEFAULT_LOCATION: Tuple[float, float] = (23.8103, 90.4125)


@dataclass
class AlertConfig:
    """Advisory engine configuration settings."""

    # AWS Settings
    aws_region: str = os.environ.get("AWS_REGION", "ap-south-1")
    table_name: str = os.environ.get("ALERTS_TABLE", "fasal-alert")

    # OpenWeatherMap Settings
    openweather_api_key: str = os.environ.get("OPENWEATHER_API_KEY", "")
    openweather_base_url: str = os.environ.get(
        "OPENWEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5"
    )
    openweather_timeout: float = float(os.environ.get("OPENWEATHER_TIMEOUT", "5"))

    # Weather cache (seconds)
    cache_ttl: int = int(os.environ.get("WEATHER_CACHE_TTL", "3600"))
    cache_extended_ttl: int = int(os.environ.get("WEATHER_CACHE_EXTENDED_TTL", "7200"))
    stale_lookback: int = 86400  # 24 hours
    proximity_radius_m: float = 1000.0
    coordinate_precision: int = 2  # ~1km

    # Daily API quota
    api_daily_limit: int = int(os.environ.get("WEATHER_API_DAILY_LIMIT", "1000"))
    api_warning_threshold: int = int(os.environ.get("WEATHER_API_WARNING_THRESHOLD", "800"))

    # Alert generation
    suppression_hours: int = int(os.environ.get("ADVISORY_SUPPRESSION_HOURS", "24"))
    batch_size: int = int(os.environ.get("ADVISORY_BATCH_SIZE", "10"))

    # Geography
    bounds: GeoBounds = field(default=SERVICE_BOUNDS)
    default_location: Tuple[float, float] = field(default=DEFAULT_LOCATION)


# Global config instance
config = AlertConfig()
