# Weather acquisition
from .openweather_client import OpenWeatherClient, get_openweather_client
from .snapshot_store import WeatherSnapshotStore
from .weather_service import DailyQuota, WeatherService

__all__ = [
    "DailyQuota",
    "OpenWeatherClient",
    "WeatherService",
    "WeatherSnapshotStore",
    "get_openweather_client",
]
