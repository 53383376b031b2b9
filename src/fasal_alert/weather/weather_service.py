"""
Weather Service
===============

Provides weather data with intelligent caching to minimize API calls.

Features:
- Cache-first retrieval within a ~1km radius
- Coordinate rounding for cache key generation
- Request deduplication for concurrent calls (single-flight)
- Daily API quota tracking with 80% / 90% / 100% warnings
- Adaptive cache TTL once the quota warning threshold is crossed
- Fallback to stale cached data (up to 24h) on API failure or quota exhaustion
- Fire-and-forget cache writes that never fail the caller
"""

import asyncio
import math
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Set

from ..config import AlertConfig, config as default_config
from ..models import CacheStatus, Farmer, WeatherSnapshot, utcnow
from ..utils.errors import NotFoundError, QuotaExhaustedError, WeatherUnavailableError
from ..utils.location import (
    Coordinates,
    cache_key,
    get_coordinates_for_location,
    round_coordinates,
    validate_and_sanitize_coordinates,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


class DailyQuota:
    """
    Process-local daily API call counter.

    Resets when the local calendar day changes. Under a single event loop
    the read-modify-write in ``increment`` runs without interleaving.
    """

    def __init__(
        self,
        daily_limit: int,
        warning_threshold: int,
        today: Callable[[], date] = date.today,
    ):
        self.daily_limit = daily_limit
        self.warning_threshold = warning_threshold
        self.critical_threshold = math.floor(daily_limit * 0.9)
        self._today = today
        self.count = 0
        self.last_reset_date = today()

    def reset_if_needed(self) -> None:
        today = self._today()
        if today != self.last_reset_date:
            logger.info(f"Resetting daily API call counter. Previous count: {self.count}")
            self.count = 0
            self.last_reset_date = today

    def is_exhausted(self) -> bool:
        self.reset_if_needed()
        return self.count >= self.daily_limit

    def is_warning(self) -> bool:
        self.reset_if_needed()
        return self.count >= self.warning_threshold

    def increment(self) -> int:
        self.reset_if_needed()
        self.count += 1

        percent_used = round(self.count / self.daily_limit * 100)
        logger.info(f"API call #{self.count} ({percent_used}% of daily limit)")

        if self.count == self.warning_threshold:
            logger.warning(
                f"API usage has reached {self.count} calls ({percent_used}% of daily limit). "
                f"Remaining calls: {self.daily_limit - self.count}. Cache TTL will be extended."
            )
        if self.count == self.critical_threshold:
            logger.error(
                f"API usage has reached {self.count} calls (90% of daily limit). "
                f"Only {self.daily_limit - self.count} calls remaining today!"
            )
        if self.count >= self.daily_limit:
            logger.error(
                f"Daily API limit of {self.daily_limit} calls has been reached. "
                f"Subsequent requests will use cached data only."
            )
        return self.count

    def stats(self) -> Dict[str, Any]:
        self.reset_if_needed()
        return {
            "daily_call_count": self.count,
            "daily_limit": self.daily_limit,
            "percent_used": round(self.count / self.daily_limit * 100),
            "remaining_calls": max(0, self.daily_limit - self.count),
            "warning_threshold": self.warning_threshold,
            "last_reset_date": self.last_reset_date.isoformat(),
        }


def _timestamp(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def snapshot_from_observation(
    raw: Dict[str, Any],
    lat: float,
    lon: float,
    ttl_seconds: int,
    now: Optional[datetime] = None,
) -> WeatherSnapshot:
    """
    Convert an OpenWeatherMap ``/weather`` payload into a snapshot.

    Raises KeyError / TypeError / ValueError / IndexError on malformed payloads.
    """
    now = now or utcnow()
    main = raw["main"]
    wind = raw.get("wind") or {}
    weather = raw["weather"][0]
    rain = raw.get("rain") or {}

    return WeatherSnapshot(
        lat=lat,
        lon=lon,
        temperature=float(main["temp"]),
        feels_like=float(main.get("feels_like", main["temp"])),
        humidity=float(main["humidity"]),
        pressure=float(main.get("pressure", 0)),
        wind_speed=float(wind.get("speed", 0)),
        wind_direction=float(wind.get("deg", 0)),
        rainfall=float(rain.get("1h", 0)),
        condition=weather.get("main", ""),
        description=weather.get("description", ""),
        icon=weather.get("icon", ""),
        visibility=float(raw.get("visibility", 0)),
        cloudiness=float((raw.get("clouds") or {}).get("all", 0)),
        sunrise=_timestamp(raw["sys"]["sunrise"]),
        sunset=_timestamp(raw["sys"]["sunset"]),
        fetched_at=now,
        expires_at=now + timedelta(seconds=ttl_seconds),
        source="openweathermap",
        api_call_count=1,
        cache_status=CacheStatus.MISS,
    )


class WeatherService:
    """
    Cache-first weather acquisition.

    ``store`` follows the snapshot-store contract (``save_snapshot``,
    ``find_by_location``) and ``client`` the provider contract
    (``fetch_current``). Both are blocking and are run off the event loop.
    """

    def __init__(
        self,
        store,
        client,
        farmers=None,
        settings: AlertConfig = default_config,
        quota: Optional[DailyQuota] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.client = client
        self.farmers = farmers
        self.settings = settings
        self.quota = quota or DailyQuota(settings.api_daily_limit, settings.api_warning_threshold)
        self.clock = clock
        self._pending: Dict[str, "asyncio.Future[WeatherSnapshot]"] = {}
        self._background: Set["asyncio.Task[Any]"] = set()

    # ---------- public API ----------

    async def get_current_weather(self, lat: float, lon: float) -> WeatherSnapshot:
        """
        Get current weather for a location with a cache-first strategy.

        Concurrent calls for the same rounded coordinates share one
        in-flight request.

        Raises:
            QuotaExhaustedError: daily limit reached and nothing cached
            WeatherUnavailableError: upstream failed and nothing cached
        """
        valid_lat, valid_lon = validate_and_sanitize_coordinates(
            lat, lon, self.settings.bounds, self.settings.default_location
        )
        rounded_lat, rounded_lon = round_coordinates(valid_lat, valid_lon, self.settings.coordinate_precision)
        key = cache_key(rounded_lat, rounded_lon, self.settings.coordinate_precision)

        pending = self._pending.get(key)
        if pending is not None:
            logger.info(f"Deduplicating request for location {key}")
            return await asyncio.shield(pending)

        task = asyncio.ensure_future(self._acquire(key, rounded_lat, rounded_lon))
        self._pending[key] = task
        return await asyncio.shield(task)

    async def get_weather_for_farmer(self, farmer_id: str) -> WeatherSnapshot:
        """Get weather for a farmer's location."""
        if self.farmers is None:
            raise NotFoundError("Farmer directory not configured", {"farmer_id": farmer_id})

        farmer = await asyncio.to_thread(self.farmers.find_by_id, farmer_id)
        if not farmer:
            raise NotFoundError("Farmer not found", {"farmer_id": farmer_id})

        lat, lon = self.coordinates_for_farmer(farmer)
        logger.info(
            f"Fetching weather for farmer {farmer_id} at {farmer.division}/{farmer.district} ({lat}, {lon})"
        )
        return await self.get_current_weather(lat, lon)

    def coordinates_for_farmer(self, farmer: Farmer) -> Coordinates:
        if farmer.latitude is not None and farmer.longitude is not None:
            return farmer.latitude, farmer.longitude
        return get_coordinates_for_location(farmer.division, farmer.district, self.settings.default_location)

    def get_api_usage_stats(self) -> Dict[str, Any]:
        return self.quota.stats()

    def determine_cache_ttl(self) -> int:
        """Extend the TTL once usage crosses the warning threshold."""
        if self.quota.is_warning():
            return self.settings.cache_extended_ttl
        return self.settings.cache_ttl

    async def drain(self) -> None:
        """Wait for pending background cache writes."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    # ---------- internals ----------

    async def _acquire(self, key: str, lat: float, lon: float) -> WeatherSnapshot:
        try:
            cached = await self._lookup(lat, lon, self.determine_cache_ttl(), include_expired=False)
            if cached:
                logger.info(f"Cache hit for location {key}")
                return replace(cached, source="cache", cache_status=CacheStatus.HIT)

            logger.info(f"Cache miss for location {key}, fetching from API")

            if self.quota.is_exhausted():
                logger.error(
                    f"Daily API limit reached ({self.quota.count}/{self.quota.daily_limit}). "
                    f"Attempting to use stale cache data."
                )
                stale = await self._stale(lat, lon)
                if stale:
                    logger.warning(f"Returning stale cache data for location {key} due to API limit")
                    return stale
                raise QuotaExhaustedError(self.quota.count, self.quota.daily_limit)

            try:
                raw = await asyncio.to_thread(self.client.fetch_current, lat, lon)
                self.quota.increment()
                snapshot = snapshot_from_observation(raw, lat, lon, self.determine_cache_ttl(), self.clock())
            except Exception as api_error:
                logger.error(f"OpenWeatherMap API error for {key}: {api_error}")
                stale = await self._stale(lat, lon)
                if stale:
                    logger.warning(f"Returning stale cache data for location {key} due to API failure")
                    return stale
                if isinstance(api_error, WeatherUnavailableError):
                    raise
                raise WeatherUnavailableError(
                    f"Weather unavailable for {key}: {api_error}", {"cache_key": key}
                ) from api_error

            self._save_in_background(snapshot)
            return snapshot
        finally:
            self._pending.pop(key, None)

    async def _lookup(
        self, lat: float, lon: float, max_age: int, include_expired: bool
    ) -> Optional[WeatherSnapshot]:
        try:
            return await asyncio.to_thread(
                self.store.find_by_location, lat, lon, max_age, include_expired, self.clock()
            )
        except Exception as e:
            logger.error(f"Weather cache lookup failed for ({lat}, {lon}): {e}")
            return None

    async def _stale(self, lat: float, lon: float) -> Optional[WeatherSnapshot]:
        stale = await self._lookup(lat, lon, self.settings.stale_lookback, include_expired=True)
        if stale:
            return replace(stale, source="cache", cache_status=CacheStatus.EXPIRED)
        return None

    def _save_in_background(self, snapshot: WeatherSnapshot) -> None:
        task = asyncio.ensure_future(asyncio.to_thread(self.store.save_snapshot, snapshot))
        self._background.add(task)
        task.add_done_callback(self._on_save_done)

    def _on_save_done(self, task: "asyncio.Task[Any]") -> None:
        self._background.discard(task)
        if task.cancelled():
            logger.warning("Weather snapshot cache write was cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Error saving weather snapshot to cache: {error}")
