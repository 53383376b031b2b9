"""
Shared fixtures: in-memory stores and a scripted weather provider.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from fasal_alert.config import AlertConfig
from fasal_alert.models import (
    CacheStatus,
    CropBatch,
    CropStage,
    Farmer,
    StorageMethod,
    WeatherSnapshot,
)
from fasal_alert.utils.errors import DatabaseError, OpenWeatherError
from fasal_alert.utils.location import haversine_distance_m

FIXED_NOW = datetime(2026, 10, 17, 6, 0, 0, tzinfo=timezone.utc)


def make_observation(temp=28.0, humidity=65, rain=None, wind=3.0, description="clear sky"):
    """Build an OpenWeatherMap /weather payload."""
    payload = {
        "coord": {"lat": 23.81, "lon": 90.41},
        "weather": [{"id": 800, "main": "Clear", "description": description, "icon": "01d"}],
        "main": {"temp": temp, "feels_like": temp + 1, "humidity": humidity, "pressure": 1008},
        "visibility": 10000,
        "wind": {"speed": wind, "deg": 180},
        "clouds": {"all": 10},
        "sys": {"sunrise": 1792195200, "sunset": 1792238400},
        "name": "Dhaka",
    }
    if rain is not None:
        payload["rain"] = {"1h": rain}
    return payload


def make_snapshot(
    lat=23.81,
    lon=90.41,
    fetched_at: Optional[datetime] = None,
    ttl_seconds=3600,
    temperature=30.0,
    humidity=70.0,
    rainfall=0.0,
    wind_speed=4.0,
) -> WeatherSnapshot:
    fetched_at = fetched_at or FIXED_NOW
    return WeatherSnapshot(
        lat=lat,
        lon=lon,
        temperature=temperature,
        feels_like=temperature,
        humidity=humidity,
        pressure=1008.0,
        wind_speed=wind_speed,
        wind_direction=180.0,
        rainfall=rainfall,
        condition="Clouds",
        description="scattered clouds",
        icon="03d",
        visibility=10000.0,
        cloudiness=40.0,
        sunrise=fetched_at.replace(hour=0),
        sunset=fetched_at.replace(hour=12),
        fetched_at=fetched_at,
        expires_at=fetched_at + timedelta(seconds=ttl_seconds),
        source="openweathermap",
        cache_status=CacheStatus.MISS,
    )


class FakeSnapshotStore:
    """In-memory snapshot store with the same lookup semantics as DynamoDB."""

    def __init__(self, radius_m=1000.0):
        self.snapshots: List[WeatherSnapshot] = []
        self.radius_m = radius_m
        self.saved: List[WeatherSnapshot] = []
        self.lookups: List[Dict] = []
        self.fail_saves = False
        self.fail_lookups = False

    def save_snapshot(self, snapshot):
        if self.fail_saves:
            raise DatabaseError("Database operation failed: save_snapshot")
        self.snapshots.append(snapshot)
        self.saved.append(snapshot)
        return snapshot

    def find_by_location(self, lat, lon, max_age_seconds=3600, include_expired=False, now=None):
        self.lookups.append({"max_age": max_age_seconds, "include_expired": include_expired})
        if self.fail_lookups:
            raise DatabaseError("Database operation failed: find_by_location")
        now = now or FIXED_NOW
        cutoff = now - timedelta(seconds=max_age_seconds)
        candidates = [
            s for s in self.snapshots
            if s.fetched_at >= cutoff
            and (include_expired or not s.is_expired(now))
            and haversine_distance_m(lat, lon, s.lat, s.lon) <= self.radius_m
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda s: s.fetched_at)


class FakeWeatherClient:
    """Scripted provider; counts calls across threads."""

    def __init__(self, payload=None, error: Optional[Exception] = None, delay: float = 0.0):
        self.payload = payload if payload is not None else make_observation()
        self.error = error
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def fetch_current(self, lat, lon):
        with self._lock:
            self.calls += 1
        if self.delay:
            threading.Event().wait(self.delay)
        if self.error is not None:
            raise self.error
        return self.payload

    def check_health(self):
        try:
            self.fetch_current(23.8103, 90.4125)
        except OpenWeatherError:
            return False
        return True


class FakeFarmers:
    def __init__(self, farmers=None, error: Optional[Exception] = None):
        self.farmers = {f.farmer_id: f for f in (farmers or [])}
        self.error = error

    def find_by_id(self, farmer_id):
        if self.error is not None:
            raise self.error
        return self.farmers.get(farmer_id)

    def find_many(self, filter=None):
        result = list(self.farmers.values())
        for key, value in (filter or {}).items():
            if value is not None:
                result = [f for f in result if getattr(f, key) == value]
        return result

    def save(self, farmer):
        self.farmers[farmer.farmer_id] = farmer
        return farmer


class FakeCropBatches:
    def __init__(self, crops=None):
        self.crops = list(crops or [])

    def find_by_farmer_id(self, farmer_id, stage=None):
        return [
            c for c in self.crops
            if c.farmer_id == farmer_id and (stage is None or c.stage == stage)
        ]

    def save(self, crop):
        self.crops.append(crop)
        return crop


class FakeAdvisories:
    def __init__(self, error_on_lookup: Optional[Exception] = None):
        self.created = []
        self.error_on_lookup = error_on_lookup

    def create(self, advisory):
        self.created.append(advisory)
        return advisory

    def find_recent_by_farmer_and_source(self, farmer_id, source, hours, now=None):
        if self.error_on_lookup is not None:
            raise self.error_on_lookup
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(hours=hours)
        return [
            a for a in self.created
            if a.farmer_id == farmer_id and a.source == source and a.created_at >= cutoff
        ]


class RecordingNotifier:
    def __init__(self, error: Optional[Exception] = None):
        self.sent = []
        self.error = error

    def notify(self, phone_number, message, timestamp=None):
        if self.error is not None:
            raise self.error
        self.sent.append((phone_number, message, timestamp))


@pytest.fixture
def settings():
    return AlertConfig(openweather_api_key="test-key")


@pytest.fixture
def snapshot_store():
    return FakeSnapshotStore()


@pytest.fixture
def weather_client():
    return FakeWeatherClient()


@pytest.fixture
def farmer():
    return Farmer(
        farmer_id="farmer-1",
        name="Rahim",
        phone="+8801711000000",
        division="Dhaka",
        district="Gazipur",
    )


@pytest.fixture
def upstream_down():
    return OpenWeatherError("Network error: connection refused", api_code="NETWORK_ERROR")


def growing_crop(crop_id="crop-g", farmer_id="farmer-1", crop_type="ধান", harvest_in_days=None):
    return CropBatch(
        crop_id=crop_id,
        farmer_id=farmer_id,
        crop_type=crop_type,
        stage=CropStage.GROWING,
        expected_harvest_date=(
            datetime.now(timezone.utc) + timedelta(days=harvest_in_days) - timedelta(hours=1)
            if harvest_in_days is not None else None
        ),
    )


def harvested_crop(crop_id="crop-h", farmer_id="farmer-1", crop_type="ধান", storage=StorageMethod.OPEN_SPACE):
    return CropBatch(
        crop_id=crop_id,
        farmer_id=farmer_id,
        crop_type=crop_type,
        stage=CropStage.HARVESTED,
        storage_location=storage,
        storage_division="Dhaka",
        storage_district="Gazipur",
    )
