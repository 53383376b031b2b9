"""
Domain Models
=============

Plain dataclasses shared by the weather layer, the risk engine and the
collaborator stores.
"""

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class CropStage(str, Enum):
    GROWING = "growing"
    HARVESTED = "harvested"


class StorageMethod(str, Enum):
    """Storage method with its weather vulnerability multiplier."""
    SILO = "silo"
    TIN_SHED = "tin_shed"
    JUTE_BAG = "jute_bag"
    OPEN_SPACE = "open_space"

    @property
    def vulnerability(self) -> float:
        return STORAGE_VULNERABILITY[self]


STORAGE_VULNERABILITY = {
    StorageMethod.SILO: 1.0,       # baseline
    StorageMethod.TIN_SHED: 1.1,
    StorageMethod.JUTE_BAG: 1.2,
    StorageMethod.OPEN_SPACE: 1.5,
}


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2, RiskLevel.CRITICAL: 3}


class CacheStatus(str, Enum):
    HIT = "hit"
    MISS = "miss"
    EXPIRED = "expired"


class AdvisorySource(str, Enum):
    WEATHER = "weather"
    SCANNER = "scanner"
    MANUAL = "manual"


# ==================== WEATHER ====================

@dataclass(frozen=True)
class WeatherSnapshot:
    """
    One weather observation tied to rounded coordinates.

    Snapshots are never mutated; provenance changes produce a copy via
    ``dataclasses.replace``.
    """
    lat: float
    lon: float
    temperature: float
    feels_like: float
    humidity: float
    pressure: float
    wind_speed: float
    wind_direction: float
    rainfall: float
    condition: str
    description: str
    icon: str
    visibility: float
    cloudiness: float
    sunrise: datetime
    sunset: datetime
    fetched_at: datetime
    expires_at: datetime
    source: str = "openweathermap"
    api_call_count: int = 1
    cache_status: CacheStatus = CacheStatus.MISS

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at <= (now or utcnow())


@dataclass(frozen=True)
class WeatherConditions:
    """The four readings the risk engine scores on."""
    temperature: float
    humidity: float
    rainfall: float
    wind_speed: float

    @classmethod
    def from_snapshot(cls, snapshot: WeatherSnapshot) -> "WeatherConditions":
        return cls(
            temperature=snapshot.temperature,
            humidity=snapshot.humidity,
            rainfall=snapshot.rainfall,
            wind_speed=snapshot.wind_speed,
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "rainfall": self.rainfall,
            "wind_speed": self.wind_speed,
        }


# ==================== FARMERS & CROPS ====================

@dataclass
class Farmer:
    farmer_id: str
    name: str
    phone: str
    division: str
    district: str
    upazila: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    language: str = "bn"


@dataclass
class CropBatch:
    crop_id: str
    farmer_id: str
    crop_type: str
    stage: CropStage
    expected_harvest_date: Optional[datetime] = None
    storage_location: Optional[StorageMethod] = None
    storage_division: Optional[str] = None
    storage_district: Optional[str] = None
    entered_date: datetime = field(default_factory=utcnow)


def days_until(target: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days until ``target`` rounded up and clamped at zero, or None."""
    if target is None or not isinstance(target, datetime):
        return None
    now = now or utcnow()
    if target.tzinfo is None:
        target = target.replace(tzinfo=timezone.utc)
    seconds = (target - now).total_seconds()
    return max(0, math.ceil(seconds / 86400))


@dataclass(frozen=True)
class CropContext:
    """Crop state as seen by the risk engine."""
    crop_type: str
    stage: CropStage
    days_until_harvest: Optional[int] = None
    storage_method: Optional[StorageMethod] = None

    @classmethod
    def from_batch(cls, crop: CropBatch, now: Optional[datetime] = None) -> "CropContext":
        if crop.stage == CropStage.HARVESTED:
            return cls(
                crop_type=crop.crop_type,
                stage=crop.stage,
                storage_method=crop.storage_location,
            )
        return cls(
            crop_type=crop.crop_type,
            stage=crop.stage,
            days_until_harvest=days_until(crop.expected_harvest_date, now),
        )


# ==================== RISK ====================

@dataclass(frozen=True)
class RiskFactor:
    type: str
    severity: int  # 0-100
    description: str


@dataclass(frozen=True)
class RiskAssessment:
    score: int
    level: RiskLevel
    factors: List[RiskFactor]

    @property
    def primary_threat(self) -> Optional[RiskFactor]:
        if not self.factors:
            return None
        # max() keeps the first factor on ties
        return max(self.factors, key=lambda f: f.severity)


# ==================== ADVISORIES ====================

@dataclass(frozen=True)
class FarmerAudience:
    farmer_id: str


@dataclass(frozen=True)
class BroadcastAudience:
    pass


Audience = Union[FarmerAudience, BroadcastAudience]


@dataclass(frozen=True)
class StorageInfo:
    location: str
    division: str
    district: str


@dataclass
class SmartAlert:
    farmer_id: str
    crop_id: str
    crop_type: str
    stage: CropStage
    risk_level: RiskLevel
    message: str
    actions: List[str]
    weather_conditions: WeatherConditions
    storage_info: Optional[StorageInfo] = None
    generated_at: datetime = field(default_factory=utcnow)


@dataclass
class Advisory:
    audience: Audience
    source: AdvisorySource
    message: str
    actions: List[str] = field(default_factory=list)
    advisory_id: str = field(default_factory=new_id)
    status: str = "delivered"
    created_at: datetime = field(default_factory=utcnow)
    crop_id: Optional[str] = None
    risk_level: Optional[RiskLevel] = None
    weather_conditions: Optional[WeatherConditions] = None
    storage_info: Optional[StorageInfo] = None

    @property
    def is_broadcast(self) -> bool:
        return isinstance(self.audience, BroadcastAudience)

    @property
    def farmer_id(self) -> Optional[str]:
        if isinstance(self.audience, FarmerAudience):
            return self.audience.farmer_id
        return None
