"""
Bangla Message Formatter
========================

Builds advisory messages in Bangla with the crop, location and the exact
weather readings used for scoring, and pairs them with generated actions.
"""

from dataclasses import dataclass
from typing import List, Optional

from ..models import CropContext, CropStage, RiskLevel, WeatherConditions
from .action_items import generate_action_items
from .risk_calculator import HARVEST_WINDOW_DAYS

STORAGE_TYPE_NAMES = {
    "silo": "সাইলো",
    "jute_bag": "পাটের বস্তা",
    "open_space": "খোলা জায়গা",
    "tin_shed": "টিনের ঘর",
}

DEFAULT_STORAGE_NAME = "গুদাম"
DEFAULT_LOCATION_NAME = "আপনার এলাকা"


@dataclass
class AdvisoryMessage:
    message: str
    actions: List[str]
    risk_level: RiskLevel


def _num(value: float) -> str:
    """Render 39.0 as "39" and 28.5 as "28.5"."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return str(round(value, 2))


def _location_name(division: Optional[str], district: Optional[str]) -> str:
    if division and district:
        return f"{district}, {division}"
    return division or district or DEFAULT_LOCATION_NAME


def _storage_name(crop: CropContext) -> str:
    if crop.storage_method is None:
        return DEFAULT_STORAGE_NAME
    key = getattr(crop.storage_method, "value", crop.storage_method)
    return STORAGE_TYPE_NAMES.get(key, key)


def _readings(weather: WeatherConditions) -> str:
    return (
        f"তাপমাত্রা {_num(weather.temperature)}°C, আর্দ্রতা {_num(weather.humidity)}%, "
        f"বৃষ্টিপাত {_num(weather.rainfall)}mm, বাতাসের গতি {_num(weather.wind_speed)} m/s।"
    )


def format_storage_advisory(
    crop: CropContext,
    weather: WeatherConditions,
    risk_level: RiskLevel,
    division: Optional[str] = None,
    district: Optional[str] = None,
) -> AdvisoryMessage:
    """Advisory for a harvested crop in storage."""
    message = (
        f"আপনার {crop.crop_type} ফসল {_storage_name(crop)} গুদামে "
        f"({_location_name(division, district)}) ঝুঁকিতে রয়েছে। "
        f"{_readings(weather)} অবিলম্বে সতর্কতামূলক ব্যবস্থা নিন।"
    )
    return AdvisoryMessage(
        message=message,
        actions=generate_action_items(crop, weather, risk_level),
        risk_level=risk_level,
    )


def format_growing_advisory(
    crop: CropContext,
    weather: WeatherConditions,
    risk_level: RiskLevel,
) -> AdvisoryMessage:
    """Advisory for a crop still in the field, mentioning an imminent harvest."""
    message = f"আপনার {crop.crop_type} ফসল আবহাওয়ার কারণে ঝুঁকিতে রয়েছে। "

    days = crop.days_until_harvest
    if days is not None and 0 <= days <= HARVEST_WINDOW_DAYS:
        message += f"আপনার ফসল {days} দিনের মধ্যে কাটার সময়। "

    message += f"{_readings(weather)} সুরক্ষামূলক ব্যবস্থা নিন।"
    return AdvisoryMessage(
        message=message,
        actions=generate_action_items(crop, weather, risk_level),
        risk_level=risk_level,
    )


def format_advisory(
    crop: CropContext,
    weather: WeatherConditions,
    risk_level: RiskLevel,
    division: Optional[str] = None,
    district: Optional[str] = None,
) -> AdvisoryMessage:
    if crop.stage == CropStage.HARVESTED:
        return format_storage_advisory(crop, weather, risk_level, division, district)
    return format_growing_advisory(crop, weather, risk_level)
