"""
Weather Advisory Service
========================

Schedules advisory generation per farmer, per location and for every
farmer in batches.

Per farmer:
1. Skip if a weather advisory was already created in the suppression window
2. Fetch weather for the farmer's location
3. Create condition-level advisories (heat, rain, humidity, wind) enriched
   with the farmer's growing crops
4. Create per-crop smart alerts (a failure here keeps the advisories from 3)
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..config import AlertConfig, config as default_config
from ..models import Advisory, AdvisorySource, CropStage, WeatherConditions
from ..utils.errors import log_error
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class WeatherConditionAdvisory:
    type: str
    severity: str  # "high" | "medium"
    title: str
    message: str
    actions: List[str]
    conditions: Dict[str, float] = field(default_factory=dict)


_SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def generate_weather_advisories(weather: WeatherConditions) -> List[WeatherConditionAdvisory]:
    """Condition-level advisories for the current weather, high severity first."""
    advisories: List[WeatherConditionAdvisory] = []

    if weather.temperature > 35:
        advisories.append(WeatherConditionAdvisory(
            type="heat",
            severity="high" if weather.temperature > 40 else "medium",
            title="উচ্চ তাপমাত্রা সতর্কতা",
            message=f"তাপমাত্রা {weather.temperature:.1f}°C। তাপজনিত ক্ষতি থেকে ফসল রক্ষায় ব্যবস্থা নিন।",
            actions=[
                "সেচের পরিমাণ বাড়ান",
                "মাটির আর্দ্রতা ধরে রাখতে মালচ ব্যবহার করুন",
                "সংবেদনশীল ফসলে ছায়া জাল ব্যবহারের কথা বিবেচনা করুন",
                "তাপজনিত ক্ষতির লক্ষণ পর্যবেক্ষণ করুন",
            ],
            conditions={"temperature": weather.temperature},
        ))

    if weather.rainfall > 50:
        advisories.append(WeatherConditionAdvisory(
            type="rainfall",
            severity="high" if weather.rainfall > 100 else "medium",
            title="ভারী বৃষ্টিপাত সতর্কতা",
            message=f"ভারী বৃষ্টিপাত ({weather.rainfall:.1f}mm)। জলাবদ্ধতা এড়াতে পানি নিষ্কাশন নিশ্চিত করুন।",
            actions=[
                "নালা পরিষ্কার করুন",
                "সম্ভব হলে ফসল কাটা বিলম্বিত করুন",
                "সংরক্ষিত ফসল আর্দ্রতা থেকে রক্ষা করুন",
                "ছত্রাক রোগ পর্যবেক্ষণ করুন",
            ],
            conditions={"rainfall": weather.rainfall},
        ))

    if weather.humidity > 80:
        advisories.append(WeatherConditionAdvisory(
            type="humidity",
            severity="high" if weather.humidity > 90 else "medium",
            title="উচ্চ আর্দ্রতা সতর্কতা",
            message=f"আর্দ্রতা {weather.humidity:.0f}%। ছত্রাক রোগ ও পোকার আক্রমণের ঝুঁকি বেশি।",
            actions=[
                "ফসলের চারপাশে বায়ু চলাচল বাড়ান",
                "প্রয়োজনে প্রতিরোধমূলক ছত্রাকনাশক দিন",
                "রোগের লক্ষণ পর্যবেক্ষণ করুন",
                "অতিরিক্ত আর্দ্রতা এড়াতে সেচ কমান",
            ],
            conditions={"humidity": weather.humidity},
        ))

    if weather.wind_speed > 10:
        advisories.append(WeatherConditionAdvisory(
            type="wind",
            severity="high" if weather.wind_speed > 15 else "medium",
            title="ঝড়ো হাওয়া সতর্কতা",
            message=f"বাতাসের গতি {weather.wind_speed:.1f} m/s। বাতাসের ক্ষতি থেকে ফসল রক্ষা করুন।",
            actions=[
                "লম্বা ফসলে খুঁটি দিন",
                "আলগা সরঞ্জাম ও উপকরণ বেঁধে রাখুন",
                "স্প্রে করা বিলম্বিত করুন",
                "বাতাস থামার পর ক্ষতি পরীক্ষা করুন",
            ],
            conditions={"wind_speed": weather.wind_speed},
        ))

    advisories.sort(key=lambda a: _SEVERITY_ORDER[a.severity])
    return advisories


def enrich_with_crop_info(message: str, crop_types: List[str]) -> str:
    """Append crop-specific (or general) guidance to a condition advisory."""
    unique_crops = list(dict.fromkeys(crop_types))
    if unique_crops:
        return f"{message}\n\nআপনার {', '.join(unique_crops)} ফসলের জন্য বিশেষ সতর্কতা অবলম্বন করুন।"
    return f"{message}\n\nআপনার এলাকার আবহাওয়া পরিস্থিতি সম্পর্কে সতর্ক থাকুন।"


class WeatherAdvisoryService:
    """Advisory scheduling across farmers."""

    def __init__(
        self,
        weather_service,
        advisory_service,
        advisories,
        farmers,
        crop_batches,
        smart_alert_service=None,
        settings: AlertConfig = default_config,
    ):
        self.weather_service = weather_service
        self.advisory_service = advisory_service
        self.advisories = advisories
        self.farmers = farmers
        self.crop_batches = crop_batches
        self.smart_alert_service = smart_alert_service
        self.settings = settings

    async def should_generate_advisory(self, farmer_id: str, source: AdvisorySource, hours: int) -> bool:
        try:
            recent = await asyncio.to_thread(
                self.advisories.find_recent_by_farmer_and_source, farmer_id, source, hours
            )
        except Exception as e:
            # A failed check must not block generation
            log_error(e, "WeatherAdvisoryService.should_generate_advisory")
            return True
        return len(recent) == 0

    async def generate_for_farmer(self, farmer_id: str) -> List[Advisory]:
        """
        Generate weather advisories and smart alerts for one farmer.

        Returns:
            Every advisory created (empty when suppressed)

        Raises:
            NotFoundError: farmer does not exist
            WeatherUnavailableError: no weather could be served
        """
        logger.info(f"Generating weather advisories for farmer {farmer_id}")

        hours = self.settings.suppression_hours
        if not await self.should_generate_advisory(farmer_id, AdvisorySource.WEATHER, hours):
            logger.info(f"Skipping advisory generation for farmer {farmer_id} - duplicate within {hours} hours")
            return []

        try:
            snapshot = await self.weather_service.get_weather_for_farmer(farmer_id)
        except Exception as e:
            log_error(e, "WeatherAdvisoryService.generate_for_farmer")
            raise

        weather = WeatherConditions.from_snapshot(snapshot)
        created: List[Advisory] = []

        condition_advisories = generate_weather_advisories(weather)
        if condition_advisories:
            growing = await asyncio.to_thread(
                self.crop_batches.find_by_farmer_id, farmer_id, CropStage.GROWING
            )
            crop_types = [crop.crop_type for crop in growing]

            for condition in condition_advisories:
                advisory = await asyncio.to_thread(
                    self.advisory_service.create_farmer_advisory,
                    farmer_id,
                    AdvisorySource.WEATHER,
                    enrich_with_crop_info(condition.message, crop_types),
                    condition.actions,
                )
                created.append(advisory)
            logger.info(f"Created {len(created)} weather advisories for farmer {farmer_id}")
        else:
            logger.info(f"No weather condition advisories needed for farmer {farmer_id}")

        if self.smart_alert_service is not None:
            try:
                alerts = await self.smart_alert_service.generate_alerts_for_farmer(farmer_id, weather)
                stored = await self.smart_alert_service.store_alerts_as_advisories(alerts)
                created.extend(stored)
                logger.info(f"Created {len(stored)} smart alert advisories for farmer {farmer_id}")
            except Exception as e:
                log_error(e, "WeatherAdvisoryService.generate_for_farmer - Smart Alerts")
                logger.warning("Smart alert generation failed, continuing with weather advisories")

        return created

    async def generate_for_location(self, division: str, district: Optional[str] = None) -> int:
        """Generate advisories for every farmer in a division (and optionally district)."""
        area = f"{division}/{district}" if district else division
        logger.info(f"Generating weather advisories for location: {area}")

        farmers = await asyncio.to_thread(
            self.farmers.find_many, {"division": division, "district": district}
        )
        logger.info(f"Found {len(farmers)} farmers in {area}")

        total = 0
        for farmer in farmers:
            try:
                total += len(await self.generate_for_farmer(farmer.farmer_id))
            except Exception as e:
                log_error(e, f"WeatherAdvisoryService.generate_for_location - Farmer {farmer.farmer_id}")

        logger.info(f"Generated {total} total advisories for {len(farmers)} farmers in {area}")
        return total

    async def generate_for_all_farmers(self) -> int:
        """
        Generate advisories for all farmers, a fixed-size group at a time.

        Farmers in a group run concurrently; one farmer's failure never
        stops the rest of its group or later groups.

        Returns:
            Total advisories created
        """
        logger.info("Generating weather advisories for all farmers")
        farmers = await asyncio.to_thread(self.farmers.find_many, {})
        logger.info(f"Found {len(farmers)} total farmers")

        batch_size = self.settings.batch_size
        batch_count = (len(farmers) + batch_size - 1) // batch_size
        total = 0

        for start in range(0, len(farmers), batch_size):
            batch = farmers[start:start + batch_size]
            results = await asyncio.gather(
                *(self.generate_for_farmer(farmer.farmer_id) for farmer in batch),
                return_exceptions=True,
            )
            for farmer, result in zip(batch, results):
                if isinstance(result, BaseException):
                    log_error(result, f"WeatherAdvisoryService.generate_for_all_farmers - Farmer {farmer.farmer_id}")
                else:
                    total += len(result)

            logger.info(f"Processed batch {start // batch_size + 1}/{batch_count}")

        logger.info(f"Generated {total} total advisories for {len(farmers)} farmers")
        return total
