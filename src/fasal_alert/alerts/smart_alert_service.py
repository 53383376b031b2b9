"""
Smart Alert Service
===================

Evaluates every crop batch a farmer owns against current weather and
turns non-Low risks into Bangla advisories. Critical alerts also go out
over the SMS side-channel.
"""

import asyncio
from typing import List, Optional

from ..models import (
    Advisory,
    AdvisorySource,
    CropBatch,
    CropContext,
    CropStage,
    RiskLevel,
    SmartAlert,
    StorageInfo,
    WeatherConditions,
    utcnow,
)
from ..utils.errors import log_error
from ..utils.logger import get_logger
from .message_formatter import format_advisory
from .risk_calculator import assess_risk

logger = get_logger(__name__)


class SmartAlertService:
    """Per-crop risk alerts for a farmer."""

    def __init__(self, crop_batches, farmers, advisory_service, notifier):
        self.crop_batches = crop_batches
        self.farmers = farmers
        self.advisory_service = advisory_service
        self.notifier = notifier

    async def generate_alerts_for_farmer(self, farmer_id: str, weather: WeatherConditions) -> List[SmartAlert]:
        """
        Build alerts for all of a farmer's crops.

        A failure while evaluating one crop is logged and that crop is
        skipped; the rest are still evaluated. Low risk produces no alert.
        """
        logger.info(f"Generating smart alerts for farmer {farmer_id}")
        crops = await asyncio.to_thread(self.crop_batches.find_by_farmer_id, farmer_id)

        if not crops:
            logger.info(f"No crop batches found for farmer {farmer_id}")
            return []

        logger.info(f"Found {len(crops)} crop batches to evaluate")

        alerts: List[SmartAlert] = []
        for crop in crops:
            try:
                alert = self.generate_alert_for_crop(crop, weather)
            except Exception as e:
                log_error(e, f"SmartAlertService.generate_alert_for_crop - Crop {crop.crop_id}")
                continue
            if alert:
                alerts.append(alert)

        logger.info(f"Generated {len(alerts)} smart alerts for farmer {farmer_id}")
        return alerts

    def generate_alert_for_crop(self, crop: CropBatch, weather: WeatherConditions) -> Optional[SmartAlert]:
        context = CropContext.from_batch(crop)
        assessment = assess_risk(weather, context)

        if assessment.level == RiskLevel.LOW:
            logger.info(f"Skipping low risk alert for crop {crop.crop_id}")
            return None

        advisory = format_advisory(
            context, weather, assessment.level, crop.storage_division, crop.storage_district
        )

        storage_info = None
        if crop.stage == CropStage.HARVESTED and crop.storage_location:
            storage_info = StorageInfo(
                location=crop.storage_location.value,
                division=crop.storage_division or "",
                district=crop.storage_district or "",
            )

        logger.info(f"Generated {assessment.level.value} risk alert for crop {crop.crop_id}")
        return SmartAlert(
            farmer_id=crop.farmer_id,
            crop_id=crop.crop_id,
            crop_type=crop.crop_type,
            stage=crop.stage,
            risk_level=assessment.level,
            message=advisory.message,
            actions=advisory.actions,
            weather_conditions=weather,
            storage_info=storage_info,
            generated_at=utcnow(),
        )

    async def store_alerts_as_advisories(self, alerts: List[SmartAlert]) -> List[Advisory]:
        """Persist alerts as weather advisories; SMS the farmer for Critical ones."""
        stored: List[Advisory] = []
        for alert in alerts:
            advisory = await asyncio.to_thread(
                self.advisory_service.create_farmer_advisory,
                alert.farmer_id,
                AdvisorySource.WEATHER,
                alert.message,
                alert.actions,
                alert.crop_id,
                alert.risk_level,
                alert.weather_conditions,
                alert.storage_info,
            )
            stored.append(advisory)

            if alert.risk_level == RiskLevel.CRITICAL:
                await self.send_critical_alert_sms(alert)

        logger.info(f"Stored {len(stored)} smart alert advisories")
        return stored

    async def send_critical_alert_sms(self, alert: SmartAlert) -> None:
        try:
            farmer = await asyncio.to_thread(self.farmers.find_by_id, alert.farmer_id)
            if not farmer:
                logger.warning(f"Farmer not found for SMS: {alert.farmer_id}")
                return

            self.notifier.notify(farmer.phone, alert.message, alert.generated_at)
            logger.info(f"SMS simulated for farmer {alert.farmer_id}")
        except Exception as e:
            log_error(e, "SmartAlertService.send_critical_alert_sms")
