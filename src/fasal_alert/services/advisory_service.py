"""
Advisory Service
================

Validates and persists advisories for a single farmer or as a broadcast.
"""

from typing import Iterable, List, Optional

from ..models import (
    Advisory,
    AdvisorySource,
    BroadcastAudience,
    FarmerAudience,
    RiskLevel,
    StorageInfo,
    WeatherConditions,
)
from ..utils.errors import ValidationError
from ..utils.logger import get_logger

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 5000
MAX_ACTIONS = 20


def validate_message(message: str) -> str:
    if not isinstance(message, str) or not message.strip():
        raise ValidationError("Advisory message must be a non-empty string")
    if len(message) > MAX_MESSAGE_LENGTH:
        raise ValidationError(
            f"Advisory message must not exceed {MAX_MESSAGE_LENGTH} characters",
            {"length": len(message)},
        )
    return message


def validate_source(source) -> AdvisorySource:
    try:
        return AdvisorySource(source)
    except ValueError as e:
        raise ValidationError(
            f"Invalid advisory source: {source}",
            {"allowed": [s.value for s in AdvisorySource]},
        ) from e


def validate_actions(actions: Optional[Iterable[str]]) -> List[str]:
    actions = list(actions or [])
    if len(actions) > MAX_ACTIONS:
        raise ValidationError(f"At most {MAX_ACTIONS} actions are allowed", {"count": len(actions)})
    for action in actions:
        if not isinstance(action, str) or not action.strip():
            raise ValidationError("Actions must be non-empty strings")
    return actions


class AdvisoryService:
    """Creates advisories in the advisory store."""

    def __init__(self, advisories):
        self.advisories = advisories

    def create_farmer_advisory(
        self,
        farmer_id: str,
        source,
        message: str,
        actions: Optional[Iterable[str]] = None,
        crop_id: Optional[str] = None,
        risk_level: Optional[RiskLevel] = None,
        weather_conditions: Optional[WeatherConditions] = None,
        storage_info: Optional[StorageInfo] = None,
    ) -> Advisory:
        if not farmer_id:
            raise ValidationError("farmer_id is required for a farmer advisory")

        advisory = Advisory(
            audience=FarmerAudience(farmer_id),
            source=validate_source(source),
            message=validate_message(message),
            actions=validate_actions(actions),
            crop_id=crop_id,
            risk_level=risk_level,
            weather_conditions=weather_conditions,
            storage_info=storage_info,
        )
        return self.deliver_advisory(advisory)

    def create_broadcast_advisory(
        self,
        source,
        message: str,
        actions: Optional[Iterable[str]] = None,
    ) -> Advisory:
        advisory = Advisory(
            audience=BroadcastAudience(),
            source=validate_source(source),
            message=validate_message(message),
            actions=validate_actions(actions),
        )
        return self.deliver_advisory(advisory)

    def deliver_advisory(self, advisory: Advisory) -> Advisory:
        """Persist an advisory and mark it delivered."""
        advisory.status = "delivered"
        saved = self.advisories.create(advisory)
        target = f"farmer {advisory.farmer_id}" if advisory.farmer_id else "broadcast"
        logger.info(f"Delivered {advisory.source.value} advisory {advisory.advisory_id} to {target}")
        return saved
