"""
Advisory Store
==============

Advisories stored under ``FARMER#<farmer_id>`` (or ``BROADCAST``) with sort
key ``ADVISORY#<created_at>#<advisory_id>``, so recent advisories for a
farmer are a single range query.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from ..models import (
    Advisory,
    AdvisorySource,
    BroadcastAudience,
    FarmerAudience,
    RiskLevel,
    StorageInfo,
    WeatherConditions,
    utcnow,
)
from ..utils.logger import get_logger
from .base import DynamoRepository, from_iso, to_dynamo, to_float, to_iso
from .farmers import FARMER_PREFIX

logger = get_logger(__name__)

BROADCAST_PK = "BROADCAST"
ADVISORY_PREFIX = "ADVISORY#"
# Sorts after any ISO timestamp
ADVISORY_UPPER = f"{ADVISORY_PREFIX}~"


def _partition(advisory: Advisory) -> str:
    if isinstance(advisory.audience, FarmerAudience):
        return f"{FARMER_PREFIX}{advisory.audience.farmer_id}"
    return BROADCAST_PK


def advisory_to_item(advisory: Advisory) -> Dict[str, Any]:
    created = to_iso(advisory.created_at)
    item: Dict[str, Any] = {
        "pk": _partition(advisory),
        "sk": f"{ADVISORY_PREFIX}{created}#{advisory.advisory_id}",
        "advisory_id": advisory.advisory_id,
        "audience": "farmer" if advisory.farmer_id else "broadcast",
        "farmer_id": advisory.farmer_id,
        "source": advisory.source,
        "message": advisory.message,
        "actions": list(advisory.actions),
        "status": advisory.status,
        "created_at": created,
        "crop_id": advisory.crop_id,
        "risk_level": advisory.risk_level,
    }
    if advisory.weather_conditions is not None:
        item["weather_conditions"] = advisory.weather_conditions.to_dict()
    if advisory.storage_info is not None:
        item["storage_info"] = {
            "location": advisory.storage_info.location,
            "division": advisory.storage_info.division,
            "district": advisory.storage_info.district,
        }
    return to_dynamo(item)


def item_to_advisory(item: Dict[str, Any]) -> Advisory:
    farmer_id = item.get("farmer_id")
    audience = FarmerAudience(farmer_id) if farmer_id else BroadcastAudience()

    weather = item.get("weather_conditions")
    storage = item.get("storage_info")
    risk_level = item.get("risk_level")

    return Advisory(
        audience=audience,
        source=AdvisorySource(item["source"]),
        message=item.get("message", ""),
        actions=list(item.get("actions", [])),
        advisory_id=item["advisory_id"],
        status=item.get("status", "delivered"),
        created_at=from_iso(item["created_at"]),
        crop_id=item.get("crop_id"),
        risk_level=RiskLevel(risk_level) if risk_level else None,
        weather_conditions=WeatherConditions(
            temperature=to_float(weather.get("temperature")),
            humidity=to_float(weather.get("humidity")),
            rainfall=to_float(weather.get("rainfall")),
            wind_speed=to_float(weather.get("wind_speed")),
        ) if weather else None,
        storage_info=StorageInfo(**storage) if storage else None,
    )


class AdvisoriesRepository(DynamoRepository):
    """Persistence for farmer and broadcast advisories."""

    def create(self, advisory: Advisory) -> Advisory:
        try:
            self.table.put_item(Item=advisory_to_item(advisory))
        except ClientError as e:
            raise self._handle(e, "create") from e

        logger.info(f"Created advisory {advisory.advisory_id} ({advisory.source.value}) for {_partition(advisory)}")
        return advisory

    def find_by_farmer_id(self, farmer_id: str, limit: Optional[int] = None) -> List[Advisory]:
        """Advisories for a farmer, newest first."""
        kwargs: Dict[str, Any] = {
            "KeyConditionExpression": Key("pk").eq(f"{FARMER_PREFIX}{farmer_id}")
            & Key("sk").begins_with(ADVISORY_PREFIX),
            "ScanIndexForward": False,
        }
        try:
            advisories = [item_to_advisory(item) for item in self._query_all(**kwargs)]
        except ClientError as e:
            raise self._handle(e, "find_by_farmer_id") from e
        return advisories[:limit] if limit else advisories

    def find_recent_by_farmer_and_source(
        self,
        farmer_id: str,
        source: AdvisorySource,
        hours: int,
        now: Optional[datetime] = None,
    ) -> List[Advisory]:
        """Advisories of one source created for a farmer within the last ``hours``."""
        cutoff = (now or utcnow()) - timedelta(hours=hours)
        kwargs: Dict[str, Any] = {
            "KeyConditionExpression": Key("pk").eq(f"{FARMER_PREFIX}{farmer_id}")
            & Key("sk").between(f"{ADVISORY_PREFIX}{to_iso(cutoff)}", ADVISORY_UPPER),
            "FilterExpression": Attr("source").eq(AdvisorySource(source).value),
            "ScanIndexForward": False,
        }
        try:
            return [item_to_advisory(item) for item in self._query_all(**kwargs)]
        except ClientError as e:
            raise self._handle(e, "find_recent_by_farmer_and_source") from e
