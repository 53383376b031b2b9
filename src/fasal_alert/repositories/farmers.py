"""
Farmer Directory
================

Farmer profiles stored under ``FARMER#<farmer_id> / PROFILE``.
"""

from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from ..models import Farmer
from ..utils.logger import get_logger
from .base import DynamoRepository, to_dynamo, to_float

logger = get_logger(__name__)

FARMER_PREFIX = "FARMER#"
PROFILE_SK = "PROFILE"


def farmer_to_item(farmer: Farmer) -> Dict[str, Any]:
    return to_dynamo({
        "pk": f"{FARMER_PREFIX}{farmer.farmer_id}",
        "sk": PROFILE_SK,
        "farmer_id": farmer.farmer_id,
        "name": farmer.name,
        "phone": farmer.phone,
        "division": farmer.division,
        "district": farmer.district,
        "upazila": farmer.upazila,
        "latitude": farmer.latitude,
        "longitude": farmer.longitude,
        "language": farmer.language,
    })


def item_to_farmer(item: Dict[str, Any]) -> Farmer:
    latitude = item.get("latitude")
    longitude = item.get("longitude")
    return Farmer(
        farmer_id=item["farmer_id"],
        name=item.get("name", ""),
        phone=item.get("phone", ""),
        division=item.get("division", ""),
        district=item.get("district", ""),
        upazila=item.get("upazila"),
        latitude=to_float(latitude) if latitude is not None else None,
        longitude=to_float(longitude) if longitude is not None else None,
        language=item.get("language", "bn"),
    )


class FarmersRepository(DynamoRepository):
    """Read/write access to farmer profiles."""

    def save(self, farmer: Farmer) -> Farmer:
        try:
            self.table.put_item(Item=farmer_to_item(farmer))
            return farmer
        except ClientError as e:
            raise self._handle(e, "save") from e

    def find_by_id(self, farmer_id: str) -> Optional[Farmer]:
        try:
            response = self.table.get_item(Key={"pk": f"{FARMER_PREFIX}{farmer_id}", "sk": PROFILE_SK})
        except ClientError as e:
            raise self._handle(e, "find_by_id") from e

        item = response.get("Item")
        return item_to_farmer(item) if item else None

    def find_many(self, filter: Optional[Dict[str, Any]] = None) -> List[Farmer]:
        """
        List farmers, optionally filtered by exact attribute matches
        (e.g. ``{"division": "Dhaka", "district": "Gazipur"}``).
        """
        expression = Attr("sk").eq(PROFILE_SK) & Attr("pk").begins_with(FARMER_PREFIX)
        for name, value in (filter or {}).items():
            if value is not None:
                expression = expression & Attr(name).eq(value)

        try:
            farmers = [item_to_farmer(item) for item in self._scan_all(FilterExpression=expression)]
        except ClientError as e:
            raise self._handle(e, "find_many") from e

        logger.info(f"Found {len(farmers)} farmers matching {filter or {}}")
        return farmers
