"""
Crop Batch Directory
====================

Crop batches stored under ``FARMER#<farmer_id> / CROP#<crop_id>`` so one
query returns every batch a farmer owns.
"""

from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from ..models import CropBatch, CropStage, StorageMethod, utcnow
from .base import DynamoRepository, from_iso, to_dynamo
from .farmers import FARMER_PREFIX

CROP_PREFIX = "CROP#"


def crop_to_item(crop: CropBatch) -> Dict[str, Any]:
    return to_dynamo({
        "pk": f"{FARMER_PREFIX}{crop.farmer_id}",
        "sk": f"{CROP_PREFIX}{crop.crop_id}",
        "crop_id": crop.crop_id,
        "farmer_id": crop.farmer_id,
        "crop_type": crop.crop_type,
        "stage": crop.stage,
        "expected_harvest_date": crop.expected_harvest_date,
        "storage_location": crop.storage_location,
        "storage_division": crop.storage_division,
        "storage_district": crop.storage_district,
        "entered_date": crop.entered_date,
    })


def item_to_crop(item: Dict[str, Any]) -> CropBatch:
    storage = item.get("storage_location")
    return CropBatch(
        crop_id=item["crop_id"],
        farmer_id=item["farmer_id"],
        crop_type=item.get("crop_type", ""),
        stage=CropStage(item["stage"]),
        expected_harvest_date=from_iso(item.get("expected_harvest_date")),
        storage_location=StorageMethod(storage) if storage else None,
        storage_division=item.get("storage_division"),
        storage_district=item.get("storage_district"),
        entered_date=from_iso(item.get("entered_date")) or utcnow(),
    )


class CropBatchesRepository(DynamoRepository):
    """Read/write access to crop batches."""

    def save(self, crop: CropBatch) -> CropBatch:
        try:
            self.table.put_item(Item=crop_to_item(crop))
            return crop
        except ClientError as e:
            raise self._handle(e, "save") from e

    def find_by_farmer_id(self, farmer_id: str, stage: Optional[CropStage] = None) -> List[CropBatch]:
        kwargs: Dict[str, Any] = {
            "KeyConditionExpression": Key("pk").eq(f"{FARMER_PREFIX}{farmer_id}")
            & Key("sk").begins_with(CROP_PREFIX),
        }
        if stage is not None:
            kwargs["FilterExpression"] = Attr("stage").eq(CropStage(stage).value)

        try:
            return [item_to_crop(item) for item in self._query_all(**kwargs)]
        except ClientError as e:
            raise self._handle(e, "find_by_farmer_id") from e
