"""
DynamoDB Access
===============

Shared table access and item conversion for the single-table store.

Key layout (pk / sk):
- WEATHER#<lat>,<lon> / <fetched_at>         weather snapshots
- FARMER#<farmer_id>  / PROFILE              farmer profiles
- FARMER#<farmer_id>  / CROP#<crop_id>       crop batches
- FARMER#<farmer_id>  / ADVISORY#<ts>#<id>   farmer advisories
- BROADCAST           / ADVISORY#<ts>#<id>   broadcast advisories
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterator, Optional

import boto3
from botocore.exceptions import ClientError

from ..config import config
from ..utils.errors import DatabaseError
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Cache for DynamoDB resource
_dynamodb_resource = None


def _get_dynamodb():
    """Get or create DynamoDB resource."""
    global _dynamodb_resource
    if _dynamodb_resource is None:
        _dynamodb_resource = boto3.resource("dynamodb", region_name=config.aws_region)
    return _dynamodb_resource


def get_table(table_name: Optional[str] = None):
    """Get DynamoDB table."""
    return _get_dynamodb().Table(table_name or config.table_name)


def to_dynamo(value: Any) -> Any:
    """Convert Python values into types boto3 accepts."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [to_dynamo(v) for v in value]
    return value


def to_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    return float(value)


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def epoch_seconds(value: datetime) -> int:
    return int(value.timestamp())


class DynamoRepository:
    """Base class for stores backed by the shared table."""

    def __init__(self, table=None):
        self._table = table

    @property
    def table(self):
        if self._table is None:
            self._table = get_table()
        return self._table

    def _handle(self, error: ClientError, operation: str) -> DatabaseError:
        code = error.response.get("Error", {}).get("Code", "Unknown")
        logger.error(f"DynamoDB error in {type(self).__name__}.{operation}: {code} {error}")
        return DatabaseError(f"Database operation failed: {operation}", {"code": code})

    def _query_all(self, **kwargs) -> Iterator[Dict[str, Any]]:
        """Run a query, following pagination."""
        while True:
            response = self.table.query(**kwargs)
            yield from response.get("Items", [])
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return
            kwargs["ExclusiveStartKey"] = last_key

    def _scan_all(self, **kwargs) -> Iterator[Dict[str, Any]]:
        """Run a scan, following pagination."""
        while True:
            response = self.table.scan(**kwargs)
            yield from response.get("Items", [])
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return
            kwargs["ExclusiveStartKey"] = last_key
