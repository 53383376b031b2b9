"""
Weather Snapshot Store
======================

DynamoDB-backed cache of weather observations.

Snapshots are partitioned by rounded-coordinate cache key and sorted by
``fetched_at``. A proximity lookup queries the 3x3 block of grid cells
around the requested point, keeps candidates within the radius and
returns the freshest one.

Items carry a DynamoDB ``ttl`` attribute set past ``expires_at`` by the
stale-retention window, so expired snapshots stay available as fallback
data for a while before DynamoDB evicts them.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from ..config import config
from ..models import CacheStatus, WeatherSnapshot, utcnow
from ..repositories.base import (
    DynamoRepository,
    epoch_seconds,
    from_iso,
    to_dynamo,
    to_float,
    to_iso,
)
from ..utils.location import cache_key, haversine_distance_m, round_coordinates
from ..utils.logger import get_logger

logger = get_logger(__name__)

WEATHER_PREFIX = "WEATHER#"


def snapshot_to_item(
    snapshot: WeatherSnapshot, retention_seconds: int = 0, precision: int = config.coordinate_precision
) -> Dict[str, Any]:
    """Serialize a snapshot to a DynamoDB item keyed at the given grid precision."""
    key = cache_key(snapshot.lat, snapshot.lon, precision)
    evict_at = snapshot.expires_at + timedelta(seconds=retention_seconds)
    return to_dynamo({
        "pk": f"{WEATHER_PREFIX}{key}",
        "sk": to_iso(snapshot.fetched_at),
        "cache_key": key,
        "lat": snapshot.lat,
        "lon": snapshot.lon,
        "temperature": snapshot.temperature,
        "feels_like": snapshot.feels_like,
        "humidity": snapshot.humidity,
        "pressure": snapshot.pressure,
        "wind_speed": snapshot.wind_speed,
        "wind_direction": snapshot.wind_direction,
        "rainfall": snapshot.rainfall,
        "condition": snapshot.condition,
        "description": snapshot.description,
        "icon": snapshot.icon,
        "visibility": snapshot.visibility,
        "cloudiness": snapshot.cloudiness,
        "sunrise": snapshot.sunrise,
        "sunset": snapshot.sunset,
        "fetched_at": snapshot.fetched_at,
        "expires_at": snapshot.expires_at,
        "source": snapshot.source,
        "api_call_count": snapshot.api_call_count,
        "ttl": epoch_seconds(evict_at),
    })


def item_to_snapshot(item: Dict[str, Any]) -> WeatherSnapshot:
    """Deserialize a DynamoDB item into a cached snapshot."""
    return WeatherSnapshot(
        lat=to_float(item["lat"]),
        lon=to_float(item["lon"]),
        temperature=to_float(item.get("temperature")),
        feels_like=to_float(item.get("feels_like")),
        humidity=to_float(item.get("humidity")),
        pressure=to_float(item.get("pressure")),
        wind_speed=to_float(item.get("wind_speed")),
        wind_direction=to_float(item.get("wind_direction")),
        rainfall=to_float(item.get("rainfall")),
        condition=item.get("condition", ""),
        description=item.get("description", ""),
        icon=item.get("icon", ""),
        visibility=to_float(item.get("visibility")),
        cloudiness=to_float(item.get("cloudiness")),
        sunrise=from_iso(item.get("sunrise")),
        sunset=from_iso(item.get("sunset")),
        fetched_at=from_iso(item["fetched_at"]),
        expires_at=from_iso(item["expires_at"]),
        source="cache",
        api_call_count=int(item.get("api_call_count", 1)),
        cache_status=CacheStatus.HIT,
    )


class WeatherSnapshotStore(DynamoRepository):
    """Weather cache with proximity + freshness lookup."""

    def __init__(
        self,
        table=None,
        radius_m: float = config.proximity_radius_m,
        retention_seconds: int = config.stale_lookback,
        precision: int = config.coordinate_precision,
    ):
        super().__init__(table)
        self.radius_m = radius_m
        self.retention_seconds = retention_seconds
        self.precision = precision

    def _neighbour_keys(self, lat: float, lon: float) -> List[str]:
        step = 10 ** -self.precision
        keys = []
        for d_lat in (-1, 0, 1):
            for d_lon in (-1, 0, 1):
                cell_lat, cell_lon = round_coordinates(lat + d_lat * step, lon + d_lon * step, self.precision)
                keys.append(cache_key(cell_lat, cell_lon, self.precision))
        return keys

    def save_snapshot(self, snapshot: WeatherSnapshot) -> WeatherSnapshot:
        """Persist a snapshot."""
        try:
            self.table.put_item(Item=snapshot_to_item(snapshot, self.retention_seconds, self.precision))
            logger.info(
                f"Saved weather snapshot {cache_key(snapshot.lat, snapshot.lon, self.precision)} "
                f"(expires {to_iso(snapshot.expires_at)})"
            )
            return snapshot
        except ClientError as e:
            raise self._handle(e, "save_snapshot") from e

    def find_by_location(
        self,
        lat: float,
        lon: float,
        max_age_seconds: int = 3600,
        include_expired: bool = False,
        now: Optional[datetime] = None,
    ) -> Optional[WeatherSnapshot]:
        """
        Find the freshest snapshot near a location.

        Args:
            lat: Latitude
            lon: Longitude
            max_age_seconds: Only consider snapshots fetched within this window
            include_expired: Also return snapshots past ``expires_at`` (stale fallback)
            now: Reference time (defaults to current UTC time)

        Returns:
            Freshest matching snapshot or None
        """
        now = now or utcnow()
        cutoff = now - timedelta(seconds=max_age_seconds)
        rounded_lat, rounded_lon = round_coordinates(lat, lon, self.precision)

        best: Optional[WeatherSnapshot] = None
        try:
            for key in self._neighbour_keys(rounded_lat, rounded_lon):
                items = self._query_all(
                    KeyConditionExpression=Key("pk").eq(f"{WEATHER_PREFIX}{key}") & Key("sk").gte(to_iso(cutoff)),
                    ScanIndexForward=False,
                )
                for item in items:
                    snapshot = item_to_snapshot(item)
                    if not include_expired and snapshot.is_expired(now):
                        continue
                    distance = haversine_distance_m(rounded_lat, rounded_lon, snapshot.lat, snapshot.lon)
                    if distance > self.radius_m:
                        continue
                    if best is None or snapshot.fetched_at > best.fetched_at:
                        best = snapshot
        except ClientError as e:
            raise self._handle(e, "find_by_location") from e

        return best

    def delete_expired(self, retain_seconds: int = 0, now: Optional[datetime] = None) -> int:
        """
        Delete snapshots whose ``expires_at`` passed more than ``retain_seconds`` ago.

        Returns:
            Number of deleted snapshots
        """
        now = now or utcnow()
        cutoff = now - timedelta(seconds=retain_seconds)
        deleted = 0
        try:
            items = list(self._scan_all(
                FilterExpression=Attr("pk").begins_with(WEATHER_PREFIX) & Attr("expires_at").lte(to_iso(cutoff)),
                ProjectionExpression="pk, sk",
            ))
            with self.table.batch_writer() as batch:
                for item in items:
                    batch.delete_item(Key={"pk": item["pk"], "sk": item["sk"]})
                    deleted += 1
        except ClientError as e:
            raise self._handle(e, "delete_expired") from e

        logger.info(f"Deleted {deleted} expired weather snapshots")
        return deleted

    def get_usage_stats(self, since: Optional[datetime] = None) -> Dict[str, Any]:
        """Upstream usage derived from stored snapshots (default: last 24 hours)."""
        since = since or (utcnow() - timedelta(hours=24))
        try:
            items = list(self._scan_all(
                FilterExpression=Attr("pk").begins_with(WEATHER_PREFIX) & Attr("fetched_at").gte(to_iso(since)),
                ProjectionExpression="fetched_at, api_call_count",
            ))
        except ClientError as e:
            raise self._handle(e, "get_usage_stats") from e

        fetched = sorted(item["fetched_at"] for item in items)
        return {
            "total_calls": sum(int(item.get("api_call_count", 1)) for item in items),
            "snapshot_count": len(items),
            "oldest_snapshot": from_iso(fetched[0]) if fetched else None,
            "newest_snapshot": from_iso(fetched[-1]) if fetched else None,
        }
