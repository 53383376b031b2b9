"""
Location Utilities
==================

Coordinate validation, rounding and cache-key generation for the weather
cache, plus division/district lookup for farmer profiles.

Rounding to 2 decimal places groups observations on a ~1km grid so that
nearby farmers share one cached weather snapshot.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from ..config import DEFAULT_LOCATION, SERVICE_BOUNDS, GeoBounds
from .bangladesh_locations import DISTRICT_COORDINATES
from .logger import get_logger

logger = get_logger(__name__)

Coordinates = Tuple[float, float]

EARTH_RADIUS_M = 6371000.0


def is_within_bounds(lat: float, lon: float, bounds: GeoBounds = SERVICE_BOUNDS) -> bool:
    """Check whether coordinates fall inside the service bounding box."""
    return bounds.contains(lat, lon)


def validate_and_sanitize_coordinates(
    lat,
    lon,
    bounds: GeoBounds = SERVICE_BOUNDS,
    default: Coordinates = DEFAULT_LOCATION,
) -> Coordinates:
    """
    Validate coordinates, substituting the default location for bad input.

    Invalid input is never an error: non-numeric, NaN or out-of-bounds
    coordinates are replaced with ``default`` and the substitution is logged.

    Returns:
        (latitude, longitude)
    """
    try:
        lat_f = float(lat)
        lon_f = float(lon)
    except (TypeError, ValueError):
        logger.warning(f"Invalid coordinate format ({lat!r}, {lon!r}), using default location {default}")
        return default

    if math.isnan(lat_f) or math.isnan(lon_f) or math.isinf(lat_f) or math.isinf(lon_f):
        logger.warning(f"Non-finite coordinates ({lat}, {lon}), using default location {default}")
        return default

    if not is_within_bounds(lat_f, lon_f, bounds):
        logger.warning(
            f"Coordinates ({lat_f}, {lon_f}) are outside service bounds, using default location {default}"
        )
        return default

    return lat_f, lon_f


def _round_half_up(value: float, decimals: int) -> float:
    # Decimal(repr(...)) keeps 23.805 from becoming 2380.4999... when scaled
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def round_coordinates(lat: float, lon: float, decimals: int = 2) -> Coordinates:
    """
    Round coordinates for cache-key generation.

    Idempotent: rounding already-rounded coordinates returns them unchanged.
    """
    return _round_half_up(lat, decimals), _round_half_up(lon, decimals)


def cache_key(lat: float, lon: float, decimals: int = 2) -> str:
    """Build the cache key for already-rounded coordinates, e.g. ``"23.81,90.41"``."""
    return f"{lat:.{decimals}f},{lon:.{decimals}f}"


def generate_location_cache_key(lat: float, lon: float, decimals: int = 2) -> str:
    """Round raw coordinates and build their cache key."""
    rounded_lat, rounded_lon = round_coordinates(lat, lon, decimals)
    return cache_key(rounded_lat, rounded_lon, decimals)


def parse_cache_key(key: str) -> Coordinates:
    """Recover rounded coordinates from a cache key."""
    lat_str, lon_str = key.split(",", 1)
    return float(lat_str), float(lon_str)


def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


def get_coordinates_for_location(
    division: Optional[str],
    district: Optional[str],
    default: Coordinates = DEFAULT_LOCATION,
) -> Coordinates:
    """
    Look up district headquarters coordinates.

    Falls back to the default location when the division or district is unknown.
    """
    normalized_division = (division or "").strip()
    normalized_district = (district or "").strip()

    division_data = DISTRICT_COORDINATES.get(normalized_division)
    if not division_data:
        logger.warning(f"Division '{normalized_division}' not found, using default location")
        return default

    coords = division_data.get(normalized_district)
    if not coords:
        logger.warning(
            f"District '{normalized_district}' not found in division '{normalized_division}', "
            f"using default location"
        )
        return default

    return coords


def get_available_divisions():
    return list(DISTRICT_COORDINATES.keys())


def get_districts_for_division(division: str):
    return list(DISTRICT_COORDINATES.get(division, {}).keys())
