"""
Risk Calculator
===============

Maps current weather and crop state to a 0-100 risk score, a coarse risk
level and the list of factors that produced it.

Each weather factor contributes points from a stepped scale, taking the
first (highest) threshold the reading exceeds. Harvested crops have the
sum scaled by their storage vulnerability multiplier before clamping.
"""

import math
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import (
    CropContext,
    CropStage,
    RiskAssessment,
    RiskFactor,
    RiskLevel,
    WeatherConditions,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Thresholds per factor, highest first: critical, high, medium, low
RISK_THRESHOLDS: Dict[str, Tuple[float, float, float, float]] = {
    "humidity": (90, 80, 70, 60),
    "temperature": (42, 38, 35, 30),
    "rainfall": (150, 100, 50, 20),
    "wind": (20, 15, 10, 5),
}

# Points awarded for the matching bucket, same order as the thresholds
RISK_POINTS: Dict[str, Tuple[int, int, int, int]] = {
    "humidity": (35, 25, 15, 8),
    "temperature": (30, 20, 12, 7),
    "rainfall": (25, 18, 10, 5),
    "wind": (10, 7, 4, 0),
}

LEVEL_BOUNDARIES = (
    (80, RiskLevel.CRITICAL),
    (60, RiskLevel.HIGH),
    (40, RiskLevel.MEDIUM),
)

HARVEST_WINDOW_DAYS = 7
HARVEST_TIMING_SEVERITY = 50

_DESCRIPTIONS = {
    CropStage.HARVESTED: {
        "humidity": "High humidity ({value}%) increases mold and spoilage risk",
        "temperature": "High temperature ({value}°C) accelerates deterioration",
        "rainfall": "Heavy rainfall ({value}mm) threatens stored crops",
        "wind": "Strong winds ({value} m/s) may expose stored crops",
    },
    CropStage.GROWING: {
        "humidity": "High humidity ({value}%) raises disease risk",
        "temperature": "High temperature ({value}°C) may stress crops",
        "rainfall": "Heavy rainfall ({value}mm) may cause waterlogging and crop damage",
        "wind": "Strong winds ({value} m/s) may damage crops",
    },
}


def _reading(weather: WeatherConditions, factor: str) -> float:
    if factor == "wind":
        return weather.wind_speed
    return getattr(weather, factor)


def factor_points(factor: str, value: float) -> int:
    """Points contributed by one factor's reading."""
    for threshold, points in zip(RISK_THRESHOLDS[factor], RISK_POINTS[factor]):
        if value > threshold:
            return points
    return 0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def storage_multiplier(crop: CropContext) -> float:
    if crop.stage == CropStage.HARVESTED and crop.storage_method is not None:
        return crop.storage_method.vulnerability
    return 1.0


def calculate_risk_score(weather: WeatherConditions, crop: CropContext) -> int:
    """
    Calculate the 0-100 risk score.

    Args:
        weather: Readings the score is based on
        crop: Crop stage and storage

    Returns:
        Integer score, clamped to [0, 100]
    """
    raw = sum(factor_points(factor, _reading(weather, factor)) for factor in RISK_THRESHOLDS)
    scaled = raw * storage_multiplier(crop)
    return _round_half_up(min(100.0, max(0.0, scaled)))


def score_to_risk_level(score: int) -> RiskLevel:
    for boundary, level in LEVEL_BOUNDARIES:
        if score >= boundary:
            return level
    return RiskLevel.LOW


def build_risk_factors(weather: WeatherConditions, crop: CropContext) -> List[RiskFactor]:
    """One factor per non-zero contributor plus storage and harvest-timing factors."""
    factors: List[RiskFactor] = []
    descriptions = _DESCRIPTIONS[CropStage(crop.stage)]

    for factor in RISK_THRESHOLDS:
        value = _reading(weather, factor)
        points = factor_points(factor, value)
        if points > 0:
            factors.append(RiskFactor(
                type=factor,
                severity=_round_half_up(points / max(RISK_POINTS[factor]) * 100),
                description=descriptions[factor].format(value=value),
            ))

    multiplier = storage_multiplier(crop)
    if multiplier > 1.0:
        factors.append(RiskFactor(
            type="storage",
            severity=_round_half_up((multiplier - 1.0) * 100),
            description=f"Storage type '{crop.storage_method.value}' is vulnerable to weather conditions",
        ))

    days = crop.days_until_harvest
    if crop.stage == CropStage.GROWING and days is not None and 0 <= days <= HARVEST_WINDOW_DAYS:
        factors.append(RiskFactor(
            type="harvest_timing",
            severity=HARVEST_TIMING_SEVERITY,
            description=f"Harvest expected in {days} days, weather conditions are critical",
        ))

    return factors


def assess_risk(weather: WeatherConditions, crop: CropContext) -> RiskAssessment:
    """Score a crop against current weather."""
    score = calculate_risk_score(weather, crop)
    assessment = RiskAssessment(
        score=score,
        level=score_to_risk_level(score),
        factors=build_risk_factors(weather, crop),
    )

    primary = assessment.primary_threat
    logger.info(
        f"Risk assessment for {crop.crop_type} ({CropStage(crop.stage).value}): "
        f"score={assessment.score} level={assessment.level.value} "
        f"factors={[(f.type, f.severity) for f in assessment.factors]} "
        f"primary={primary.description if primary else 'No significant risk'}"
    )
    return assessment


def determine_overall_risk(assessments: Iterable[RiskAssessment]) -> RiskLevel:
    """Highest risk level among assessments (Low when there are none)."""
    overall: Optional[RiskLevel] = None
    for assessment in assessments:
        if overall is None or assessment.level.rank > overall.rank:
            overall = assessment.level
    return overall or RiskLevel.LOW
