"""
Unit tests for the risk calculator
"""

import itertools

import pytest

from fasal_alert.alerts.risk_calculator import (
    assess_risk,
    calculate_risk_score,
    determine_overall_risk,
    factor_points,
    score_to_risk_level,
)
from fasal_alert.models import (
    CropContext,
    CropStage,
    RiskAssessment,
    RiskLevel,
    StorageMethod,
    WeatherConditions,
)


def weather(temperature=25.0, humidity=50.0, rainfall=0.0, wind_speed=0.0):
    return WeatherConditions(
        temperature=temperature, humidity=humidity, rainfall=rainfall, wind_speed=wind_speed
    )


GROWING = CropContext(crop_type="ধান", stage=CropStage.GROWING)


def stored(method):
    return CropContext(crop_type="ধান", stage=CropStage.HARVESTED, storage_method=method)


class TestRiskScore:
    """Score calculation."""

    def test_scenario_growing_medium(self):
        """39°C / 85% humidity / 10mm / 5 m/s on a growing crop scores 45 (Medium)."""
        w = weather(temperature=39, humidity=85, rainfall=10, wind_speed=5)

        assessment = assess_risk(w, GROWING)

        assert assessment.score == 45
        assert assessment.level == RiskLevel.MEDIUM

    def test_scenario_open_storage_critical(self):
        """Maximum readings in open storage clamp to 100 (Critical)."""
        w = weather(temperature=43, humidity=95, rainfall=160, wind_speed=25)

        assessment = assess_risk(w, stored(StorageMethod.OPEN_SPACE))

        assert assessment.score == 100
        assert assessment.level == RiskLevel.CRITICAL

    def test_thresholds_are_strict(self):
        """A reading equal to a threshold falls into the bucket below."""
        assert factor_points("humidity", 90) == 25
        assert factor_points("humidity", 90.1) == 35
        assert factor_points("temperature", 30) == 0
        assert factor_points("rainfall", 20) == 0
        assert factor_points("rainfall", 20.5) == 5

    def test_wind_lowest_bucket_scores_zero(self):
        """Wind between 5 and 10 m/s contributes nothing."""
        assert factor_points("wind", 7) == 0
        assert factor_points("wind", 10.5) == 4

    def test_storage_multiplier_applies_to_harvested_only(self):
        """The vulnerability multiplier scales harvested crops, not growing ones."""
        w = weather(temperature=36, humidity=75)  # 12 + 15 = 27

        assert calculate_risk_score(w, GROWING) == 27
        assert calculate_risk_score(w, stored(StorageMethod.SILO)) == 27
        assert calculate_risk_score(w, stored(StorageMethod.TIN_SHED)) == 30  # 29.7
        assert calculate_risk_score(w, stored(StorageMethod.JUTE_BAG)) == 32  # 32.4
        assert calculate_risk_score(w, stored(StorageMethod.OPEN_SPACE)) == 41  # 40.5 half-up

    def test_harvested_without_storage_is_unscaled(self):
        """A harvested crop with no storage method uses multiplier 1.0."""
        w = weather(temperature=36, humidity=75)
        crop = CropContext(crop_type="গম", stage=CropStage.HARVESTED)

        assert calculate_risk_score(w, crop) == 27

    @pytest.mark.parametrize("score,level", [
        (0, RiskLevel.LOW),
        (39, RiskLevel.LOW),
        (40, RiskLevel.MEDIUM),
        (59, RiskLevel.MEDIUM),
        (60, RiskLevel.HIGH),
        (79, RiskLevel.HIGH),
        (80, RiskLevel.CRITICAL),
        (100, RiskLevel.CRITICAL),
    ])
    def test_score_to_risk_level(self, score, level):
        """Level boundaries sit at 40, 60 and 80."""
        assert score_to_risk_level(score) == level

    def test_score_always_clamped(self):
        """Scores stay within [0, 100] across the reading grid and storage methods."""
        readings = [0, 25, 61, 71, 81, 91, 160]
        crops = [GROWING] + [stored(m) for m in StorageMethod]
        for t, h, r, w in itertools.product(readings, repeat=4):
            for crop in crops:
                score = calculate_risk_score(weather(t, h, r, w), crop)
                assert 0 <= score <= 100

    def test_deterministic(self):
        """Identical inputs give identical score, level and primary threat."""
        w = weather(temperature=37, humidity=88, rainfall=60, wind_speed=12)
        crop = stored(StorageMethod.JUTE_BAG)

        first = assess_risk(w, crop)
        second = assess_risk(w, crop)

        assert first == second
        assert first.primary_threat == second.primary_threat


class TestRiskFactors:
    """Factor list and primary threat."""

    def test_one_factor_per_contributor(self):
        """Only non-zero contributors appear, with severity relative to their max."""
        assessment = assess_risk(weather(temperature=39, humidity=85, rainfall=10, wind_speed=5), GROWING)

        severities = {f.type: f.severity for f in assessment.factors}
        assert severities == {"humidity": 71, "temperature": 67}

    def test_primary_threat_is_highest_severity(self):
        """The primary threat is the factor with the highest severity."""
        assessment = assess_risk(weather(temperature=31, humidity=95), GROWING)

        assert assessment.primary_threat.type == "humidity"
        assert assessment.primary_threat.severity == 100

    def test_primary_threat_tie_keeps_first(self):
        """On equal severity the earlier factor wins."""
        assessment = assess_risk(weather(temperature=43, humidity=95), GROWING)

        assert [f.type for f in assessment.factors][:2] == ["humidity", "temperature"]
        assert assessment.primary_threat.type == "humidity"

    def test_no_factors_means_no_primary_threat(self):
        """Benign weather has no factors."""
        assessment = assess_risk(weather(), GROWING)

        assert assessment.factors == []
        assert assessment.primary_threat is None
        assert assessment.level == RiskLevel.LOW

    def test_storage_factor(self):
        """Vulnerable storage adds a storage factor."""
        assessment = assess_risk(weather(humidity=65), stored(StorageMethod.OPEN_SPACE))

        storage = [f for f in assessment.factors if f.type == "storage"]
        assert len(storage) == 1
        assert storage[0].severity == 50

    def test_silo_has_no_storage_factor(self):
        """Silo storage is the baseline and adds no factor."""
        assessment = assess_risk(weather(humidity=65), stored(StorageMethod.SILO))

        assert all(f.type != "storage" for f in assessment.factors)

    @pytest.mark.parametrize("days,expected", [(0, True), (3, True), (7, True), (8, False), (None, False)])
    def test_harvest_timing_factor(self, days, expected):
        """Growing crops within 7 days of harvest get a harvest-timing factor."""
        crop = CropContext(crop_type="ধান", stage=CropStage.GROWING, days_until_harvest=days)

        assessment = assess_risk(weather(), crop)

        timing = [f for f in assessment.factors if f.type == "harvest_timing"]
        assert bool(timing) == expected
        if expected:
            assert timing[0].severity == 50
            # weather-independent: score is unchanged
            assert assessment.score == 0


class TestOverallRisk:
    """Aggregating several assessments."""

    def test_highest_level_wins(self):
        """The overall level is the highest individual level."""
        assessments = [
            RiskAssessment(score=45, level=RiskLevel.MEDIUM, factors=[]),
            RiskAssessment(score=85, level=RiskLevel.CRITICAL, factors=[]),
            RiskAssessment(score=10, level=RiskLevel.LOW, factors=[]),
        ]

        assert determine_overall_risk(assessments) == RiskLevel.CRITICAL

    def test_empty_is_low(self):
        """No assessments means Low."""
        assert determine_overall_risk([]) == RiskLevel.LOW
