"""
Unit tests for advisory scheduling per farmer, per location and in batches
"""

import asyncio
from unittest.mock import patch

import pytest

from fasal_alert.alerts.action_items import contains_bangla_text
from fasal_alert.alerts.smart_alert_service import SmartAlertService
from fasal_alert.alerts.weather_advisory_service import (
    WeatherAdvisoryService,
    enrich_with_crop_info,
    generate_weather_advisories,
)
from fasal_alert.config import AlertConfig
from fasal_alert.models import AdvisorySource, Farmer, WeatherConditions
from fasal_alert.services.advisory_service import AdvisoryService
from fasal_alert.utils.errors import NotFoundError, WeatherUnavailableError
from fasal_alert.weather.weather_service import WeatherService

from conftest import (
    FakeAdvisories,
    FakeCropBatches,
    FakeFarmers,
    FakeWeatherClient,
    RecordingNotifier,
    growing_crop,
    harvested_crop,
    make_observation,
    make_snapshot,
)


class FakeWeatherService:
    """Serves one snapshot per farmer; unknown farmers raise."""

    def __init__(self, snapshot, failing=()):
        self.snapshot = snapshot
        self.failing = set(failing)
        self.requested = []

    async def get_weather_for_farmer(self, farmer_id):
        self.requested.append(farmer_id)
        if farmer_id in self.failing:
            raise WeatherUnavailableError(f"Weather unavailable for {farmer_id}")
        return self.snapshot


def farmer_named(farmer_id, division="Dhaka", district="Gazipur"):
    return Farmer(farmer_id=farmer_id, name=farmer_id, phone="+880170000000", division=division, district=district)


def build(snapshot, farmers, crops=(), failing=(), advisories=None, smart=True, settings=None):
    advisories = advisories or FakeAdvisories()
    farmer_store = FakeFarmers(farmers)
    crop_store = FakeCropBatches(list(crops))
    advisory_service = AdvisoryService(advisories)
    smart_alerts = SmartAlertService(crop_store, farmer_store, advisory_service, RecordingNotifier()) if smart else None
    service = WeatherAdvisoryService(
        weather_service=FakeWeatherService(snapshot, failing),
        advisory_service=advisory_service,
        advisories=advisories,
        farmers=farmer_store,
        crop_batches=crop_store,
        smart_alert_service=smart_alerts,
        settings=settings or AlertConfig(),
    )
    return service, advisories


# Heat (medium) and humidity (medium); 45 points for a growing crop
HOT_HUMID = make_snapshot(temperature=39.0, humidity=85.0, rainfall=0.0, wind_speed=4.0)
CALM = make_snapshot(temperature=28.0, humidity=60.0, rainfall=0.0, wind_speed=3.0)


class TestConditionAdvisories:
    """Heat, rain, humidity and wind advisories."""

    def test_thresholds_and_order(self):
        """Each exceeded threshold yields one advisory, high severity first."""
        weather = WeatherConditions(temperature=38.0, humidity=95.0, rainfall=120.0, wind_speed=12.0)

        advisories = generate_weather_advisories(weather)

        assert [(a.type, a.severity) for a in advisories] == [
            ("rainfall", "high"),
            ("humidity", "high"),
            ("heat", "medium"),
            ("wind", "medium"),
        ]

    def test_thresholds_are_strict(self):
        """Readings exactly at a threshold do not trigger."""
        weather = WeatherConditions(temperature=35.0, humidity=80.0, rainfall=50.0, wind_speed=10.0)

        assert generate_weather_advisories(weather) == []

    def test_enrich_with_crop_info(self):
        """Crop names are listed once each; without crops a general note is added."""
        enriched = enrich_with_crop_info("তাপমাত্রা বেশি।", ["ধান", "ধান", "গম"])

        assert enriched.endswith("আপনার ধান, গম ফসলের জন্য বিশেষ সতর্কতা অবলম্বন করুন।")
        assert enrich_with_crop_info("তাপমাত্রা বেশি।", []).endswith(
            "আপনার এলাকার আবহাওয়া পরিস্থিতি সম্পর্কে সতর্ক থাকুন।"
        )


class TestGenerateForFarmer:
    """One farmer end to end."""

    def test_creates_condition_and_smart_advisories(self, farmer):
        """Condition advisories mention growing crops; the crop also gets a smart alert."""
        service, advisories = build(HOT_HUMID, [farmer], [growing_crop(harvest_in_days=3)])

        created = asyncio.run(service.generate_for_farmer("farmer-1"))

        assert len(created) == 3
        assert created == advisories.created
        assert all(a.source == AdvisorySource.WEATHER for a in created)
        assert "আপনার ধান ফসলের জন্য" in created[0].message
        assert created[-1].crop_id == "crop-g"

    def test_every_stored_advisory_is_bangla(self, farmer):
        """Condition advisories of all four types and the crop alerts are written in Bangla."""
        snapshot = make_snapshot(temperature=41.0, humidity=92.0, rainfall=120.0, wind_speed=16.0)
        service, _ = build(snapshot, [farmer], [growing_crop(harvest_in_days=3), harvested_crop()])

        created = asyncio.run(service.generate_for_farmer("farmer-1"))

        condition_types = {a.type for a in generate_weather_advisories(WeatherConditions.from_snapshot(snapshot))}
        assert condition_types == {"heat", "rainfall", "humidity", "wind"}
        assert len(created) == 6
        for advisory in created:
            assert contains_bangla_text(advisory.message)
            assert advisory.actions
            assert all(contains_bangla_text(action) for action in advisory.actions)

    def test_second_run_is_suppressed(self, farmer):
        """A weather advisory in the last 24 hours suppresses generation."""
        service, advisories = build(HOT_HUMID, [farmer], [growing_crop(harvest_in_days=3)])

        asyncio.run(service.generate_for_farmer("farmer-1"))
        again = asyncio.run(service.generate_for_farmer("farmer-1"))

        assert again == []
        assert len(advisories.created) == 3
        assert service.weather_service.requested == ["farmer-1"]

    @patch('fasal_alert.alerts.weather_advisory_service.log_error')
    def test_suppression_check_failure_allows_generation(self, mock_log_error, farmer):
        """If recent advisories cannot be read, generation proceeds."""
        advisories = FakeAdvisories(error_on_lookup=RuntimeError("table unavailable"))
        service, _ = build(HOT_HUMID, [farmer], advisories=advisories, smart=False)

        created = asyncio.run(service.generate_for_farmer("farmer-1"))

        assert len(created) == 2
        mock_log_error.assert_called_once()

    def test_calm_weather_creates_nothing(self, farmer):
        service, advisories = build(CALM, [farmer], [growing_crop(harvest_in_days=30)])

        assert asyncio.run(service.generate_for_farmer("farmer-1")) == []
        assert advisories.created == []

    def test_smart_alerts_run_without_condition_advisories(self, farmer):
        """Crop alerts are evaluated even when no condition threshold is crossed."""
        # 7 + 15 + 10 + 4 points, x1.5 in open space: 54 -> Medium
        snapshot = make_snapshot(temperature=34.0, humidity=78.0, rainfall=40.0, wind_speed=8.0)
        service, _ = build(snapshot, [farmer], [harvested_crop()])

        created = asyncio.run(service.generate_for_farmer("farmer-1"))

        assert generate_weather_advisories(WeatherConditions.from_snapshot(snapshot)) == []
        assert [a.crop_id for a in created] == ["crop-h"]

    @patch('fasal_alert.alerts.weather_advisory_service.log_error')
    def test_smart_alert_failure_keeps_condition_advisories(self, mock_log_error, farmer):
        """A smart alert failure is contained."""
        service, _ = build(HOT_HUMID, [farmer], [growing_crop(harvest_in_days=3)])

        async def broken(farmer_id, weather):
            raise RuntimeError("risk engine failure")

        service.smart_alert_service.generate_alerts_for_farmer = broken

        created = asyncio.run(service.generate_for_farmer("farmer-1"))

        assert len(created) == 2
        mock_log_error.assert_called_once()

    def test_missing_farmer_propagates(self, farmer, settings):
        """Unknown farmers raise NotFoundError from the real weather service."""
        weather = WeatherService(
            store=None, client=FakeWeatherClient(), farmers=FakeFarmers([farmer]), settings=settings
        )
        service, _ = build(HOT_HUMID, [farmer], smart=False)
        service.weather_service = weather

        with pytest.raises(NotFoundError):
            asyncio.run(service.generate_for_farmer("nobody"))

    def test_with_real_weather_service(self, farmer, settings, snapshot_store):
        """Advisories are generated from a live fetch and the snapshot is cached."""
        client = FakeWeatherClient(payload=make_observation(temp=41.0, humidity=50))
        weather = WeatherService(snapshot_store, client, FakeFarmers([farmer]), settings)
        service, _ = build(HOT_HUMID, [farmer], smart=False)
        service.weather_service = weather

        async def run():
            try:
                return await service.generate_for_farmer("farmer-1")
            finally:
                await weather.drain()

        created = asyncio.run(run())

        assert len(created) == 1
        assert "41.0°C" in created[0].message
        assert client.calls == 1
        assert len(snapshot_store.saved) == 1


class TestBatchGeneration:
    """Location and all-farmer runs."""

    def test_generate_for_location(self):
        """Only farmers in the requested area are processed."""
        farmers = [farmer_named("a"), farmer_named("b", district="Dhaka"), farmer_named("c", "Rajshahi", "Bogra")]
        service, _ = build(HOT_HUMID, farmers, smart=False)

        assert asyncio.run(service.generate_for_location("Dhaka")) == 4
        assert sorted(service.weather_service.requested) == ["a", "b"]

    @patch('fasal_alert.alerts.weather_advisory_service.log_error')
    def test_generate_for_location_isolates_failures(self, mock_log_error):
        farmers = [farmer_named("a"), farmer_named("b")]
        service, _ = build(HOT_HUMID, farmers, failing={"a"}, smart=False)

        assert asyncio.run(service.generate_for_location("Dhaka", "Gazipur")) == 2

    @patch('fasal_alert.alerts.weather_advisory_service.log_error')
    def test_generate_for_all_farmers_in_batches(self, mock_log_error):
        """Every farmer is processed across batches; a failure only loses that farmer."""
        farmers = [farmer_named(f"f{i}") for i in range(5)]
        service, _ = build(HOT_HUMID, farmers, failing={"f1"}, smart=False, settings=AlertConfig(batch_size=2))

        total = asyncio.run(service.generate_for_all_farmers())

        assert total == 8
        assert sorted(service.weather_service.requested) == [f"f{i}" for i in range(5)]
        assert mock_log_error.call_count == 2
