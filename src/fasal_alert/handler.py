"""
Lambda entry point for scheduled and on-demand advisory jobs.

Event (direct invocation / EventBridge, or API Gateway JSON body):
    {"job": "generate_all"}
    {"job": "generate_farmer", "farmer_id": "..."}
    {"job": "generate_location", "division": "Dhaka", "district": "Gazipur"}
    {"job": "cleanup_snapshots"}
    {"job": "api_usage"}
    {"job": "health"}
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .alerts.smart_alert_service import SmartAlertService
from .alerts.sms_simulator import SmsNotifier
from .alerts.weather_advisory_service import WeatherAdvisoryService
from .config import config
from .repositories import AdvisoriesRepository, CropBatchesRepository, FarmersRepository
from .services.advisory_service import AdvisoryService
from .utils.errors import AlertError, log_error
from .utils.logger import logger
from .weather.openweather_client import get_openweather_client
from .weather.snapshot_store import WeatherSnapshotStore
from .weather.weather_service import WeatherService

# CORS headers for API Gateway responses
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
}


@dataclass
class Services:
    weather: WeatherService
    advisories: WeatherAdvisoryService
    snapshots: WeatherSnapshotStore


_services: Optional[Services] = None


def build_services() -> Services:
    """Wire the DynamoDB stores, the weather layer and the alert services."""
    farmers = FarmersRepository()
    crop_batches = CropBatchesRepository()
    advisories = AdvisoriesRepository()
    snapshots = WeatherSnapshotStore()

    weather = WeatherService(snapshots, get_openweather_client(), farmers=farmers, settings=config)
    advisory_service = AdvisoryService(advisories)
    smart_alerts = SmartAlertService(crop_batches, farmers, advisory_service, SmsNotifier())

    return Services(
        weather=weather,
        advisories=WeatherAdvisoryService(
            weather,
            advisory_service,
            advisories,
            farmers,
            crop_batches,
            smart_alert_service=smart_alerts,
            settings=config,
        ),
        snapshots=snapshots,
    )


def get_services() -> Services:
    """Services are kept across warm invocations so the daily quota persists."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


def reset_services() -> None:
    global _services
    _services = None


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": CORS_HEADERS,
        "body": json.dumps(body, default=str, ensure_ascii=False),
    }


def _parse_event(event: Dict[str, Any]) -> Dict[str, Any]:
    # Support API Gateway (JSON body / query string) and direct invocation
    if event.get("body"):
        return json.loads(event["body"])
    if event.get("queryStringParameters"):
        return dict(event["queryStringParameters"])
    return event


async def _run_job(services: Services, job: str, params: Dict[str, Any]) -> Dict[str, Any]:
    try:
        if job == "generate_all":
            return _response(200, {"generated": await services.advisories.generate_for_all_farmers()})

        if job == "generate_farmer":
            farmer_id = params.get("farmer_id")
            if not farmer_id:
                return _response(400, {"error": "farmer_id is required."})
            created = await services.advisories.generate_for_farmer(farmer_id)
            return _response(200, {
                "farmer_id": farmer_id,
                "generated": len(created),
                "advisory_ids": [a.advisory_id for a in created],
            })

        if job == "generate_location":
            division = params.get("division")
            if not division:
                return _response(400, {"error": "division is required."})
            generated = await services.advisories.generate_for_location(division, params.get("district"))
            return _response(200, {"generated": generated})

        if job == "cleanup_snapshots":
            deleted = await asyncio.to_thread(services.snapshots.delete_expired, config.stale_lookback)
            return _response(200, {"deleted": deleted})

        if job == "api_usage":
            return _response(200, services.weather.get_api_usage_stats())

        if job == "health":
            reachable = await asyncio.to_thread(services.weather.client.check_health)
            return _response(200 if reachable else 503, {
                "status": "healthy" if reachable else "degraded",
                "openweather_reachable": reachable,
                "api_usage": services.weather.get_api_usage_stats(),
            })

        return _response(400, {"error": f"Unknown job: {job}"})
    finally:
        await services.weather.drain()


def lambda_handler(event, context):
    logger.info(event)

    try:
        params = _parse_event(event or {})
    except json.JSONDecodeError:
        return _response(400, {"error": "Request body must be valid JSON."})

    job = params.get("job")
    if not job:
        return _response(400, {"error": "job is required."})

    try:
        return asyncio.run(_run_job(get_services(), job, params))
    except AlertError as e:
        log_error(e, f"lambda_handler - {job}")
        return _response(e.status_code, {"error": e.message, "details": e.details})
    except Exception as e:
        logger.error(f"Error processing job {job}: {e}")
        return _response(500, {"error": str(e)})
