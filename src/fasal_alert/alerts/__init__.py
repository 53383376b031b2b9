# Risk scoring and alert generation
from .action_items import contains_bangla_text, generate_action_items
from .message_formatter import format_advisory
from .risk_calculator import assess_risk, calculate_risk_score, determine_overall_risk, score_to_risk_level
from .smart_alert_service import SmartAlertService
from .sms_simulator import SmsNotifier, simulate_sms
from .weather_advisory_service import WeatherAdvisoryService, generate_weather_advisories

__all__ = [
    "SmartAlertService",
    "SmsNotifier",
    "WeatherAdvisoryService",
    "assess_risk",
    "calculate_risk_score",
    "contains_bangla_text",
    "determine_overall_risk",
    "format_advisory",
    "generate_action_items",
    "generate_weather_advisories",
    "score_to_risk_level",
    "simulate_sms",
]
