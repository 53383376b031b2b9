"""
SMS Simulator
=============

Stands in for an SMS gateway: critical alerts are written to the log as a
formatted SMS block.
"""

from datetime import datetime
from typing import Optional

from ..models import utcnow
from ..repositories.base import to_iso
from ..utils.logger import get_logger

logger = get_logger(__name__)

_RULE = "═" * 59
_THIN_RULE = "─" * 59


def format_sms(phone_number: str, message: str, timestamp: datetime) -> str:
    return "\n".join([
        _RULE,
        "📱 SMS ALERT",
        _RULE,
        f"To: {phone_number}",
        f"Time: {to_iso(timestamp)}",
        _THIN_RULE,
        "Message:",
        message,
        _RULE,
    ])


def simulate_sms(phone_number: str, message: str, timestamp: Optional[datetime] = None) -> None:
    """Log an SMS instead of sending it."""
    logger.info("\n" + format_sms(phone_number, message, timestamp or utcnow()))


class SmsNotifier:
    """Notification side-channel backed by the simulator."""

    def notify(self, phone_number: str, message: str, timestamp: Optional[datetime] = None) -> None:
        simulate_sms(phone_number, message, timestamp)
