"""Date and rounding helpers shared by the scheduling components"""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from zoneinfo import ZoneInfo

from revision_engine.config import settings


def today() -> date:
    """Current calendar day in the deployment timezone"""
    return datetime.now(ZoneInfo(settings.timezone)).date()


def now() -> datetime:
    """Current naive timestamp in the deployment timezone"""
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like Math.round does: halves always go up, never to even."""
    exponent = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def round_to_half(value: float) -> float:
    """Round to the nearest 0.5, halves going up (2.25 -> 2.5)."""
    return round_half_up(value * 2) / 2
