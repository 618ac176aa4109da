"""
Charge calculation for supply sessions.

amount = round_half_up(hours * hourly rate), hours measured from the actual
start/end timestamps so sessions may cross midnight.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from supply_ledger.core.config import settings
from supply_ledger.core.exceptions import InvalidRange, UnknownRate
from supply_ledger.core.logging import get_logger
from supply_ledger.utils.dates import ensure_aware

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChargeQuote:
    crop_type: str
    rate: float
    duration_hours: float
    amount: int


def round_half_up(value: float) -> int:
    """Round to the nearest whole currency unit, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ChargeService:
    def __init__(self, rates: Optional[Dict[str, float]] = None, default_crop: Optional[str] = None):
        self.rates = dict(settings.CROP_RATES if rates is None else rates)
        self.default_crop = settings.DEFAULT_CROP_TYPE if default_crop is None else default_crop

    def available_crop_types(self) -> List[str]:
        return list(self.rates.keys())

    def get_rate(self, crop_type: str) -> float:
        rate = self.rates.get(crop_type)
        if rate is None:
            rate = self.rates.get(self.default_crop)
            if rate is None:
                logger.error("crop_rate_missing", crop_type=crop_type, default_crop=self.default_crop)
                raise UnknownRate(f"Charge rate configuration missing for crop type: {crop_type}")
            logger.debug("crop_rate_defaulted", crop_type=crop_type, rate=rate)
        return rate

    def calculate(self, start_at: datetime, end_at: datetime, crop_type: str) -> ChargeQuote:
        # Elapsed time between instants, not wall-clock difference
        start_utc = ensure_aware(start_at).astimezone(timezone.utc)
        end_utc = ensure_aware(end_at).astimezone(timezone.utc)
        if end_utc <= start_utc:
            raise InvalidRange("End time must be strictly after start time.")

        duration_hours = (end_utc - start_utc).total_seconds() / 3600
        rate = self.get_rate(crop_type)
        return ChargeQuote(
            crop_type=crop_type,
            rate=rate,
            duration_hours=duration_hours,
            amount=round_half_up(duration_hours * rate)
        )
