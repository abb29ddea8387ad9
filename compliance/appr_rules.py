from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from models.schemas import CarrierSize


@dataclass(frozen=True)
class APPRThreshold:
    max_hours: Optional[float]
    amount_cad: int
    regulation_section: str

    def covers(self, hours: float) -> bool:
        return self.max_hours is None or hours <= self.max_hours


LARGE_CARRIER_DELAY_THRESHOLDS: List[APPRThreshold] = [
    APPRThreshold(6.0, 400, "APPR-19(1)(a)"),
    APPRThreshold(9.0, 700, "APPR-19(1)(b)"),
    APPRThreshold(None, 1000, "APPR-19(1)(c)"),
]
SMALL_CARRIER_DELAY_THRESHOLDS: List[APPRThreshold] = [
    APPRThreshold(6.0, 125, "APPR-19(2)(a)"),
    APPRThreshold(9.0, 250, "APPR-19(2)(b)"),
    APPRThreshold(None, 500, "APPR-19(2)(c)"),
]
LARGE_CARRIER_DENIED_BOARDING_THRESHOLDS: List[APPRThreshold] = [
    APPRThreshold(6.0, 400, "APPR-20(1)(a)"),
    APPRThreshold(9.0, 700, "APPR-20(1)(b)"),
    APPRThreshold(None, 1000, "APPR-20(1)(c)"),
]
# Small carriers pay one flat amount whatever the arrival delay.
SMALL_CARRIER_DENIED_BOARDING_THRESHOLDS: List[APPRThreshold] = [
    APPRThreshold(None, 200, "APPR-20(2)"),
]


class APPRCalculator:
    """Canadian APPR fixed-amount tables. Gating on airline control happens in the calculators."""

    def delay_compensation(self, delay_hours: float, carrier_size: CarrierSize = CarrierSize.LARGE) -> Dict[str, object]:
        hours = max(delay_hours, 0.0)
        thresholds = SMALL_CARRIER_DELAY_THRESHOLDS if carrier_size is CarrierSize.SMALL else LARGE_CARRIER_DELAY_THRESHOLDS
        rule = next(r for r in thresholds if r.covers(hours))
        return {
            "amount": rule.amount_cad,
            "currency": "CAD",
            "regulation_section": rule.regulation_section,
            "calculation_breakdown": f"{carrier_size.value} carrier delay {hours:.1f}h",
        }

    def denied_boarding_compensation(
        self, arrival_delay_hours: float, carrier_size: CarrierSize = CarrierSize.LARGE
    ) -> Dict[str, object]:
        hours = max(arrival_delay_hours, 0.0)
        if carrier_size is CarrierSize.SMALL:
            thresholds = SMALL_CARRIER_DENIED_BOARDING_THRESHOLDS
        else:
            thresholds = LARGE_CARRIER_DENIED_BOARDING_THRESHOLDS
        rule = next(r for r in thresholds if r.covers(hours))
        return {
            "amount": rule.amount_cad,
            "currency": "CAD",
            "regulation_section": rule.regulation_section,
            "calculation_breakdown": f"{carrier_size.value} carrier denied boarding arrival delay {hours:.1f}h",
        }
