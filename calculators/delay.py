from __future__ import annotations

import asyncio

from calculators.base import BaseCalculator
from compliance.extraordinary import is_within_airline_control
from compliance.formatters import EXTRAORDINARY_MESSAGE, VARIES_BY_AIRLINE, likely_entitled, plain_number
from compliance.parsing import parse_duration_hours
from compliance.regimes import Regime
from models.schemas import DisruptionRecord, DisruptionType, EligibilityResult, Regulation
from tools.distance_tools import tier

MINIMUM_DELAY_HOURS = 3.0
US_DOT_ASSISTANCE_HOURS = 4.0


class DelayCalculator(BaseCalculator):
    disruption_type = DisruptionType.DELAY

    async def evaluate(self, record: DisruptionRecord, cancel_token: asyncio.Event | None = None) -> EligibilityResult:
        hours = parse_duration_hours(record.delay_duration)
        _, regime = self.resolve(record)
        if hours < MINIMUM_DELAY_HOURS:
            return self.result(
                regime,
                False,
                regime.zero_amount(),
                100,
                "Flight delays must be at least 3 hours to qualify for compensation",
                "Insufficient delay duration",
            )

        regulation = regime.regulation
        if regulation is Regulation.UNKNOWN:
            return self.not_covered()
        if regulation is Regulation.US_DOT:
            return self._us_dot(regime, hours)
        if regulation is Regulation.CANADIAN_APPR:
            return self._canadian(record, regime, hours)

        if regime.extraordinary_exempt and await self.is_extraordinary(record, cancel_token):
            return self.ineligible(regime, 90, EXTRAORDINARY_MESSAGE, f"Extraordinary circumstances: {record.delay_reason}")

        km = self.distance_km(record)
        amount = regime.format_amount(regime.tier_amount(tier(km)))
        return self.result(
            regime,
            True,
            amount,
            85,
            likely_entitled(amount, regime.name),
            f"Flight delayed {plain_number(hours)} hours, distance {plain_number(km)}km",
        )

    def _us_dot(self, regime: Regime, hours: float) -> EligibilityResult:
        if hours >= US_DOT_ASSISTANCE_HOURS:
            return self.result(
                regime,
                True,
                VARIES_BY_AIRLINE,
                60,
                "US DOT does not mandate delay compensation. Many airlines offer meals, vouchers or refunds "
                "for long delays; check your airline's customer service plan.",
                f"Flight delayed {plain_number(hours)} hours; compensation varies by airline policy",
            )
        return self.ineligible(
            regime,
            80,
            "US DOT does not require compensation for delays under 4 hours",
            f"Flight delayed {plain_number(hours)} hours, below the 4 hour assistance threshold",
        )

    def _canadian(self, record: DisruptionRecord, regime: Regime, hours: float) -> EligibilityResult:
        if not is_within_airline_control(record.delay_reason):
            return self.ineligible(
                regime,
                90,
                "Delay outside airline control - no compensation required under Canadian APPR",
                "Delay outside airline control",
            )
        size = self.carrier_size(record)
        award = self.appr.delay_compensation(hours, size)
        amount = regime.format_amount(award["amount"])
        return self.result(
            regime,
            True,
            amount,
            85,
            likely_entitled(amount, regime.name),
            f"Flight delayed {plain_number(hours)} hours, {size.value} carrier, {award['regulation_section']}",
        )
