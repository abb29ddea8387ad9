from __future__ import annotations

import asyncio
from decimal import Decimal

from calculators.base import BaseCalculator
from compliance.extraordinary import is_within_airline_control
from compliance.formatters import TIER_LABELS, dollars, one_decimal, plain_number
from compliance.jurisdiction import FlightRoute, is_us_domestic
from compliance.parsing import NO_ALTERNATIVE, AlternativeTiming, coalesce_alternative, parse_duration_hours
from compliance.regimes import Regime
from models.schemas import DeniedBoardingType, DisruptionRecord, DisruptionType, DistanceTier, EligibilityResult, Regulation
from tools.distance_tools import tier

# Article 4: compensation halves when re-routing arrives within these hours.
REDUCTION_HOURS = {
    DistanceTier.SHORT: 2.0,
    DistanceTier.MEDIUM: 3.0,
    DistanceTier.LONG: 4.0,
}
US_DOT_CAPS = {200: 775, 400: 1550}


class DeniedBoardingCalculator(BaseCalculator):
    disruption_type = DisruptionType.DENIED_BOARDING

    async def evaluate(self, record: DisruptionRecord, cancel_token: asyncio.Event | None = None) -> EligibilityResult:
        if record.denied_boarding_type is DeniedBoardingType.VOLUNTARY:
            offered = record.compensation_offered
            return EligibilityResult(
                eligible=False,
                amount=f"${plain_number(offered)}" if offered else "$0",
                confidence=95,
                message="Voluntary denied boarding - compensation is at airline discretion",
                regulation="Voluntary",
                reason="Passenger voluntarily gave up seat",
            )

        route, regime = self.resolve(record)
        alternative = self._alternative(record)
        regulation = regime.regulation
        if regulation is Regulation.UNKNOWN:
            return self.not_covered()
        if regulation is Regulation.US_DOT:
            return self._us_dot(record, route, regime, alternative)
        if regulation is Regulation.CANADIAN_APPR:
            return self._canadian(record, regime, alternative)
        return self._article_4(record, regime, alternative)

    def _alternative(self, record: DisruptionRecord) -> AlternativeTiming:
        alternative = coalesce_alternative(record, legacy_text=record.alternative_arrival_delay)
        if alternative.source == "legacy" and not (record.alternative_arrival_delay or "").strip():
            return NO_ALTERNATIVE
        return alternative

    def _article_4(self, record: DisruptionRecord, regime: Regime, alternative: AlternativeTiming) -> EligibilityResult:
        km = self.distance_km(record)
        distance_tier = tier(km)
        base = regime.tier_amount(distance_tier)
        arrival = alternative.arrival_difference
        reduced = alternative.offered and arrival < REDUCTION_HOURS[distance_tier]
        amount = regime.format_amount(Decimal(base) * Decimal("0.5") if reduced else base)
        message = f"You're entitled to {amount} compensation under {regime.name} for involuntary denied boarding"
        if reduced:
            message += f" (50% reduction applied due to alternative flight arriving within {plain_number(arrival)} hours)"
        return self.result(
            regime,
            True,
            amount,
            90,
            message,
            f"Involuntary denied boarding, {TIER_LABELS[distance_tier]}, distance {plain_number(km)}km",
        )

    def _us_dot(
        self, record: DisruptionRecord, route: FlightRoute, regime: Regime, alternative: AlternativeTiming
    ) -> EligibilityResult:
        price = record.ticket_price
        if not price or price <= 0:
            return self.ineligible(
                regime,
                50,
                "US DOT denied boarding compensation requires ticket price information. Please provide the original ticket price.",
                "Missing ticket price for percentage calculation",
            )

        arrival = alternative.arrival_difference if alternative.offered else 0.0
        if arrival < 1:
            return self.ineligible(
                regime,
                95,
                "Alternative flight arrived within 1 hour - no compensation required under US DOT regulations",
                f"Alternative arrival delay under 1 hour ({one_decimal(arrival)} hours)",
            )

        domestic = is_us_domestic(route)
        lower_band_hours = 2 if domestic else 4
        percentage = 200 if arrival < lower_band_hours else 400
        cap = US_DOT_CAPS[percentage]
        compensation = min(Decimal(str(price)) * percentage / 100, Decimal(cap))
        amount = dollars(compensation)
        if compensation >= cap:
            details = f" (capped at ${cap})"
        else:
            details = f" ({percentage}% of ${plain_number(price)} ticket price)"
        return self.result(
            regime,
            True,
            amount,
            95,
            f"You're entitled to {amount} compensation under US DOT regulations for involuntary denied boarding{details}",
            f"Alternative arrival delay {one_decimal(arrival)} hours - {percentage}% compensation "
            f"({'domestic' if domestic else 'international'}, 14 CFR Part 250)",
        )

    def _canadian(self, record: DisruptionRecord, regime: Regime, alternative: AlternativeTiming) -> EligibilityResult:
        if not is_within_airline_control(record.delay_reason):
            return self.ineligible(
                regime,
                90,
                "Denied boarding outside airline control - no compensation required under Canadian APPR",
                "Denied boarding outside airline control",
            )
        hours = alternative.arrival_difference if alternative.offered else parse_duration_hours(record.delay_duration)
        size = self.carrier_size(record)
        award = self.appr.denied_boarding_compensation(hours, size)
        amount = regime.format_amount(award["amount"])
        return self.result(
            regime,
            True,
            amount,
            85,
            f"You're entitled to {amount} compensation under {regime.name} for involuntary denied boarding",
            f"Involuntary denied boarding, arrival delay {plain_number(hours)} hours, "
            f"{size.value} carrier, {award['regulation_section']}",
        )
