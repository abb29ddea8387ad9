from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Tuple

from calculators.base import BaseCalculator
from compliance.extraordinary import is_within_airline_control
from compliance.formatters import VARIES_BY_AIRLINE, likely_entitled, plain_number
from compliance.parsing import AlternativeTiming, coalesce_alternative, parse_duration_hours
from compliance.regimes import Regime
from models.schemas import DisruptionRecord, DisruptionType, EligibilityResult, NoticePeriod, Regulation
from tools.distance_tools import tier

FULL = Decimal("1")
HALF = Decimal("0.5")
WAIVED = Decimal("0")


def reduction_factor(notice: NoticePeriod, alternative: AlternativeTiming) -> Decimal:
    """Article 5 re-routing matrix: 1 (full), 0.5 or 0 (waived) of the tier amount."""
    if not alternative.offered:
        return FULL
    if alternative.source == "legacy":
        hours = alternative.legacy_hours
        if notice is NoticePeriod.SEVEN_TO_14_DAYS:
            return WAIVED if hours <= 4 else FULL
        if hours <= 2:
            return WAIVED
        return HALF if hours <= 3 else FULL

    departure = alternative.departure_difference
    arrival = alternative.arrival_difference
    if notice is NoticePeriod.SEVEN_TO_14_DAYS:
        return WAIVED if departure <= 2 and arrival <= 4 else FULL
    if departure <= 1 and arrival <= 2:
        return WAIVED
    if departure <= 2 and arrival <= 3:
        return HALF
    return FULL


class CancellationCalculator(BaseCalculator):
    disruption_type = DisruptionType.CANCELLATION

    async def evaluate(self, record: DisruptionRecord, cancel_token: asyncio.Event | None = None) -> EligibilityResult:
        _, regime = self.resolve(record)
        regulation = regime.regulation
        if regulation is Regulation.UNKNOWN:
            return self.not_covered()

        notice = record.notice_given or NoticePeriod.MORE_THAN_14_DAYS
        if notice is NoticePeriod.MORE_THAN_14_DAYS:
            return self.ineligible(
                regime,
                95,
                "No compensation is due because the cancellation was notified more than 14 days before departure",
                "Cancellation notified more than 14 days in advance",
            )

        if regulation is Regulation.US_DOT:
            return self.result(
                regime,
                True,
                VARIES_BY_AIRLINE,
                60,
                "US DOT does not mandate cancellation compensation, but you are entitled to a refund if you "
                "choose not to travel. Check airline policy for additional compensation.",
                "US flight cancellation; compensation varies by airline policy",
            )
        if regulation is Regulation.CANADIAN_APPR:
            return self._canadian(record, regime, notice)

        if await self.is_extraordinary(record, cancel_token):
            return self.ineligible(
                regime,
                90,
                "No compensation is due because the cancellation was caused by extraordinary circumstances",
                f"Extraordinary circumstances: {record.delay_reason}",
            )

        km = self.distance_km(record)
        base = regime.tier_amount(tier(km))
        reason = f"Flight cancelled with {notice.value} notice, distance {plain_number(km)}km"

        # Swiss and Norwegian rules carry no re-routing reduction matrix.
        if regulation in (Regulation.SWISS_FOCA, Regulation.NORWEGIAN_CAA):
            amount = regime.format_amount(base)
            return self.result(regime, True, amount, 85, likely_entitled(amount, regime.name), reason)

        factor, amount = self._reduced(regime, base, notice, coalesce_alternative(record))
        if factor == WAIVED:
            return self.ineligible(
                regime,
                90,
                "No compensation is due: Alternative flight offered within the permitted re-routing time limits",
                f"{reason}; alternative flight within {notice.value} notice limits",
            )
        message = likely_entitled(amount, regime.name)
        if factor == HALF:
            message += " (50% reduction applied because the alternative flight arrived within 3 hours of the original schedule)"
            return self.result(regime, True, amount, 85, message, f"{reason}; 50% re-routing reduction")
        return self.result(regime, True, amount, 85, message, reason)

    def _reduced(
        self, regime: Regime, base: int, notice: NoticePeriod, alternative: AlternativeTiming
    ) -> Tuple[Decimal, str]:
        factor = reduction_factor(notice, alternative)
        return factor, regime.format_amount(Decimal(base) * factor)

    def _canadian(self, record: DisruptionRecord, regime: Regime, notice: NoticePeriod) -> EligibilityResult:
        if not is_within_airline_control(record.delay_reason):
            return self.ineligible(
                regime,
                90,
                "Cancellation outside airline control - no compensation required under Canadian APPR",
                "Cancellation outside airline control",
            )
        hours = parse_duration_hours(record.delay_duration)
        size = self.carrier_size(record)
        award = self.appr.delay_compensation(hours, size)
        amount = regime.format_amount(award["amount"])
        return self.result(
            regime,
            True,
            amount,
            85,
            likely_entitled(amount, regime.name),
            f"Flight cancelled with {notice.value} notice, arrival delay {plain_number(hours)} hours, "
            f"{size.value} carrier, {award['regulation_section']}",
        )
