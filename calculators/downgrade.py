from __future__ import annotations

import asyncio
from decimal import Decimal

from calculators.base import BaseCalculator
from compliance.formatters import TIER_LABELS, TO_BE_CALCULATED, VARIES_BY_AIRLINE, class_label
from compliance.regimes import Regime
from models.schemas import CabinClass, DisruptionRecord, DisruptionType, DistanceTier, EligibilityResult, Regulation
from tools.distance_tools import tier

# Highest cabin first.
CLASS_ORDER = [CabinClass.FIRST, CabinClass.BUSINESS, CabinClass.PREMIUM_ECONOMY, CabinClass.ECONOMY]
REFUND_PERCENT = {
    DistanceTier.SHORT: 30,
    DistanceTier.MEDIUM: 50,
    DistanceTier.LONG: 75,
}
ARTICLE_10_BASIS = {
    Regulation.EU261: "EU261 Article 10",
    Regulation.UK_CAA: "UK CAA regulations (retained Article 10)",
    Regulation.SWISS_FOCA: "Swiss FOCA rules (EU261 Article 10)",
    Regulation.NORWEGIAN_CAA: "Norwegian CAA rules (EU261 Article 10)",
}


class DowngradeCalculator(BaseCalculator):
    """Article 10 downgrade refunds. Extraordinary circumstances never apply here."""

    disruption_type = DisruptionType.DOWNGRADING

    async def evaluate(self, record: DisruptionRecord, cancel_token: asyncio.Event | None = None) -> EligibilityResult:
        _, regime = self.resolve(record)
        booked, actual = record.booked_class, record.actual_class
        if booked is None or actual is None:
            return self.ineligible(
                regime,
                50,
                "Unable to assess downgrade: missing booked or actual class information",
                "Missing class information",
            )
        if CLASS_ORDER.index(actual) <= CLASS_ORDER.index(booked):
            return self.ineligible(
                regime,
                100,
                "No downgrade detected - you traveled in the same or better class than booked",
                "No downgrade occurred",
            )

        regulation = regime.regulation
        if regulation is Regulation.UNKNOWN:
            return self.not_covered()
        if regulation in (Regulation.US_DOT, Regulation.CANADIAN_APPR):
            return self.result(
                regime,
                True,
                VARIES_BY_AIRLINE,
                65,
                f"{regime.name} does not mandate specific compensation for downgrades. "
                "Contact the airline directly to request a refund of the fare difference.",
                f"Downgraded from {class_label(booked.value)} to {class_label(actual.value)} - check airline policy",
            )
        return self._article_10(record, regime, booked, actual)

    def _article_10(self, record: DisruptionRecord, regime: Regime, booked: CabinClass, actual: CabinClass) -> EligibilityResult:
        km = self.distance_km(record)
        distance_tier = tier(km)
        percent = REFUND_PERCENT[distance_tier]
        basis = ARTICLE_10_BASIS[regime.regulation]
        downgrade = f"Downgraded from {class_label(booked.value)} to {class_label(actual.value)}"

        price = record.ticket_price
        if not price or price <= 0:
            return self.result(
                regime,
                True,
                TO_BE_CALCULATED,
                70,
                f"You may be entitled to a {percent}% refund of your ticket price under {basis}. "
                "Please provide your ticket price to calculate the exact amount.",
                f"{downgrade}, {TIER_LABELS[distance_tier]}, {percent}% refund pending ticket price",
            )

        fare = Decimal(str(price))
        refund = min(fare * percent / 100, fare)
        amount = regime.format_amount(refund)
        return self.result(
            regime,
            True,
            amount,
            95,
            f"You're entitled to a {percent}% refund ({amount}) of your ticket price under {basis} for your downgrade",
            f"{downgrade}, {TIER_LABELS[distance_tier]}, {percent}% refund",
        )
