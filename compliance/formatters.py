from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from compliance.regimes import round_half_up
from models.schemas import DistanceTier

VARIES_BY_AIRLINE = "Varies by airline"
TO_BE_CALCULATED = "To be calculated"

NOT_COVERED_MESSAGE = (
    "This flight may not be covered by major compensation regulations. "
    "We provide assistance services only and cannot guarantee eligibility."
)
NOT_COVERED_REASON = "Route not covered by EU261, UK CAA, US DOT or regional regulations"
EXTRAORDINARY_MESSAGE = "Compensation not available due to extraordinary circumstances"

TIER_LABELS = {
    DistanceTier.SHORT: "short haul (≤1500km)",
    DistanceTier.MEDIUM: "medium haul (1500-3500km)",
    DistanceTier.LONG: "long haul (>3500km)",
}


def plain_number(value: float | int | Decimal) -> str:
    """Render 300.0 as "300" and 1.5 as "1.5"."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def one_decimal(value: float) -> str:
    return str(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def dollars(value: float | int | Decimal) -> str:
    return f"${round_half_up(value)}"


def likely_entitled(amount: str, regulation: str) -> str:
    return f"You're likely entitled to {amount} compensation under {regulation}"


def class_label(value: str) -> str:
    return value.replace("_", " ")
