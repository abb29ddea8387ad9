from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Tuple

from models.schemas import DistanceTier, Regulation

EU_TIER_AMOUNTS: Dict[DistanceTier, int] = {
    DistanceTier.SHORT: 250,
    DistanceTier.MEDIUM: 400,
    DistanceTier.LONG: 600,
}
# Statutory GBP constants, not an FX conversion of the EU table.
UK_TIER_AMOUNTS: Dict[DistanceTier, int] = {
    DistanceTier.SHORT: 250,
    DistanceTier.MEDIUM: 400,
    DistanceTier.LONG: 520,
}
CHF_PER_EUR = Decimal("1.08")
NOK_PER_EUR = Decimal("11.5")

EUROPEAN_RIGHTS: Tuple[str, ...] = (
    "Right to care (meals, refreshments, communication)",
    "Choice between refund and re-routing",
    "Hotel accommodation if an overnight stay is required",
)
CANADIAN_RIGHTS: Tuple[str, ...] = (
    "Alternative travel arrangements or refund",
    "Food, drink and means of communication while waiting",
    "Hotel accommodation if delayed overnight",
)
US_RIGHTS: Tuple[str, ...] = (
    "Refund if you choose not to travel",
    "Re-routing on the next available flight",
)


def round_half_up(value: Decimal | float | int) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _scaled(table: Dict[DistanceTier, int], rate: Decimal) -> Dict[DistanceTier, int]:
    return {key: round_half_up(Decimal(amount) * rate) for key, amount in table.items()}


@dataclass(frozen=True)
class Regime:
    regulation: Regulation
    currency: str
    symbol: str
    tier_amounts: Optional[Dict[DistanceTier, int]] = None
    # Extraordinary circumstances void delay and cancellation compensation.
    extraordinary_exempt: bool = False
    additional_rights: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def name(self) -> str:
        return self.regulation.value

    @property
    def distance_based(self) -> bool:
        return self.tier_amounts is not None

    def tier_amount(self, distance_tier: DistanceTier) -> int:
        if self.tier_amounts is None:
            return 0
        return self.tier_amounts[distance_tier]

    def format_amount(self, value: Decimal | float | int) -> str:
        return f"{self.symbol}{round_half_up(value)}"

    def zero_amount(self) -> str:
        return f"{self.symbol}0"


REGIMES: Dict[Regulation, Regime] = {
    Regulation.EU261: Regime(Regulation.EU261, "EUR", "€", EU_TIER_AMOUNTS, True, EUROPEAN_RIGHTS),
    Regulation.UK_CAA: Regime(Regulation.UK_CAA, "GBP", "£", UK_TIER_AMOUNTS, True, EUROPEAN_RIGHTS),
    Regulation.SWISS_FOCA: Regime(Regulation.SWISS_FOCA, "CHF", "CHF ", _scaled(EU_TIER_AMOUNTS, CHF_PER_EUR), True, EUROPEAN_RIGHTS),
    Regulation.NORWEGIAN_CAA: Regime(
        Regulation.NORWEGIAN_CAA, "NOK", "NOK ", _scaled(EU_TIER_AMOUNTS, NOK_PER_EUR), True, EUROPEAN_RIGHTS
    ),
    Regulation.CANADIAN_APPR: Regime(Regulation.CANADIAN_APPR, "CAD", "CA$", None, False, CANADIAN_RIGHTS),
    Regulation.US_DOT: Regime(Regulation.US_DOT, "USD", "$", None, False, US_RIGHTS),
    # Unsupported routes only ever report a zero amount.
    Regulation.UNKNOWN: Regime(Regulation.UNKNOWN, "EUR", "€", None, False, ()),
}


def regime_for(regulation: Regulation) -> Regime:
    return REGIMES[regulation]
