from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Sequence, Tuple

from models.schemas import Regulation

SWISS_AIRPORTS: FrozenSet[str] = frozenset({"ZRH", "GVA", "BSL", "SIR", "LUG"})
NORWEGIAN_AIRPORTS: FrozenSet[str] = frozenset({"OSL", "BGO", "TRD", "SVG", "TOS", "AAL", "BOO"})
CANADIAN_AIRPORTS: FrozenSet[str] = frozenset(
    {"YYZ", "YVR", "YUL", "YYC", "YOW", "YHZ", "YEG", "YQT", "YYT", "YWG", "YQR"}
)

# LHR, ZUR and OSL stay in the EU list as historically published.
EU_AIRPORTS: FrozenSet[str] = frozenset(
    {"LHR", "CDG", "FRA", "AMS", "MAD", "FCO", "BCN", "MUC", "ZUR", "VIE", "CPH", "ARN", "OSL", "HEL", "ATH", "WAW", "LIS", "BRU"}
)
EU_AIRLINES: Tuple[str, ...] = (
    "Lufthansa",
    "British Airways",
    "Air France",
    "KLM",
    "Ryanair",
    "EasyJet",
    "Iberia",
    "Alitalia",
    "SAS",
    "Swiss",
    "Austrian",
    "TAP Air Portugal",
    "Finnair",
    "Aegean",
    "LOT Polish",
)

UK_AIRPORTS: FrozenSet[str] = frozenset({"LHR", "LGW", "STN", "LTN", "LBA", "MAN", "BHX", "BRS", "NCL", "EDI", "GLA", "BFS", "DUB"})
UK_AIRLINES: Tuple[str, ...] = (
    "British Airways",
    "EasyJet",
    "Ryanair",
    "Virgin Atlantic",
    "Jet2",
    "TUI Airways",
    "Wizz Air",
    "Flybe",
    "Loganair",
    "Eastern Airways",
)

US_AIRPORTS: FrozenSet[str] = frozenset(
    {
        "JFK", "LAX", "ORD", "DFW", "DEN", "SFO", "SEA", "LAS", "MIA", "ATL", "BOS", "PHX", "IAH",
        "MCO", "DTW", "MSP", "PHL", "LGA", "EWR", "CLT", "BWI", "SAN", "TPA", "PDX", "STL", "HNL",
    }
)
US_AIRLINES: Tuple[str, ...] = (
    "American Airlines",
    "Delta",
    "United",
    "Southwest",
    "JetBlue",
    "Alaska Airlines",
    "Spirit",
    "Frontier",
    "Hawaiian",
)


@dataclass(frozen=True)
class FlightRoute:
    airline: str
    departure_airport: str
    arrival_airport: str

    @classmethod
    def of(cls, airline: str | None, departure_airport: str | None, arrival_airport: str | None) -> "FlightRoute":
        return cls(
            airline=(airline or "").strip(),
            departure_airport=(departure_airport or "").strip().upper(),
            arrival_airport=(arrival_airport or "").strip().upper(),
        )


def _touches(route: FlightRoute, airports: FrozenSet[str]) -> bool:
    return route.departure_airport in airports or route.arrival_airport in airports


def _airline_matches(route: FlightRoute, airlines: Sequence[str]) -> bool:
    # Plain substring match: "United" also matches "United Airlines".
    name = route.airline.lower()
    if not name:
        return False
    return any(candidate.lower() in name for candidate in airlines)


def is_swiss(route: FlightRoute) -> bool:
    return _touches(route, SWISS_AIRPORTS)


def is_norwegian(route: FlightRoute) -> bool:
    return _touches(route, NORWEGIAN_AIRPORTS)


def is_canadian(route: FlightRoute) -> bool:
    return _touches(route, CANADIAN_AIRPORTS)


def is_eu(route: FlightRoute) -> bool:
    return _airline_matches(route, EU_AIRLINES) or _touches(route, EU_AIRPORTS)


def is_uk(route: FlightRoute) -> bool:
    return _airline_matches(route, UK_AIRLINES) or _touches(route, UK_AIRPORTS)


def is_us(route: FlightRoute) -> bool:
    return _airline_matches(route, US_AIRLINES) or _touches(route, US_AIRPORTS)


def is_us_domestic(route: FlightRoute) -> bool:
    return route.departure_airport in US_AIRPORTS and route.arrival_airport in US_AIRPORTS


PRECEDENCE: Tuple[Tuple[Regulation, Callable[[FlightRoute], bool]], ...] = (
    (Regulation.SWISS_FOCA, is_swiss),
    (Regulation.NORWEGIAN_CAA, is_norwegian),
    (Regulation.CANADIAN_APPR, is_canadian),
    (Regulation.EU261, is_eu),
    (Regulation.UK_CAA, is_uk),
    (Regulation.US_DOT, is_us),
)


class JurisdictionClassifier:
    """Resolves a flight to exactly one regulation by fixed precedence."""

    def matching(self, route: FlightRoute) -> List[Regulation]:
        return [regulation for regulation, detector in PRECEDENCE if detector(route)]

    def resolve(self, route: FlightRoute) -> Regulation:
        for regulation, detector in PRECEDENCE:
            if detector(route):
                return regulation
        return Regulation.UNKNOWN
