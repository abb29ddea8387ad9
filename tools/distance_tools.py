from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from threading import Lock
from typing import Dict, Optional, Tuple

from models.schemas import DistanceTier
from tools.airport_directory import AirportDirectory

EARTH_RADIUS_KM = 6371.0
KM_TO_MILES = 0.621371
# Substituted by every calculator when a lookup is invalid.
FALLBACK_DISTANCE_KM = 1000

SHORT_HAUL_MAX_KM = 1500
MEDIUM_HAUL_MAX_KM = 3500

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DistanceResult:
    km: int
    miles: float
    valid: bool
    error: Optional[str] = None


def _half_up(value: float, places: int = 0) -> Decimal:
    quant = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(quant, rounding=ROUND_HALF_UP)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def tier(km: float) -> DistanceTier:
    if km <= SHORT_HAUL_MAX_KM:
        return DistanceTier.SHORT
    if km <= MEDIUM_HAUL_MAX_KM:
        return DistanceTier.MEDIUM
    return DistanceTier.LONG


def route_type(km: float) -> str:
    if km < 500:
        return "domestic"
    if km < 2000:
        return "regional"
    if km < 5000:
        return "continental"
    return "intercontinental"


def is_realistic_route(km: float) -> bool:
    return 50 <= km <= 20000


class DistanceCache:
    """Process-wide memo of valid distance results keyed by the ordered code pair."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._entries: Dict[Tuple[str, str], DistanceResult] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: Tuple[str, str]) -> Optional[DistanceResult]:
        with self._lock:
            hit = self._entries.get(key)
            if hit is None:
                self._misses += 1
            else:
                self._hits += 1
            return hit

    def put(self, key: Tuple[str, str], result: DistanceResult) -> None:
        with self._lock:
            self._entries[key] = result

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"size": len(self._entries), "hits": self._hits, "misses": self._misses}


class DistanceCalculator:
    def __init__(self, directory: AirportDirectory | None = None, cache: DistanceCache | None = None) -> None:
        self.directory = directory or AirportDirectory()
        self.cache = cache if cache is not None else DistanceCache()

    def distance(self, origin: str | None, destination: str | None) -> DistanceResult:
        a = (origin or "").strip().upper()
        b = (destination or "").strip().upper()
        if not a or not b:
            return DistanceResult(km=0, miles=0.0, valid=False, error="Missing airport code")
        if a == b:
            return DistanceResult(km=0, miles=0.0, valid=True)

        key = (a, b)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        start = self.directory.lookup(a)
        end = self.directory.lookup(b)
        if start is None or end is None:
            missing = a if start is None else b
            return DistanceResult(km=0, miles=0.0, valid=False, error=f"Unknown airport code: {missing}")

        raw_km = haversine_km(start.latitude, start.longitude, end.latitude, end.longitude)
        km = int(_half_up(raw_km))
        result = DistanceResult(km=km, miles=float(_half_up(km * KM_TO_MILES, 2)), valid=True)
        if not is_realistic_route(km):
            logger.debug("distance_unrealistic_route", extra={"origin": a, "destination": b, "km": km, "route_type": route_type(km)})
        self.cache.put(key, result)
        return result

    def km_or_fallback(self, origin: str | None, destination: str | None) -> Tuple[int, DistanceResult]:
        result = self.distance(origin, destination)
        if not result.valid:
            logger.info(
                "distance_lookup_invalid",
                extra={"origin": origin, "destination": destination, "error": result.error, "fallback_km": FALLBACK_DISTANCE_KM},
            )
            return FALLBACK_DISTANCE_KM, result
        return result.km, result
