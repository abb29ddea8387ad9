from __future__ import annotations

import json
from dataclasses import dataclass
from threading import Lock
from typing import Dict, Iterable, List, Optional

from settings import SETTINGS


@dataclass(frozen=True)
class Airport:
    code: str
    name: str
    city: str
    country: str
    region: str
    latitude: float
    longitude: float
    timezone: str


class AirportDirectory:
    """IATA code -> Airport, loaded lazily from a JSON list on first lookup."""

    def __init__(self, path: str | None = None, airports: Iterable[Airport] | None = None) -> None:
        self.path = path or SETTINGS.airports_data_path
        self._lock = Lock()
        self._airports: Optional[Dict[str, Airport]] = None
        if airports is not None:
            self._airports = {a.code.upper(): a for a in airports}

    def lookup(self, code: str | None) -> Optional[Airport]:
        if not code:
            return None
        return self._index().get(code.strip().upper())

    def codes(self) -> List[str]:
        return sorted(self._index())

    def _index(self) -> Dict[str, Airport]:
        if self._airports is None:
            with self._lock:
                if self._airports is None:
                    self._airports = self._load()
        return self._airports

    def _load(self) -> Dict[str, Airport]:
        with open(self.path, "r", encoding="utf-8") as fh:
            rows = json.load(fh)
        out: Dict[str, Airport] = {}
        for row in rows:
            code = str(row.get("code", "")).strip().upper()
            if not code:
                continue
            out[code] = Airport(
                code=code,
                name=str(row.get("name", "")),
                city=str(row.get("city", "")),
                country=str(row.get("country", "")),
                region=str(row.get("region", "")),
                latitude=float(row["latitude"]),
                longitude=float(row["longitude"]),
                timezone=str(row.get("timezone", "")),
            )
        return out
