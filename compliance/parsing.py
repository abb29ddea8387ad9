from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from models.schemas import DisruptionRecord

_HOURS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*h(?:ours?|rs?)?(?![a-z])")
_MINUTES_RE = re.compile(r"(\d+(?:\.\d+)?)\s*m(?:in(?:ute)?s?)?(?![a-z])")
_NUMBER_RE = re.compile(r"(\d+(?:\.\d+)?)")


def _normalise(text: str | None) -> str:
    if not text:
        return ""
    return str(text).strip().lower()


def _unit_hours(lower: str) -> Optional[float]:
    """Hours from unit-tagged terms, or None when the text names no unit.

    Minutes only add to an hours term when they are a sub-hour remainder
    written after it, so "3 hours (180 min)" stays 3.
    """
    hours = _HOURS_RE.search(lower)
    minutes = _MINUTES_RE.search(lower)
    if hours is None and minutes is None:
        return None
    if hours is None:
        return float(minutes.group(1)) / 60
    total = float(hours.group(1))
    if minutes is not None and minutes.start() > hours.end():
        extra = float(minutes.group(1))
        if extra < 60:
            total += extra / 60
    return total


def parse_duration_hours(text: str | None) -> float:
    """Parse free-text durations ("4 hours 45 minutes", "3.5h", "90 minutes", "5").

    Anything unparseable counts as 0 hours.
    """
    lower = _normalise(text)
    if not lower:
        return 0.0
    tagged = _unit_hours(lower)
    if tagged is not None:
        return tagged
    bare = _NUMBER_RE.search(lower)
    if bare is None:
        return 0.0
    value = float(bare.group(1))
    if "minute" in lower:
        return value / 60
    return value


def parse_alternative_timing(text: str | None) -> float:
    """Parse legacy alternative-flight timing ("2 hours later", "30 minutes later").

    Only unit-tagged values count; a bare number or "next day" is 0 hours.
    """
    return _unit_hours(_normalise(text)) or 0.0


@dataclass(frozen=True)
class AlternativeTiming:
    """Alternative-flight facts after coalescing structured and legacy input.

    ``source`` is "structured", "legacy" or "none". Legacy input carries a single
    parsed delay in ``legacy_hours``; structured input carries absolute
    departure/arrival differences.
    """

    offered: bool
    source: str
    departure_difference: float = 0.0
    arrival_difference: float = 0.0
    legacy_hours: float = 0.0


NO_ALTERNATIVE = AlternativeTiming(offered=False, source="none")


def coalesce_alternative(record: DisruptionRecord, legacy_text: Optional[str] = None) -> AlternativeTiming:
    """Structured ``alternativeFlight`` wins whenever present, even when not offered.

    ``legacy_text`` defaults to ``alternativeTiming``; denied boarding passes
    ``alternativeArrivalDelay`` instead.
    """
    structured = record.alternative_flight
    if structured is not None:
        if not structured.offered:
            return AlternativeTiming(offered=False, source="structured")
        return AlternativeTiming(
            offered=True,
            source="structured",
            departure_difference=abs(structured.departure_time_difference or 0.0),
            arrival_difference=abs(structured.arrival_time_difference or 0.0),
        )
    if record.alternative_offered:
        text = record.alternative_timing if legacy_text is None else legacy_text
        hours = parse_alternative_timing(text)
        return AlternativeTiming(
            offered=True,
            source="legacy",
            departure_difference=hours,
            arrival_difference=hours,
            legacy_hours=hours,
        )
    return NO_ALTERNATIVE
