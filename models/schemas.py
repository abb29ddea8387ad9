from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class DisruptionType(str, Enum):
    DELAY = "delay"
    CANCELLATION = "cancellation"
    DENIED_BOARDING = "denied_boarding"
    DOWNGRADING = "downgrading"


class NoticePeriod(str, Enum):
    LESS_THAN_7_DAYS = "< 7 days"
    SEVEN_TO_14_DAYS = "7-14 days"
    MORE_THAN_14_DAYS = "> 14 days"


class DeniedBoardingType(str, Enum):
    VOLUNTARY = "voluntary"
    INVOLUNTARY = "involuntary"


class CabinClass(str, Enum):
    FIRST = "first"
    BUSINESS = "business"
    PREMIUM_ECONOMY = "premium_economy"
    ECONOMY = "economy"


class CarrierSize(str, Enum):
    LARGE = "large"
    SMALL = "small"


class Regulation(str, Enum):
    EU261 = "EU261"
    UK_CAA = "UK CAA"
    US_DOT = "US DOT"
    SWISS_FOCA = "Swiss FOCA"
    NORWEGIAN_CAA = "Norwegian CAA"
    CANADIAN_APPR = "Canadian APPR"
    UNKNOWN = "Unknown"


class DistanceTier(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


def _lenient_enum(enum_cls, raw: Any):
    if raw is None or isinstance(raw, enum_cls):
        return raw
    text = str(raw).strip().lower().replace("-", "_").replace(" ", "_")
    for member in enum_cls:
        if text == member.value.replace("-", "_").replace(" ", "_"):
            return member
    return None


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class AlternativeFlight(_CamelModel):
    offered: bool = False
    departure_time_difference: Optional[float] = None
    arrival_time_difference: Optional[float] = None
    flight_number: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None


class DisruptionRecord(_CamelModel):
    """One passenger's disruption as submitted for an eligibility check.

    Accepts camelCase keys (``delayDuration``) as well as field names.
    Enum-valued inputs that don't match a known value are normalised to
    ``None`` so the calculators can treat them as absent.
    """

    flight_number: str = ""
    airline: str = ""
    departure_date: Optional[str] = None
    departure_airport: str = ""
    arrival_airport: str = ""
    disruption_type: DisruptionType = DisruptionType.DELAY
    delay_duration: Optional[str] = None
    delay_reason: Optional[str] = None

    notice_given: Optional[NoticePeriod] = None
    alternative_flight: Optional[AlternativeFlight] = None
    alternative_offered: Optional[bool] = None
    alternative_timing: Optional[str] = None

    denied_boarding_type: Optional[DeniedBoardingType] = None
    alternative_arrival_delay: Optional[str] = None
    compensation_offered: Optional[float] = None

    booked_class: Optional[CabinClass] = None
    actual_class: Optional[CabinClass] = None
    ticket_price: Optional[float] = None

    carrier_size: Optional[CarrierSize] = None

    @field_validator("flight_number", "airline", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> str:
        return str(value or "").strip()

    @field_validator("departure_airport", "arrival_airport", mode="before")
    @classmethod
    def _normalise_airport(cls, value: Any) -> str:
        return str(value or "").strip().upper()

    @field_validator("disruption_type", mode="before")
    @classmethod
    def _default_disruption(cls, value: Any) -> DisruptionType:
        return _lenient_enum(DisruptionType, value) or DisruptionType.DELAY

    @field_validator(
        "departure_date", "delay_duration", "delay_reason", "alternative_timing", "alternative_arrival_delay", mode="before"
    )
    @classmethod
    def _text_or_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)

    @field_validator("ticket_price", "compensation_offered", mode="before")
    @classmethod
    def _blank_number(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("notice_given", mode="before")
    @classmethod
    def _notice(cls, value: Any) -> Optional[NoticePeriod]:
        if value is None or isinstance(value, NoticePeriod):
            return value
        text = str(value).replace(" ", "")
        for member in NoticePeriod:
            if text == member.value.replace(" ", ""):
                return member
        return None

    @field_validator("denied_boarding_type", mode="before")
    @classmethod
    def _boarding_type(cls, value: Any) -> Optional[DeniedBoardingType]:
        return _lenient_enum(DeniedBoardingType, value)

    @field_validator("booked_class", "actual_class", mode="before")
    @classmethod
    def _cabin(cls, value: Any) -> Optional[CabinClass]:
        return _lenient_enum(CabinClass, value)

    @field_validator("carrier_size", mode="before")
    @classmethod
    def _carrier(cls, value: Any) -> Optional[CarrierSize]:
        return _lenient_enum(CarrierSize, value)


class EligibilityResult(_CamelModel):
    eligible: bool
    amount: str
    confidence: int = Field(ge=0, le=100)
    message: str
    regulation: str
    reason: Optional[str] = None
    additional_rights: List[str] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ExtraordinaryCategory(str, Enum):
    WEATHER = "weather"
    SECURITY = "security"
    AIR_TRAFFIC = "air_traffic"
    STRIKE = "strike"
    MEDICAL = "medical"
    TECHNICAL = "technical"
    OPERATIONAL = "operational"
    UNKNOWN = "unknown"


class ExtraordinaryVerdict(_CamelModel):
    is_extraordinary: bool
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str
    category: ExtraordinaryCategory
    explanation: str


class DelayReasonAnalysis(BaseModel):
    original_reason: str
    is_extraordinary: bool
    confidence: float
    category: ExtraordinaryCategory
    explanation: str
    suggested_action: str
    source: str = "classifier"


class EligibilityDecisionLog(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    flight_number: str
    disruption_type: DisruptionType
    regulation: str
    eligible: bool
    amount: str
    confidence: int
    reason: Optional[str] = None
    duration_ms: int = 0
