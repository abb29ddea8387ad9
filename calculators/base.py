from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from compliance.appr_rules import APPRCalculator
from compliance.audit_logger import AuditLogger
from compliance.extraordinary import ExtraordinaryClassifier
from compliance.formatters import NOT_COVERED_MESSAGE, NOT_COVERED_REASON
from compliance.jurisdiction import FlightRoute, JurisdictionClassifier
from compliance.regimes import REGIMES, Regime, regime_for
from models.schemas import CarrierSize, DisruptionRecord, DisruptionType, EligibilityDecisionLog, EligibilityResult, Regulation
from settings import SETTINGS
from tools.distance_tools import DistanceCalculator


class BaseCalculator(ABC):
    disruption_type: DisruptionType

    def __init__(
        self,
        distance_calculator: DistanceCalculator,
        classifier: ExtraordinaryClassifier,
        jurisdiction: JurisdictionClassifier | None = None,
        appr: APPRCalculator | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self.name = f"{self.disruption_type.value}_calculator"
        self.distance_calculator = distance_calculator
        self.classifier = classifier
        self.jurisdiction = jurisdiction or JurisdictionClassifier()
        self.appr = appr or APPRCalculator()
        self.audit_logger = audit_logger

    @abstractmethod
    async def evaluate(self, record: DisruptionRecord, cancel_token: asyncio.Event | None = None) -> EligibilityResult:
        raise NotImplementedError

    def resolve(self, record: DisruptionRecord) -> Tuple[FlightRoute, Regime]:
        route = FlightRoute.of(record.airline, record.departure_airport, record.arrival_airport)
        return route, regime_for(self.jurisdiction.resolve(route))

    def distance_km(self, record: DisruptionRecord) -> float:
        km, _ = self.distance_calculator.km_or_fallback(record.departure_airport, record.arrival_airport)
        return km

    async def is_extraordinary(self, record: DisruptionRecord, cancel_token: asyncio.Event | None = None) -> bool:
        return await self.classifier.is_extraordinary(record.delay_reason, self.classifier_context(record), cancel_token)

    def classifier_context(self, record: DisruptionRecord) -> Dict[str, Any]:
        return {
            "flight_number": record.flight_number,
            "airline": record.airline,
            "departure_airport": record.departure_airport,
            "arrival_airport": record.arrival_airport,
            "delay_duration": record.delay_duration,
        }

    def carrier_size(self, record: DisruptionRecord) -> CarrierSize:
        if record.carrier_size is not None:
            return record.carrier_size
        if SETTINGS.default_carrier_size.strip().lower() == CarrierSize.SMALL.value:
            return CarrierSize.SMALL
        return CarrierSize.LARGE

    def result(
        self,
        regime: Regime,
        eligible: bool,
        amount: str,
        confidence: int,
        message: str,
        reason: Optional[str] = None,
    ) -> EligibilityResult:
        return EligibilityResult(
            eligible=eligible,
            amount=amount,
            confidence=confidence,
            message=message,
            regulation=regime.name,
            reason=reason,
            additional_rights=list(regime.additional_rights) if eligible else [],
        )

    def ineligible(self, regime: Regime, confidence: int, message: str, reason: str) -> EligibilityResult:
        return self.result(regime, False, regime.zero_amount(), confidence, message, reason)

    def not_covered(self) -> EligibilityResult:
        return self.ineligible(REGIMES[Regulation.UNKNOWN], 80, NOT_COVERED_MESSAGE, NOT_COVERED_REASON)

    def build_decision_log(self, record: DisruptionRecord, result: EligibilityResult, duration_ms: int = 0) -> EligibilityDecisionLog:
        entry = EligibilityDecisionLog(
            flight_number=record.flight_number,
            disruption_type=record.disruption_type,
            regulation=result.regulation,
            eligible=result.eligible,
            amount=result.amount,
            confidence=result.confidence,
            reason=result.reason,
            duration_ms=duration_ms,
        )
        if self.audit_logger is not None:
            self.audit_logger.log_decision(entry)
        return entry

    async def timed(self, coro):
        start = time.perf_counter()
        result = await coro
        return result, int((time.perf_counter() - start) * 1000)
