from __future__ import annotations

import asyncio
import logging
from threading import Lock
from typing import Any, Dict, Mapping, Optional, Union

from calculators.base import BaseCalculator
from calculators.cancellation import CancellationCalculator
from calculators.delay import DelayCalculator
from calculators.denied_boarding import DeniedBoardingCalculator
from calculators.downgrade import DowngradeCalculator
from compliance.appr_rules import APPRCalculator
from compliance.audit_logger import AuditLogger
from compliance.extraordinary import ExtraordinaryClassifier
from compliance.jurisdiction import JurisdictionClassifier
from models.schemas import DisruptionRecord, DisruptionType, EligibilityResult
from settings import SETTINGS
from tools.distance_tools import DistanceCalculator

logger = logging.getLogger(__name__)

RecordInput = Union[DisruptionRecord, Mapping[str, Any]]


class EligibilityEngine:
    """Routes a disruption record to its scenario calculator.

    Every collaborator can be injected; defaults give each engine its own
    distance cache and a classifier configured from ``SETTINGS``.
    """

    def __init__(
        self,
        distance_calculator: DistanceCalculator | None = None,
        classifier: ExtraordinaryClassifier | None = None,
        jurisdiction: JurisdictionClassifier | None = None,
        audit_logger: AuditLogger | None = None,
        appr: APPRCalculator | None = None,
    ) -> None:
        self.distance_calculator = distance_calculator or DistanceCalculator()
        self.classifier = classifier or ExtraordinaryClassifier()
        self.jurisdiction = jurisdiction or JurisdictionClassifier()
        self.audit_logger = audit_logger
        deps = dict(
            distance_calculator=self.distance_calculator,
            classifier=self.classifier,
            jurisdiction=self.jurisdiction,
            appr=appr or APPRCalculator(),
            audit_logger=audit_logger,
        )
        self.calculators: Dict[DisruptionType, BaseCalculator] = {
            DisruptionType.DELAY: DelayCalculator(**deps),
            DisruptionType.CANCELLATION: CancellationCalculator(**deps),
            DisruptionType.DENIED_BOARDING: DeniedBoardingCalculator(**deps),
            DisruptionType.DOWNGRADING: DowngradeCalculator(**deps),
        }

    def calculator_for(self, disruption_type: DisruptionType) -> BaseCalculator:
        return self.calculators[disruption_type]

    async def check_eligibility(self, record: RecordInput, cancel_token: asyncio.Event | None = None) -> EligibilityResult:
        if not isinstance(record, DisruptionRecord):
            record = DisruptionRecord.model_validate(record)
        calculator = self.calculator_for(record.disruption_type)
        result, duration_ms = await calculator.timed(calculator.evaluate(record, cancel_token))
        logger.debug(
            "eligibility_evaluated",
            extra={
                "flight_number": record.flight_number,
                "disruption_type": record.disruption_type.value,
                "regulation": result.regulation,
                "eligible": result.eligible,
                "duration_ms": duration_ms,
            },
        )
        if self.audit_logger is not None:
            calculator.build_decision_log(record, result, duration_ms)
        return result


_default_engine: Optional[EligibilityEngine] = None
_default_lock = Lock()


def default_engine() -> EligibilityEngine:
    global _default_engine
    if _default_engine is None:
        with _default_lock:
            if _default_engine is None:
                audit_logger = AuditLogger() if SETTINGS.audit_log_enabled else None
                _default_engine = EligibilityEngine(audit_logger=audit_logger)
    return _default_engine


def reset_default_engine() -> None:
    global _default_engine
    with _default_lock:
        _default_engine = None


async def check_eligibility(record: RecordInput, cancel_token: asyncio.Event | None = None) -> EligibilityResult:
    return await default_engine().check_eligibility(record, cancel_token)
