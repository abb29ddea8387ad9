from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest

from calculators.dispatcher import EligibilityEngine, reset_default_engine
from compliance.extraordinary import ClassifierError, ExtraordinaryClassifier
from models.schemas import ExtraordinaryCategory, ExtraordinaryVerdict
from tools.airport_directory import AirportDirectory
from tools.distance_tools import DistanceCalculator, DistanceResult


class FixedDistanceCalculator(DistanceCalculator):
    def __init__(self, km: float, valid: bool = True) -> None:
        super().__init__(directory=AirportDirectory(airports=[]))
        self.km = km
        self.valid = valid

    def distance(self, origin: str | None, destination: str | None) -> DistanceResult:
        if not self.valid:
            return DistanceResult(km=0, miles=0.0, valid=False, error="Unknown airport code")
        return DistanceResult(km=self.km, miles=round(self.km * 0.621371, 2), valid=True)


class StaticAnalyzer:
    def __init__(self, is_extraordinary: bool, confidence: float = 0.95) -> None:
        self.verdict = ExtraordinaryVerdict(
            is_extraordinary=is_extraordinary,
            confidence=confidence,
            reason="static",
            category=ExtraordinaryCategory.WEATHER if is_extraordinary else ExtraordinaryCategory.TECHNICAL,
            explanation="static verdict",
        )
        self.calls: List[str] = []

    async def analyze(self, reason: str, context: Dict[str, Any] | None = None) -> ExtraordinaryVerdict:
        self.calls.append(reason)
        return self.verdict


class FailingAnalyzer:
    def __init__(self) -> None:
        self.calls = 0

    async def analyze(self, reason: str, context: Dict[str, Any] | None = None) -> ExtraordinaryVerdict:
        self.calls += 1
        raise ClassifierError("provider down")


class HangingAnalyzer:
    async def analyze(self, reason: str, context: Dict[str, Any] | None = None) -> ExtraordinaryVerdict:
        await asyncio.sleep(3600)
        raise AssertionError("unreachable")


@pytest.fixture(autouse=True)
def _isolated_default_engine():
    reset_default_engine()
    yield
    reset_default_engine()


@pytest.fixture
def make_engine():
    def _make(km: float = 1200, valid: bool = True, analyzer=None, **kwargs) -> EligibilityEngine:
        classifier = ExtraordinaryClassifier(analyzer=analyzer or StaticAnalyzer(False), enabled=True, timeout_seconds=0.5)
        return EligibilityEngine(distance_calculator=FixedDistanceCalculator(km, valid), classifier=classifier, **kwargs)

    return _make


@pytest.fixture
def fakes():
    class _Fakes:
        fixed_distance = FixedDistanceCalculator
        static = StaticAnalyzer
        failing = FailingAnalyzer
        hanging = HangingAnalyzer

    return _Fakes
