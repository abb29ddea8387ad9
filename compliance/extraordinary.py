from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

from pydantic import ValidationError

from models.schemas import DelayReasonAnalysis, ExtraordinaryCategory, ExtraordinaryVerdict
from settings import SETTINGS
from tools.llm_runtime import LLMRuntime

logger = logging.getLogger(__name__)


class ClassifierError(RuntimeError):
    pass


class ClassifierCancelled(ClassifierError):
    pass


# Matched as case-insensitive substrings, so "ice" also hits "service" and
# "atc" also hits "match". Kept verbatim: the list is a published contract.
FALLBACK_KEYWORDS: Tuple[Tuple[ExtraordinaryCategory, Tuple[str, ...]], ...] = (
    (ExtraordinaryCategory.WEATHER, ("weather", "storm", "snow", "fog", "ice", "hurricane", "tornado")),
    (ExtraordinaryCategory.SECURITY, ("security", "terrorist", "threat", "bomb", "suspicious")),
    (ExtraordinaryCategory.AIR_TRAFFIC, ("air traffic control", "atc")),
    (ExtraordinaryCategory.UNKNOWN, ("bird strike", "wildlife")),
    (ExtraordinaryCategory.STRIKE, ("strike", "industrial action")),
    (ExtraordinaryCategory.MEDICAL, ("medical emergency", "emergency landing")),
)

# Category hints only; these never make a reason extraordinary.
ORDINARY_HINTS: Tuple[Tuple[ExtraordinaryCategory, Tuple[str, ...]], ...] = (
    (ExtraordinaryCategory.TECHNICAL, ("technical", "mechanical", "maintenance", "repair")),
    (ExtraordinaryCategory.OPERATIONAL, ("operational", "scheduling", "crew", "staffing", "overbooking")),
)

# Canadian APPR "outside airline control" wording. Maintained separately from
# FALLBACK_KEYWORDS; "war" is a bare substring and also matches "software".
OUTSIDE_AIRLINE_CONTROL_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"weather",
        r"storm",
        r"snow",
        r"fog",
        r"security",
        r"terrorist",
        r"strike",
        r"industrial\s+action",
        r"air\s+traffic\s+control",
        r"atc",
        r"medical\s+emergency",
        r"bird\s+strike",
        r"volcanic\s+ash",
        r"natural\s+disaster",
        r"war",
        r"political\s+unrest",
    )
)

SYSTEM_PROMPT = (
    "You are an expert aviation lawyer specializing in EU Regulation 261/2004 and UK CAA regulations. "
    "You decide whether a disruption reason constitutes extraordinary circumstances. Return ONLY a JSON object."
)

PROMPT_TEMPLATE = """Your task is to determine if a flight delay or cancellation reason constitutes "extraordinary circumstances" that would exempt airlines from compensation obligations.

EXTRAORDINARY CIRCUMSTANCES DEFINITION:
Events that are beyond the airline's control, could not have been avoided even if all reasonable measures had been taken, and are not inherent in the normal exercise of the airline's activity.

COMMON EXTRAORDINARY CIRCUMSTANCES:
- Weather conditions (storms, fog, snow, ice, hurricanes, tornadoes)
- Security threats, terrorist activities or suspicious packages
- Air traffic control restrictions or strikes
- Industrial action by airport staff or air traffic controllers
- Bird strikes or wildlife interference
- Medical emergencies requiring emergency landings
- Political unrest, war, natural disasters, volcanic ash

NOT EXTRAORDINARY CIRCUMSTANCES:
- Technical problems with the aircraft (maintenance issues)
- Crew scheduling problems, staff shortages (unless due to industrial action)
- Overbooking, baggage handling, fuel problems
- Operational decisions by the airline, computer system failures, gate availability

DELAY REASON TO ANALYZE:
"{reason}"
{context_block}
Return ONLY a JSON object with this exact structure:
{{"isExtraordinary": boolean, "confidence": number (0.0 to 1.0), "reason": "brief explanation", "category": "weather" | "security" | "air_traffic" | "strike" | "medical" | "technical" | "operational" | "unknown", "explanation": "why this is or isn't extraordinary"}}

Be conservative: classify as extraordinary only if clearly beyond airline control, and if ambiguous err on the side of NOT extraordinary. Use confidence 0.8+ for clear cases and 0.5-0.7 for ambiguous ones."""


class ExtraordinaryAnalyzer(Protocol):
    async def analyze(self, reason: str, context: Dict[str, Any] | None = None) -> ExtraordinaryVerdict:
        ...


def build_prompt(reason: str, context: Dict[str, Any] | None = None) -> str:
    context_block = ""
    if context:
        context_block = (
            "\nADDITIONAL CONTEXT:\n"
            f"- Flight: {context.get('flight_number') or 'Unknown'}\n"
            f"- Airline: {context.get('airline') or 'Unknown'}\n"
            f"- Route: {context.get('departure_airport') or 'Unknown'} -> {context.get('arrival_airport') or 'Unknown'}\n"
            f"- Delay Duration: {context.get('delay_duration') or 'Unknown'}\n"
        )
    return PROMPT_TEMPLATE.format(reason=reason.replace('"', "'"), context_block=context_block)


class LLMExtraordinaryAnalyzer:
    """Primary classifier path backed by the configured LLM provider."""

    def __init__(self, llm: LLMRuntime | None = None) -> None:
        self.llm = llm or LLMRuntime()

    def available(self) -> bool:
        return self.llm.available()

    async def analyze(self, reason: str, context: Dict[str, Any] | None = None) -> ExtraordinaryVerdict:
        try:
            data = await self.llm.generate_json(SYSTEM_PROMPT, build_prompt(reason, context))
        except Exception as exc:
            raise ClassifierError(f"extraordinary_llm_call_failed: {exc}") from exc
        try:
            return ExtraordinaryVerdict.model_validate(data)
        except ValidationError as exc:
            raise ClassifierError("extraordinary_llm_invalid_verdict") from exc


def _first_hit(text: str, table: Sequence[Tuple[ExtraordinaryCategory, Tuple[str, ...]]]) -> Optional[ExtraordinaryCategory]:
    for category, keywords in table:
        if any(keyword in text for keyword in keywords):
            return category
    return None


def keyword_fallback(reason: str | None) -> bool:
    if not reason or not reason.strip():
        return False
    return _first_hit(reason.lower(), FALLBACK_KEYWORDS) is not None


def fallback_verdict(reason: str | None) -> ExtraordinaryVerdict:
    if not reason or not reason.strip():
        return ExtraordinaryVerdict(
            is_extraordinary=False,
            confidence=0.9,
            reason="No delay reason provided",
            category=ExtraordinaryCategory.UNKNOWN,
            explanation="Cannot determine extraordinary circumstances without delay reason",
        )
    lower = reason.lower()
    category = _first_hit(lower, FALLBACK_KEYWORDS)
    if category is not None:
        label = category.value if category is not ExtraordinaryCategory.UNKNOWN else "wildlife"
        return ExtraordinaryVerdict(
            is_extraordinary=True,
            confidence=0.8,
            reason=f"Detected {label} related delay",
            category=category,
            explanation=f"Delay appears to be due to {label}, which is typically considered extraordinary circumstances",
        )
    hint = _first_hit(lower, ORDINARY_HINTS)
    if hint is not None:
        return ExtraordinaryVerdict(
            is_extraordinary=False,
            confidence=0.7,
            reason=f"Detected {hint.value} related delay",
            category=hint,
            explanation=f"Delay appears to be due to {hint.value}, which is typically NOT extraordinary circumstances",
        )
    return ExtraordinaryVerdict(
        is_extraordinary=False,
        confidence=0.6,
        reason="No extraordinary circumstances detected",
        category=ExtraordinaryCategory.UNKNOWN,
        explanation="Could not identify extraordinary circumstances from the provided reason",
    )


def is_within_airline_control(reason: str | None) -> bool:
    if not reason:
        return True
    return not any(pattern.search(reason) for pattern in OUTSIDE_AIRLINE_CONTROL_PATTERNS)


def suggested_action(is_extraordinary: bool, confidence: float) -> str:
    if confidence > 0.8:
        return "reject" if is_extraordinary else "proceed"
    return "caution"


def confidence_recommendation(confidence: float, is_extraordinary: bool) -> str:
    if is_extraordinary:
        if confidence > 0.8:
            return "High confidence: This appears to be extraordinary circumstances. Compensation likely not available."
        if confidence > 0.6:
            return "Moderate confidence: This may be extraordinary circumstances. Proceed with caution."
        return "Low confidence: Unclear if extraordinary circumstances. Consider proceeding with claim."
    if confidence > 0.8:
        return "High confidence: This does not appear to be extraordinary circumstances. Compensation likely available."
    if confidence > 0.6:
        return "Moderate confidence: This may not be extraordinary circumstances. Proceed with claim."
    return "Low confidence: Unclear circumstances. Proceed with claim but expect potential challenges."


def _default_analyzer() -> Optional[ExtraordinaryAnalyzer]:
    analyzer = LLMExtraordinaryAnalyzer()
    return analyzer if analyzer.available() else None


class ExtraordinaryClassifier:
    """Primary analyzer with a bounded wait; the keyword fallback answers whenever it cannot."""

    def __init__(
        self,
        analyzer: ExtraordinaryAnalyzer | None = None,
        enabled: bool | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.enabled = SETTINGS.extraordinary_classifier_enabled if enabled is None else enabled
        self.timeout_seconds = SETTINGS.extraordinary_timeout_seconds if timeout_seconds is None else timeout_seconds
        if analyzer is None and self.enabled:
            analyzer = _default_analyzer()
        self.analyzer = analyzer

    async def classify(
        self,
        reason: str | None,
        context: Dict[str, Any] | None = None,
        cancel_token: asyncio.Event | None = None,
    ) -> Tuple[ExtraordinaryVerdict, str]:
        if not reason or not reason.strip():
            return fallback_verdict(reason), "empty"
        if not self.enabled or self.analyzer is None:
            return fallback_verdict(reason), "fallback"
        try:
            verdict = await asyncio.wait_for(self._race(reason, context, cancel_token), timeout=self.timeout_seconds)
            return verdict, "classifier"
        except asyncio.TimeoutError:
            logger.warning(
                "extraordinary_classifier_timeout",
                extra={"timeout_seconds": self.timeout_seconds, "reason_text": reason[:120]},
            )
        except Exception as exc:
            logger.warning(
                "extraordinary_classifier_failed",
                extra={"error": str(exc), "error_type": type(exc).__name__, "reason_text": reason[:120]},
            )
        return fallback_verdict(reason), "fallback"

    async def is_extraordinary(
        self,
        reason: str | None,
        context: Dict[str, Any] | None = None,
        cancel_token: asyncio.Event | None = None,
    ) -> bool:
        verdict, _ = await self.classify(reason, context, cancel_token)
        return verdict.is_extraordinary

    async def analyze_delay_reason(self, reason: str, context: Dict[str, Any] | None = None) -> DelayReasonAnalysis:
        verdict, source = await self.classify(reason, context)
        return DelayReasonAnalysis(
            original_reason=reason,
            is_extraordinary=verdict.is_extraordinary,
            confidence=verdict.confidence,
            category=verdict.category,
            explanation=verdict.explanation,
            suggested_action=suggested_action(verdict.is_extraordinary, verdict.confidence),
            source=source,
        )

    async def _race(
        self,
        reason: str,
        context: Dict[str, Any] | None,
        cancel_token: asyncio.Event | None,
    ) -> ExtraordinaryVerdict:
        if cancel_token is None:
            return await self.analyzer.analyze(reason, context)
        call = asyncio.ensure_future(self.analyzer.analyze(reason, context))
        cancelled = asyncio.ensure_future(cancel_token.wait())
        try:
            done, _ = await asyncio.wait({call, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (call, cancelled):
                if not task.done():
                    task.cancel()
        if call in done:
            return call.result()
        raise ClassifierCancelled("extraordinary_classifier_cancelled")


async def analyze_delay_reason(
    reason: str,
    context: Dict[str, Any] | None = None,
    classifier: ExtraordinaryClassifier | None = None,
) -> DelayReasonAnalysis:
    return await (classifier or ExtraordinaryClassifier()).analyze_delay_reason(reason, context)
