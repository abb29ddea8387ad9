from __future__ import annotations

import asyncio
import logging

import pytest

from compliance.extraordinary import (
    ExtraordinaryClassifier,
    LLMExtraordinaryAnalyzer,
    build_prompt,
    confidence_recommendation,
    fallback_verdict,
    is_within_airline_control,
    keyword_fallback,
    suggested_action,
)
from models.schemas import ExtraordinaryCategory


@pytest.mark.parametrize(
    "reason",
    [
        "Severe WEATHER conditions",
        "Thunderstorm over the airport",
        "Ice on the wings",
        "ATC restrictions",
        "Air traffic control staff shortage",
        "Bomb threat in terminal",
        "Industrial action by ground staff",
        "Bird strike on approach",
        "Wildlife on runway",
        "Medical emergency on board",
        "Emergency landing of previous flight",
        "Suspicious package",
        "Hurricane warning",
    ],
)
def test_keyword_fallback_detects_extraordinary_reasons(reason):
    assert keyword_fallback(reason)


@pytest.mark.parametrize("reason", ["Technical fault with aircraft", "Crew scheduling problem", "Overbooking", None, "", "   "])
def test_keyword_fallback_rejects_ordinary_or_empty_reasons(reason):
    assert not keyword_fallback(reason)


def test_keyword_fallback_is_plain_substring_matching():
    # "ice" is inside "service" and "atc" inside "match"; both count.
    assert keyword_fallback("Catering service late")
    assert keyword_fallback("Gate match issue")


def test_fallback_verdict_categories():
    assert fallback_verdict("Heavy snow").category is ExtraordinaryCategory.WEATHER
    assert fallback_verdict("bird strike").is_extraordinary
    assert fallback_verdict("Pilot strike").category is ExtraordinaryCategory.STRIKE
    technical = fallback_verdict("Mechanical problem")
    assert not technical.is_extraordinary
    assert technical.category is ExtraordinaryCategory.TECHNICAL
    assert technical.confidence == 0.7
    empty = fallback_verdict("")
    assert not empty.is_extraordinary
    assert empty.reason == "No delay reason provided"


def test_airline_control_detector_is_separate_from_extraordinary_list():
    assert is_within_airline_control(None)
    assert is_within_airline_control("Crew shortage")
    assert not is_within_airline_control("Volcanic ash cloud")
    assert not is_within_airline_control("Political unrest")
    # Extraordinary-only keyword, not an airline-control keyword.
    assert is_within_airline_control("Bomb threat")
    # "war" is a bare substring.
    assert not is_within_airline_control("Software outage")


def test_suggested_action_and_recommendation():
    assert suggested_action(True, 0.9) == "reject"
    assert suggested_action(False, 0.9) == "proceed"
    assert suggested_action(True, 0.8) == "caution"
    assert suggested_action(False, 0.5) == "caution"
    assert confidence_recommendation(0.9, True).startswith("High confidence: This appears")
    assert confidence_recommendation(0.7, True).startswith("Moderate confidence")
    assert confidence_recommendation(0.5, False).startswith("Low confidence: Unclear circumstances")


def test_primary_analyzer_verdict_is_used(fakes):
    async def _run():
        analyzer = fakes.static(True)
        classifier = ExtraordinaryClassifier(analyzer=analyzer, enabled=True, timeout_seconds=1)
        # The static verdict wins even though no keyword matches.
        assert await classifier.is_extraordinary("Aircraft swap")
        assert analyzer.calls == ["Aircraft swap"]

    asyncio.run(_run())


def test_empty_reason_never_calls_analyzer(fakes):
    async def _run():
        analyzer = fakes.static(True)
        classifier = ExtraordinaryClassifier(analyzer=analyzer, enabled=True)
        assert not await classifier.is_extraordinary("")
        assert not await classifier.is_extraordinary(None)
        assert analyzer.calls == []

    asyncio.run(_run())


def test_failing_analyzer_falls_back_and_logs(fakes, caplog):
    async def _run():
        classifier = ExtraordinaryClassifier(analyzer=fakes.failing(), enabled=True)
        with caplog.at_level(logging.WARNING, logger="compliance.extraordinary"):
            assert await classifier.is_extraordinary("Heavy fog")
            assert not await classifier.is_extraordinary("Technical fault")
        assert any(r.getMessage() == "extraordinary_classifier_failed" for r in caplog.records)

    asyncio.run(_run())


def test_hanging_analyzer_times_out_to_fallback(fakes, caplog):
    async def _run():
        classifier = ExtraordinaryClassifier(analyzer=fakes.hanging(), enabled=True, timeout_seconds=0.05)
        with caplog.at_level(logging.WARNING, logger="compliance.extraordinary"):
            verdict, source = await classifier.classify("Snow storm")
        assert verdict.is_extraordinary
        assert source == "fallback"
        assert any(r.getMessage() == "extraordinary_classifier_timeout" for r in caplog.records)

    asyncio.run(_run())


def test_cancel_token_triggers_fallback(fakes):
    async def _run():
        classifier = ExtraordinaryClassifier(analyzer=fakes.hanging(), enabled=True, timeout_seconds=30)
        token = asyncio.Event()
        asyncio.get_running_loop().call_later(0.01, token.set)
        verdict, source = await classifier.classify("Crew shortage", cancel_token=token)
        assert source == "fallback"
        assert not verdict.is_extraordinary

    asyncio.run(_run())


def test_disabled_classifier_uses_fallback_only(fakes):
    async def _run():
        analyzer = fakes.static(False)
        classifier = ExtraordinaryClassifier(analyzer=analyzer, enabled=False)
        assert await classifier.is_extraordinary("Thunderstorms")
        assert analyzer.calls == []

    asyncio.run(_run())


def test_analyze_delay_reason_reports_action(fakes):
    async def _run():
        classifier = ExtraordinaryClassifier(analyzer=fakes.static(True, confidence=0.95), enabled=True)
        analysis = await classifier.analyze_delay_reason("Hurricane")
        assert analysis.is_extraordinary
        assert analysis.suggested_action == "reject"
        assert analysis.source == "classifier"
        fallback = await ExtraordinaryClassifier(analyzer=fakes.failing(), enabled=True).analyze_delay_reason("Crew issue")
        assert fallback.source == "fallback"
        assert fallback.suggested_action == "caution"

    asyncio.run(_run())


def test_llm_analyzer_unavailable_without_credentials():
    from settings import Settings
    from tools.llm_runtime import LLMRuntime

    llm = LLMRuntime(provider="anthropic", settings=Settings(anthropic_api_key=""))
    assert not LLMExtraordinaryAnalyzer(llm).available()


def test_prompt_includes_reason_and_context():
    prompt = build_prompt("Fog at LHR", {"flight_number": "BA123", "departure_airport": "LHR", "arrival_airport": "CDG"})
    assert '"Fog at LHR"' in prompt
    assert "Flight: BA123" in prompt
    assert "LHR -> CDG" in prompt
    assert '"isExtraordinary"' in prompt
