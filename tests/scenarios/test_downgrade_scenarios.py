from __future__ import annotations

import asyncio

import pytest


def _downgrade(**overrides):
    record = {
        "flightNumber": "LH900",
        "airline": "Lufthansa",
        "departureAirport": "FRA",
        "arrivalAirport": "ATH",
        "disruptionType": "downgrading",
        "bookedClass": "business",
        "actualClass": "economy",
        "ticketPrice": 1000,
    }
    record.update(overrides)
    return record


def test_business_to_economy_medium_haul_refunds_half(make_engine):
    async def _run():
        result = await make_engine(km=2500).check_eligibility(_downgrade())
        assert result.eligible is True
        assert result.amount == "€500"
        assert result.confidence == 95
        assert "50%" in result.message
        assert "EU261 Article 10" in result.message
        assert result.reason.startswith("Downgraded from business to economy")

    asyncio.run(_run())


@pytest.mark.parametrize("km,price,amount", [(800, 333, "€100"), (5000, 50, "€38"), (1500, 100, "€30"), (3500.001, 100, "€75")])
def test_refund_is_rounded_half_up(make_engine, km, price, amount):
    async def _run():
        result = await make_engine(km=km).check_eligibility(_downgrade(ticketPrice=price))
        assert result.amount == amount

    asyncio.run(_run())


def test_missing_class_information(make_engine):
    async def _run():
        result = await make_engine().check_eligibility(_downgrade(actualClass=None))
        assert (result.eligible, result.confidence) == (False, 50)
        assert result.reason == "Missing class information"

    asyncio.run(_run())


@pytest.mark.parametrize("booked,actual", [("economy", "economy"), ("economy", "business"), ("premium_economy", "first")])
def test_same_or_better_class_is_not_a_downgrade(make_engine, booked, actual):
    async def _run():
        result = await make_engine().check_eligibility(_downgrade(bookedClass=booked, actualClass=actual))
        assert (result.eligible, result.confidence) == (False, 100)

    asyncio.run(_run())


def test_missing_ticket_price_is_to_be_calculated(make_engine):
    async def _run():
        result = await make_engine(km=1000).check_eligibility(_downgrade(ticketPrice=None))
        assert result.eligible is True
        assert result.amount == "To be calculated"
        assert result.confidence == 70
        assert "30%" in result.message

    asyncio.run(_run())


def test_uk_downgrade_cites_retained_article_10(make_engine):
    async def _run():
        result = await make_engine(km=600).check_eligibility(
            _downgrade(airline="Virgin Atlantic", departureAirport="MAN", arrivalAirport="EDI", ticketPrice=200)
        )
        assert result.regulation == "UK CAA"
        assert result.amount == "£60"
        assert "UK CAA regulations (retained Article 10)" in result.message

    asyncio.run(_run())


def test_us_and_canadian_downgrades_defer_to_airline_policy(make_engine):
    async def _run():
        engine = make_engine()
        us = await engine.check_eligibility(_downgrade(airline="Delta", departureAirport="JFK", arrivalAirport="LAX"))
        assert (us.amount, us.confidence, us.eligible) == ("Varies by airline", 65, True)
        assert "Contact the airline directly" in us.message
        canada = await engine.check_eligibility(_downgrade(airline="WestJet", departureAirport="YYC", arrivalAirport="YVR"))
        assert (canada.regulation, canada.amount) == ("Canadian APPR", "Varies by airline")

    asyncio.run(_run())


def test_downgrade_never_consults_the_classifier(make_engine, fakes):
    async def _run():
        analyzer = fakes.static(True)
        result = await make_engine(analyzer=analyzer).check_eligibility(_downgrade(delayReason="Severe storm"))
        assert result.eligible is True
        assert analyzer.calls == []

    asyncio.run(_run())
