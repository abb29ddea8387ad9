from __future__ import annotations

import pytest
from pydantic import ValidationError

from compliance.audit_logger import AuditLogger
from models.schemas import (
    CabinClass,
    CarrierSize,
    DeniedBoardingType,
    DisruptionRecord,
    DisruptionType,
    EligibilityDecisionLog,
    EligibilityResult,
    NoticePeriod,
)


def test_record_accepts_camel_case_payload():
    record = DisruptionRecord.model_validate(
        {
            "flightNumber": " LH123 ",
            "airline": "Lufthansa",
            "departureAirport": "fra",
            "arrivalAirport": "cdg",
            "disruptionType": "cancellation",
            "noticeGiven": "<7 days",
            "alternativeFlight": {"offered": True, "departureTimeDifference": 1, "arrivalTimeDifference": 2},
            "bookedClass": "Premium Economy",
            "ticketPrice": "450.50",
            "carrierSize": "SMALL",
        }
    )
    assert record.flight_number == "LH123"
    assert record.departure_airport == "FRA"
    assert record.disruption_type is DisruptionType.CANCELLATION
    assert record.notice_given is NoticePeriod.LESS_THAN_7_DAYS
    assert record.alternative_flight.arrival_time_difference == 2
    assert record.booked_class is CabinClass.PREMIUM_ECONOMY
    assert record.ticket_price == 450.5
    assert record.carrier_size is CarrierSize.SMALL


def test_unknown_enum_values_become_absent():
    record = DisruptionRecord.model_validate(
        {"disruptionType": "lost_luggage", "noticeGiven": "yesterday", "deniedBoardingType": "maybe", "actualClass": "cargo"}
    )
    assert record.disruption_type is DisruptionType.DELAY
    assert record.notice_given is None
    assert record.denied_boarding_type is None
    assert record.actual_class is None


def test_snake_case_names_and_blank_numbers():
    record = DisruptionRecord(denied_boarding_type="Involuntary", ticket_price="", delay_duration=4)
    assert record.denied_boarding_type is DeniedBoardingType.INVOLUNTARY
    assert record.ticket_price is None
    assert record.delay_duration == "4"


def test_structurally_invalid_payload_is_rejected():
    with pytest.raises(ValidationError):
        DisruptionRecord.model_validate({"ticketPrice": "not a number"})


def test_result_payload_uses_camel_case():
    result = EligibilityResult(eligible=True, amount="€250", confidence=85, message="m", regulation="EU261", additional_rights=["care"])
    assert result.to_payload() == {
        "eligible": True,
        "amount": "€250",
        "confidence": 85,
        "message": "m",
        "regulation": "EU261",
        "reason": None,
        "additionalRights": ["care"],
    }
    with pytest.raises(ValidationError):
        EligibilityResult(eligible=True, amount="€1", confidence=101, message="m", regulation="EU261")


def test_audit_logger_appends_json_lines(tmp_path):
    logger = AuditLogger(path=str(tmp_path / "audit" / "decisions.jsonl"))
    for flight in ["LH1", "LH2"]:
        logger.log_decision(
            EligibilityDecisionLog(
                flight_number=flight,
                disruption_type=DisruptionType.DELAY,
                regulation="EU261",
                eligible=True,
                amount="€250",
                confidence=85,
            )
        )
    decisions = logger.read_decisions()
    assert [d.flight_number for d in decisions] == ["LH1", "LH2"]
    assert decisions[0].amount == "€250"
