from __future__ import annotations

import pytest
from pydantic import ValidationError

from casetrack.adapters.redelex import ProcessEnvelope, ReportEnvelope, ReportItem, TokenResponse
from tests.helpers.redelex import process_payload, report_item


def test_report_item_reads_spanish_column_names() -> None:
    item = ReportItem.model_validate(report_item(12))

    assert item.process_id == 12
    assert item.stage == "ADMISION"
    assert item.role_tag == "DEMANDANTE"
    assert item.subject_identifier == "900123456"
    assert item.alternate_code is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(12.0, 12), (11.6, 12), ("13", 13), (" 14.0 ", 14), ("abc", None), (None, None)],
)
def test_report_item_rounds_numeric_process_ids(raw: object, expected: int | None) -> None:
    assert ReportItem.model_validate(report_item(raw)).process_id == expected


def test_numeric_identifiers_are_kept_as_text() -> None:
    item = ReportItem.model_validate(report_item(1, identifier=900123456.0))

    assert item.subject_identifier == "900123456"


def test_report_envelope_decodes_embedded_array() -> None:
    envelope = ReportEnvelope.model_validate({"jsonString": '[{"ID Proceso": 1}]'})

    assert envelope.raw_items() == [{"ID Proceso": 1}]
    assert ReportEnvelope.model_validate({"jsonString": "  "}).raw_items() == []


def test_report_envelope_rejects_non_array_payloads() -> None:
    envelope = ReportEnvelope.model_validate({"jsonString": '{"ID Proceso": 1}'})

    with pytest.raises(ValueError, match="JSON array"):
        envelope.raw_items()


def test_token_response_requires_non_blank_token() -> None:
    assert TokenResponse.model_validate({"authToken": " abc "}).auth_token == "abc"
    with pytest.raises(ValidationError):
        TokenResponse.model_validate({"authToken": "   "})


def test_process_envelope_tolerates_null_collections() -> None:
    payload = process_payload()
    payload["Sujetos"] = None
    payload["Actuaciones"] = None

    process = ProcessEnvelope.model_validate({"proceso": payload}).process

    assert process is not None
    assert process.subjects == []
    assert process.docket_entries == []
    assert ProcessEnvelope.model_validate({"proceso": None}).process is None
