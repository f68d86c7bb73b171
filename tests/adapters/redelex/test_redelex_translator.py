from __future__ import annotations

from datetime import datetime

import pytest

from casetrack.adapters.redelex import (
    ProcessPayload,
    ReportItem,
    parse_process_detail,
    parse_report_line,
    parse_role,
)
from casetrack.domain.model import ClientStage, ParticipantRole
from tests.helpers.redelex import process_payload, report_item


@pytest.mark.parametrize(
    ("tag", "expected"),
    [
        ("DEMANDANTE", ParticipantRole.PLAINTIFF),
        (" demandado ", ParticipantRole.DEFENDANT),
        ("Defendant", ParticipantRole.DEFENDANT),
        ("TERCERO", None),
        (None, None),
    ],
)
def test_parse_role(tag: str | None, expected: ParticipantRole | None) -> None:
    assert parse_role(tag) is expected


def test_parse_report_line_carries_role_and_case_attributes() -> None:
    line = parse_report_line(ReportItem.model_validate(report_item(5, role="DEMANDADO")))

    assert line.process_id == 5
    assert line.role is ParticipantRole.DEFENDANT
    assert line.identifier == "900123456"
    assert line.stage == "ADMISION"
    assert line.court_office == "JUZGADO 1 CIVIL MUNICIPAL"


def test_parse_process_detail_builds_detail_view() -> None:
    detail = parse_process_detail(ProcessPayload.model_validate(process_payload(42)))

    assert detail is not None
    assert detail.process_id == 42
    assert detail.internal_stage == "ADMISION"
    assert detail.client_stage == "claim admitted"
    assert detail.rating == "PROBABLE"
    assert detail.contract_location == "Archivo central"
    assert detail.attorneys == ("Laura Gomez", "Pedro Ruiz")
    assert detail.subject_identifiers == ("900123456", "1010")
    assert detail.admission_date == datetime(2023, 5, 2)  # noqa: DTZ001


def test_parse_process_detail_keeps_first_measure_and_latest_docket_entry() -> None:
    detail = parse_process_detail(ProcessPayload.model_validate(process_payload()))

    assert detail is not None
    assert detail.precautionary_measure is not None
    assert detail.precautionary_measure.measure_type == "EMBARGO"
    assert detail.precautionary_measure.area == 54.5
    assert detail.latest_docket_entry is not None
    assert detail.latest_docket_entry.note == "ultimo"


def test_parse_process_detail_without_optional_sections() -> None:
    detail = parse_process_detail(ProcessPayload.model_validate({"ProcesoId": 3}))

    assert detail is not None
    assert detail.precautionary_measure is None
    assert detail.latest_docket_entry is None
    assert detail.contract_location is None
    assert detail.client_stage == ClientStage.UNKNOWN


def test_parse_process_detail_requires_process_id() -> None:
    assert parse_process_detail(ProcessPayload.model_validate({"Etapa": "ADMISION"})) is None
