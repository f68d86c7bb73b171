"""Translate Redelex payloads into domain values."""

from __future__ import annotations

from typing import TYPE_CHECKING

from casetrack.domain.model import (
    DocketEntry,
    ParticipantRole,
    PrecautionaryMeasure,
    ProcessDetail,
    Subject,
)
from casetrack.domain.reconciliation.contracts import ReportLine
from casetrack.domain.stages import normalize_term, translate_stage

if TYPE_CHECKING:
    from datetime import datetime

    from .schema import DocketEntryPayload, ProcessPayload, ReportItem

CONTRACT_LOCATION_FIELD = "UBICACION CONTRATO"

_ROLE_TAGS: dict[str, ParticipantRole] = {
    "DEMANDANTE": ParticipantRole.PLAINTIFF,
    "PLAINTIFF": ParticipantRole.PLAINTIFF,
    "DEMANDADO": ParticipantRole.DEFENDANT,
    "DEFENDANT": ParticipantRole.DEFENDANT,
}


def parse_role(tag: str | None) -> ParticipantRole | None:
    return _ROLE_TAGS.get(normalize_term(tag))


def parse_report_line(item: ReportItem) -> ReportLine:
    return ReportLine(
        process_id=item.process_id,
        role=parse_role(item.role_tag),
        name=item.subject_name,
        identifier=item.subject_identifier,
        case_number=item.case_number,
        alternate_code=item.alternate_code,
        process_class=item.process_class,
        stage=item.stage,
        court_office=item.court_office,
    )


def parse_process_detail(payload: ProcessPayload) -> ProcessDetail | None:
    """Build the detail view; ``None`` when the payload carries no process id."""

    if payload.process_id is None:
        return None

    measure = payload.precautionary_measures[0] if payload.precautionary_measures else None
    latest_entry = _latest_docket_entry(payload.docket_entries)
    location = next(
        (
            field.value
            for field in payload.custom_fields
            if CONTRACT_LOCATION_FIELD in normalize_term(field.name)
        ),
        None,
    )

    return ProcessDetail(
        process_id=payload.process_id,
        case_number=payload.case_number,
        alternate_code=payload.alternate_code,
        process_class=payload.process_class,
        internal_stage=payload.stage,
        client_stage=translate_stage(payload.stage),
        status=payload.status,
        region=payload.region,
        topic=payload.topic,
        court_office=payload.court_office,
        origin_court_office=payload.origin_court_office,
        admission_date=payload.admission_date,
        created_date=payload.created_date,
        contract_location=location,
        rating=payload.rating.rating if payload.rating else None,
        first_instance_ruling=payload.first_instance_ruling,
        first_instance_ruling_date=payload.first_instance_ruling_date,
        lead_attorney=payload.lead_attorney,
        subjects=tuple(
            Subject(kind=s.kind, name=s.name, identifier=s.identifier) for s in payload.subjects
        ),
        precautionary_measure=(
            PrecautionaryMeasure(
                id=measure.id,
                date=measure.date,
                measure_type=measure.measure_type,
                effective=measure.effective,
                subject_name=measure.subject_name,
                asset_type=measure.asset_type,
                address=measure.address,
                area=measure.area,
                judicial_appraisal=measure.judicial_appraisal,
                notes=measure.notes,
            )
            if measure is not None
            else None
        ),
        latest_docket_entry=(
            DocketEntry(date=latest_entry.date, kind=latest_entry.kind, note=latest_entry.note)
            if latest_entry is not None
            else None
        ),
        attorneys=tuple(_attorney_names(payload.attorneys)),
    )


def _latest_docket_entry(entries: list[DocketEntryPayload]) -> DocketEntryPayload | None:
    if not entries:
        return None
    # undated entries sort first so any dated entry wins
    return max(entries, key=lambda entry: _sort_key(entry.date))


def _sort_key(value: datetime | None) -> float:
    if value is None:
        return float("-inf")
    return value.timestamp()


def _attorney_names(values: list[object]) -> list[str]:
    names: list[str] = []
    for value in values:
        if isinstance(value, dict):
            raw = value.get("Nombre") or value.get("Abogado")
        else:
            raw = value
        if isinstance(raw, str) and raw.strip():
            names.append(raw.strip())
    return names


__all__ = ["parse_process_detail", "parse_report_line", "parse_role"]
