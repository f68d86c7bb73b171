"""Read-only view of a single process as returned by the provider's detail endpoint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class Subject:
    kind: str | None
    name: str | None
    identifier: str | None


@dataclass(frozen=True, slots=True, kw_only=True)
class PrecautionaryMeasure:
    id: int | None = None
    date: datetime | None = None
    measure_type: str | None = None
    effective: str | None = None
    subject_name: str | None = None
    asset_type: str | None = None
    address: str | None = None
    area: float | None = None
    judicial_appraisal: float | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class DocketEntry:
    date: datetime | None = None
    kind: str | None = None
    note: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ProcessDetail:
    process_id: int
    case_number: str | None = None
    alternate_code: str | None = None
    process_class: str | None = None
    internal_stage: str | None = None
    client_stage: str | None = None
    status: str | None = None
    region: str | None = None
    topic: str | None = None
    court_office: str | None = None
    origin_court_office: str | None = None
    admission_date: datetime | None = None
    created_date: datetime | None = None
    contract_location: str | None = None
    rating: str | None = None
    first_instance_ruling: str | None = None
    first_instance_ruling_date: datetime | None = None
    lead_attorney: str | None = None
    subjects: tuple[Subject, ...] = ()
    precautionary_measure: PrecautionaryMeasure | None = None
    latest_docket_entry: DocketEntry | None = None
    attorneys: tuple[str, ...] = field(default_factory=tuple)

    @property
    def subject_identifiers(self) -> tuple[str, ...]:
        return tuple(subject.identifier for subject in self.subjects if subject.identifier)

    def subject(self, kind: str) -> Subject | None:
        wanted = kind.upper()
        return next(
            (s for s in self.subjects if (s.kind or "").upper() == wanted),
            None,
        )
