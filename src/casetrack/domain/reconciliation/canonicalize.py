"""Fold role-tagged report lines into one canonical record per process."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from casetrack.domain.model import ParticipantRole, ProcessRecord
from casetrack.domain.stages import translate_class, translate_stage

if TYPE_CHECKING:
    from collections.abc import Iterable

    from casetrack.domain.reconciliation.contracts import ReportLine

log = getLogger(__name__)

_QUOTES = "'\"`"


@dataclass(slots=True)
class CanonicalSnapshot:
    """Records keyed by process id, in first-seen order."""

    records: dict[int, ProcessRecord] = field(default_factory=dict[int, ProcessRecord])
    total_lines: int = 0
    malformed: int = 0

    @property
    def process_ids(self) -> set[int]:
        return set(self.records)


def clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def clean_case_number(value: str | None) -> str | None:
    """Strip whitespace and a stray quote left around the case number by spreadsheet exports."""

    cleaned = clean_text(value)
    if cleaned is None:
        return None
    if cleaned[0] in _QUOTES:
        cleaned = cleaned[1:]
    if cleaned and cleaned[-1] in _QUOTES:
        cleaned = cleaned[:-1]
    return clean_text(cleaned)


def canonicalize(lines: Iterable[ReportLine]) -> CanonicalSnapshot:
    """Group ``lines`` by process id and merge each group into a ``ProcessRecord``.

    Non-blank shared attributes overwrite earlier ones (last write wins); blank
    values never clear a value already seen for the same process. Lines without
    a process id are counted as malformed and skipped.
    """

    snapshot = CanonicalSnapshot()
    for line in lines:
        snapshot.total_lines += 1
        if line.process_id is None:
            snapshot.malformed += 1
            log.debug("Skipping report line without a process id: %r", line)
            continue
        record = snapshot.records.get(line.process_id)
        if record is None:
            record = ProcessRecord(process_id=line.process_id)
            snapshot.records[line.process_id] = record
        _merge_line(record, line)

    for record in snapshot.records.values():
        record.client_stage = translate_stage(record.internal_stage)
        record.process_category = translate_class(record.process_class)
    return snapshot


def _merge_line(record: ProcessRecord, line: ReportLine) -> None:
    shared = {
        "case_number": clean_case_number(line.case_number),
        "alternate_code": clean_text(line.alternate_code),
        "process_class": clean_text(line.process_class),
        "internal_stage": clean_text(line.stage),
        "court_office": clean_text(line.court_office),
    }
    for name, value in shared.items():
        if value is not None:
            setattr(record, name, value)

    name = clean_text(line.name)
    identifier = clean_text(line.identifier)
    if line.role is ParticipantRole.PLAINTIFF:
        record.plaintiff_name = name or record.plaintiff_name
        record.plaintiff_identifier = identifier or record.plaintiff_identifier
    elif line.role is ParticipantRole.DEFENDANT:
        record.defendant_name = name or record.defendant_name
        record.defendant_identifier = identifier or record.defendant_identifier


__all__ = ["CanonicalSnapshot", "canonicalize", "clean_case_number", "clean_text"]
