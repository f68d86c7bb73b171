"""Decide whether a stage change is worth telling a client about."""

from __future__ import annotations

from typing import TYPE_CHECKING

from casetrack.domain.model import ClientStage, StageChangeEvent
from casetrack.domain.stages import is_intake_transition, translate_stage

if TYPE_CHECKING:
    from datetime import datetime

    from casetrack.domain.model import ProcessRecord


def is_reportable_transition(previous: str, current: str) -> bool:
    if previous == current:
        return False
    if current == ClientStage.TERMINATION:
        return False
    return not is_intake_transition(previous, current)


def classify_transition(
    prior: ProcessRecord | None,
    incoming: ProcessRecord,
    *,
    now: datetime,
) -> StageChangeEvent | None:
    """Return the event for ``prior -> incoming``, or ``None`` when nothing reportable changed.

    Both sides are compared in client vocabulary, so internal renames that land
    on the same client stage stay silent. A process seen for the first time
    starts from ``unknown``.
    """

    previous = translate_stage(prior.internal_stage) if prior is not None else ClientStage.UNKNOWN
    current = translate_stage(incoming.internal_stage)
    if not is_reportable_transition(previous, current):
        return None
    return StageChangeEvent(
        process_id=incoming.process_id,
        case_number=incoming.case_number,
        process_category=incoming.process_category,
        court_office=incoming.court_office,
        plaintiff_identifier=incoming.plaintiff_identifier,
        defendant_name=incoming.defendant_name,
        defendant_identifier=incoming.defendant_identifier,
        previous_client_stage=str(previous),
        current_client_stage=current,
        created_at=now,
    )


__all__ = ["classify_transition", "is_reportable_transition"]
