"""Input lines and run summaries shared by the reconciliation stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from casetrack.domain.errors import PartialBatchFailure
    from casetrack.domain.model import ParticipantRole


@dataclass(frozen=True, slots=True, kw_only=True)
class ReportLine:
    """One (process, participant) row of the provider's flat extract.

    ``role`` is ``None`` when the provider sent a role tag we do not know; such
    lines still carry the shared case attributes.
    """

    process_id: int | None
    role: ParticipantRole | None = None
    name: str | None = None
    identifier: str | None = None
    case_number: str | None = None
    alternate_code: str | None = None
    process_class: str | None = None
    stage: str | None = None
    court_office: str | None = None


@dataclass(slots=True)
class ReconciliationResult:
    """Counters describing one reconciliation run."""

    total_lines: int = 0
    processes: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    deleted: int = 0
    events: int = 0
    malformed: int = 0
    failed: int = 0
    batch_failures: list[PartialBatchFailure] = field(default_factory=list)

    @property
    def written(self) -> int:
        return self.created + self.updated + self.unchanged


__all__ = ["ReconciliationResult", "ReportLine"]
