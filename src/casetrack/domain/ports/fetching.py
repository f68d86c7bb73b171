"""Ports for fetching data from the case-management provider."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from casetrack.domain.model import ProcessDetail
    from casetrack.domain.reconciliation.contracts import ReportLine


@dataclass(slots=True)
class ProcessReportFetchResult:
    """Full snapshot of the provider's process report."""

    lines: Sequence[ReportLine]
    report_id: int
    # items the adapter could not parse into a line at all
    rejected: int = 0


@runtime_checkable
class ProcessReportFetcher(Protocol):
    """Callable port returning the complete process report in one call."""

    def __call__(self, *, report_id: int | None = None) -> ProcessReportFetchResult: ...


@runtime_checkable
class ProcessDetailFetcher(Protocol):
    """Callable port returning a single process, or ``None`` when the provider has none."""

    def __call__(self, process_id: int) -> ProcessDetail | None: ...


__all__ = ["ProcessDetailFetcher", "ProcessReportFetchResult", "ProcessReportFetcher"]
