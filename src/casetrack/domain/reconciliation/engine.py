"""Apply a full provider snapshot to the process store.

A run canonicalizes the flat report, writes records in batches while emitting
stage change events, then deletes every stored record the snapshot no longer
contains. Each record is written inside its own savepoint so one rejected row
never costs the rest of its batch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from casetrack.domain.errors import MalformedRecord, PartialBatchFailure, PersistenceConflict
from casetrack.domain.reconciliation.canonicalize import canonicalize
from casetrack.domain.reconciliation.classify import classify_transition
from casetrack.domain.reconciliation.contracts import ReconciliationResult
from casetrack.domain.reconciliation.lease import DEFAULT_RUN_LEASE, RunLease

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence

    from casetrack.domain.model import ProcessRecord
    from casetrack.domain.ports.unit_of_work import CaseUnitOfWork
    from casetrack.domain.reconciliation.contracts import ReportLine

log = getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000
DEFAULT_DELETE_CHUNK_SIZE = 500


def _utcnow() -> datetime:
    return datetime.now(UTC)


class _WriteOutcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(slots=True)
class ReconciliationEngine:
    """Reconcile report snapshots into the store behind ``unit_of_work_factory``."""

    unit_of_work_factory: Callable[[], CaseUnitOfWork]
    lease: RunLease = field(default_factory=lambda: DEFAULT_RUN_LEASE)
    batch_size: int = DEFAULT_BATCH_SIZE
    delete_chunk_size: int = DEFAULT_DELETE_CHUNK_SIZE
    clock: Callable[[], datetime] = _utcnow

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive")
        if self.delete_chunk_size <= 0:
            raise ValueError("delete_chunk_size must be positive")

    def reconcile(self, lines: Iterable[ReportLine]) -> ReconciliationResult:
        """Run one reconciliation; raises ``ReconciliationInProgress`` if another run is active."""

        with self.lease.hold():
            snapshot = canonicalize(lines)
            result = ReconciliationResult(
                total_lines=snapshot.total_lines,
                processes=len(snapshot.records),
                malformed=snapshot.malformed,
            )
            records = list(snapshot.records.values())

            with self.unit_of_work_factory() as uow:
                for index, batch in enumerate(_chunked(records, self.batch_size)):
                    self._write_batch(uow, batch, batch_index=index, result=result)
                    uow.commit()
                result.deleted = self._tombstone(uow, snapshot.process_ids)
                uow.commit()

        log.info(
            "Reconciliation finished: lines=%s, processes=%s, created=%s, updated=%s, "
            "unchanged=%s, deleted=%s, events=%s, malformed=%s, failed=%s",
            result.total_lines,
            result.processes,
            result.created,
            result.updated,
            result.unchanged,
            result.deleted,
            result.events,
            result.malformed,
            result.failed,
        )
        return result

    def _write_batch(
        self,
        uow: CaseUnitOfWork,
        batch: Sequence[ProcessRecord],
        *,
        batch_index: int,
        result: ReconciliationResult,
    ) -> None:
        now = self.clock()
        prior_by_id = uow.repositories.processes.get_many([r.process_id for r in batch])
        rejected = 0
        for incoming in batch:
            try:
                outcome, emitted = self._write_record(
                    uow, incoming, prior_by_id.get(incoming.process_id), now=now
                )
            except MalformedRecord as exc:
                rejected += 1
                result.malformed += 1
                log.warning("Skipping malformed process %s: %s", exc.process_id, exc)
                continue
            except PersistenceConflict as exc:
                rejected += 1
                result.failed += 1
                log.warning("Store rejected process %s: %s", incoming.process_id, exc)
                continue
            if outcome is _WriteOutcome.CREATED:
                result.created += 1
            elif outcome is _WriteOutcome.UPDATED:
                result.updated += 1
            else:
                result.unchanged += 1
            if emitted:
                result.events += 1

        if rejected:
            failure = PartialBatchFailure(
                f"Batch {batch_index}: {rejected} of {len(batch)} records skipped",
                affected=rejected,
                batch_index=batch_index,
            )
            result.batch_failures.append(failure)
            log.warning("%s", failure)

    def _write_record(
        self,
        uow: CaseUnitOfWork,
        incoming: ProcessRecord,
        prior: ProcessRecord | None,
        *,
        now: datetime,
    ) -> tuple[_WriteOutcome, bool]:
        if incoming.process_id <= 0:
            raise MalformedRecord(
                f"Invalid process id {incoming.process_id}", process_id=incoming.process_id
            )
        event = classify_transition(prior, incoming, now=now)
        with uow.savepoint():
            if prior is None:
                incoming.created_at = now
                incoming.updated_at = now
                uow.repositories.processes.add(incoming)
                outcome = _WriteOutcome.CREATED
            elif prior.apply_snapshot(incoming, now=now):
                outcome = _WriteOutcome.UPDATED
            else:
                outcome = _WriteOutcome.UNCHANGED
            if event is not None:
                uow.repositories.events.add(event)
        return outcome, event is not None

    def _tombstone(self, uow: CaseUnitOfWork, keep: set[int]) -> int:
        repository = uow.repositories.processes
        if not keep:
            log.warning("Snapshot contains no processes; deleting every stored process record")
        stale = sorted(repository.ids() - keep)
        deleted = 0
        for chunk in _chunked(stale, self.delete_chunk_size):
            deleted += repository.delete_ids(chunk)
        return deleted


def _chunked[T](items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


__all__ = ["DEFAULT_BATCH_SIZE", "ReconciliationEngine"]
