from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from casetrack.domain.errors import ReconciliationInProgress
from casetrack.domain.model import ClientStage
from casetrack.domain.reconciliation import InProcessRunLease, ReconciliationEngine
from tests.helpers.cases import make_lines

if TYPE_CHECKING:
    from collections.abc import Callable

    from tests.helpers.cases import FakeCaseStore, FakeCaseUnitOfWork


def _clock(start: datetime) -> Callable[[], datetime]:
    ticks = iter(start + timedelta(minutes=i) for i in range(1000))
    return lambda: next(ticks)


def _engine(
    fake_uow: Callable[[], FakeCaseUnitOfWork],
    *,
    batch_size: int = 1000,
    lease: InProcessRunLease | None = None,
) -> ReconciliationEngine:
    return ReconciliationEngine(
        unit_of_work_factory=fake_uow,
        lease=lease or InProcessRunLease(),
        batch_size=batch_size,
        clock=_clock(datetime(2024, 5, 1, 12, tzinfo=UTC)),
    )


def test_second_identical_run_changes_nothing(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    lines = make_lines(1, stage="DEMANDA") + make_lines(2, stage="AUDIENCIA")
    engine = _engine(fake_uow)

    first = engine.reconcile(lines)
    snapshot = {pid: (r.internal_stage, r.updated_at) for pid, r in case_store.processes.items()}
    events_after_first = len(case_store.events)
    second = engine.reconcile(lines)

    assert first.created == 2
    assert second.created == 0
    assert second.updated == 0
    assert second.unchanged == 2
    assert second.events == 0
    assert len(case_store.events) == events_after_first
    assert {
        pid: (r.internal_stage, r.updated_at) for pid, r in case_store.processes.items()
    } == snapshot


def test_client_stage_change_emits_exactly_one_event(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    engine = _engine(fake_uow)
    engine.reconcile(make_lines(10, stage="DEMANDA"))
    case_store.events.clear()

    result = engine.reconcile(make_lines(10, stage="Mandamiento de pago"))

    assert result.updated == 1
    assert result.events == 1
    [event] = case_store.events
    assert event.process_id == 10
    assert event.previous_client_stage == ClientStage.CLAIM_FILED
    assert event.current_client_stage == ClientStage.PAYMENT_ORDER
    assert event.plaintiff_identifier == "900123456"
    assert event.reported is False


def test_internal_rename_within_same_client_stage_is_silent(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    engine = _engine(fake_uow)
    engine.reconcile(make_lines(11, stage="NOTIFICACION PERSONAL"))
    case_store.events.clear()

    result = engine.reconcile(make_lines(11, stage="NOTIFICACION POR AVISO"))

    assert result.updated == 1
    assert result.events == 0
    assert case_store.processes[11].internal_stage == "NOTIFICACION POR AVISO"


def test_transition_into_termination_is_not_reported(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    engine = _engine(fake_uow)
    engine.reconcile(make_lines(12, stage="SENTENCIA"))
    case_store.events.clear()

    engine.reconcile(make_lines(12, stage="TERMINACION"))

    assert case_store.events == []
    assert case_store.processes[12].client_stage == ClientStage.TERMINATION


@pytest.mark.parametrize(
    "closure", ["PROCESO TERMINADO", "RETIRO DE LA DEMANDA", "TERMINADO POR PAGO TOTAL"]
)
def test_closure_variants_are_not_reported(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
    closure: str,
) -> None:
    engine = _engine(fake_uow)
    engine.reconcile(make_lines(13, stage="NOTIFICACION PERSONAL"))
    case_store.events.clear()

    result = engine.reconcile(make_lines(13, stage=closure))

    assert result.updated == 1
    assert result.events == 0
    assert case_store.events == []
    assert case_store.processes[13].client_stage == ClientStage.TERMINATION


def test_new_process_at_intake_stage_emits_no_event(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    engine = _engine(fake_uow)
    engine.reconcile(make_lines(20, stage="DEMANDA"))
    case_store.events.clear()

    result = engine.reconcile(
        make_lines(20, stage="DEMANDA") + make_lines(21, stage="Recepción documentos")
    )

    assert result.created == 1
    assert [event for event in case_store.events if event.process_id == 21] == []


def test_processes_missing_from_snapshot_are_deleted(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    engine = _engine(fake_uow)
    engine.reconcile(make_lines(30) + make_lines(31))

    result = engine.reconcile(make_lines(30))

    assert result.deleted == 1
    assert set(case_store.processes) == {30}


def test_empty_snapshot_deletes_every_record(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    engine = _engine(fake_uow)
    engine.reconcile(make_lines(40) + make_lines(41))

    result = engine.reconcile([])

    assert result.deleted == 2
    assert case_store.processes == {}


def test_tombstoning_keeps_events_of_deleted_processes(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    engine = _engine(fake_uow)
    engine.reconcile(make_lines(50, stage="DEMANDA"))
    engine.reconcile(make_lines(50, stage="AUDIENCIA"))

    engine.reconcile([])

    assert [event.process_id for event in case_store.events] == [50, 50]


def test_rejected_record_does_not_cost_the_rest_of_its_batch(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    case_store.reject_process_ids = {61}
    engine = _engine(fake_uow, batch_size=2)

    result = engine.reconcile(make_lines(60) + make_lines(61) + make_lines(62))

    assert set(case_store.processes) == {60, 62}
    assert result.created == 2
    assert result.failed == 1
    [failure] = result.batch_failures
    assert failure.batch_index == 0
    assert failure.affected == 1
    assert [event.process_id for event in case_store.events] == [60, 62]


def test_non_positive_process_ids_are_malformed(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    engine = _engine(fake_uow)

    result = engine.reconcile(make_lines(0) + make_lines(None) + make_lines(70))

    assert set(case_store.processes) == {70}
    # two lines without id plus one canonical record with id 0
    assert result.malformed == 3
    assert len(result.batch_failures) == 1


def test_each_batch_is_committed(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    engine = _engine(fake_uow, batch_size=2)

    engine.reconcile(make_lines(1) + make_lines(2) + make_lines(3))

    # two batches plus the tombstone pass
    assert case_store.commits == 3


def test_overlapping_run_is_rejected(fake_uow: Callable[[], FakeCaseUnitOfWork]) -> None:
    lease = InProcessRunLease()
    engine = _engine(fake_uow, lease=lease)

    with lease.hold(), pytest.raises(ReconciliationInProgress):
        engine.reconcile(make_lines(1))

    assert not lease.held
    assert engine.reconcile(make_lines(1)).created == 1


def test_engine_rejects_non_positive_batch_size(
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    with pytest.raises(ValueError, match="batch_size"):
        ReconciliationEngine(unit_of_work_factory=fake_uow, batch_size=0)
