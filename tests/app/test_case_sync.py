from __future__ import annotations

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

import pytest

from casetrack.app import build_query_service, send_daily_digest, sync_process_report
from casetrack.domain.model import ManagedAccount, Principal, Role
from casetrack.domain.reconciliation import ReconciliationResult
from tests.helpers.cases import (
    FakeDetailFetcher,
    FakeMailer,
    FakeReportFetcher,
    make_event,
    make_lines,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from casetrack.domain.reconciliation.lease import InProcessRunLease
    from tests.helpers.cases import FakeCaseStore, FakeCaseUnitOfWork


@pytest.fixture(autouse=True)
def _clear_job_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("RECONCILIATION_BATCH_SIZE", "EVENT_RETENTION_DAYS", "DIGEST_TIMEZONE"):
        monkeypatch.delenv(name, raising=False)


def test_sync_process_report_reconciles_fetched_lines(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
    run_lease: InProcessRunLease,
) -> None:
    fetcher = FakeReportFetcher([*make_lines(1), *make_lines(2)], rejected=2)

    result = sync_process_report(
        fetcher=fetcher,
        unit_of_work_factory=fake_uow,
        report_id=11,
        batch_size=1,
        lease=run_lease,
    )

    assert isinstance(result, ReconciliationResult)
    assert fetcher.calls == [11]
    assert result.created == 2
    assert result.total_lines == 6
    assert result.malformed == 2
    assert set(case_store.processes) == {1, 2}
    # one commit per batch plus the tombstone pass
    assert case_store.commits == 3


def test_sync_process_report_starts_the_store_when_no_factory_is_given(
    monkeypatch: pytest.MonkeyPatch,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
    run_lease: InProcessRunLease,
) -> None:
    startup_called = False

    def fake_startup() -> None:
        nonlocal startup_called
        startup_called = True

    monkeypatch.setattr("casetrack.app.is_started", lambda: False)
    monkeypatch.setattr("casetrack.app.startup", fake_startup)
    monkeypatch.setattr("casetrack.app.SqlAlchemyCaseUnitOfWork", fake_uow)

    result = sync_process_report(fetcher=FakeReportFetcher(make_lines(3)), lease=run_lease)

    assert startup_called is True
    assert result.created == 1


def test_send_daily_digest_covers_the_day_before_the_given_date(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    case_store.accounts.append(
        ManagedAccount(code="A1", name="Uno", identifier="900123456", email="uno@example.com")
    )
    event = make_event(1, created_at=datetime(2024, 3, 13, 17, 0, tzinfo=UTC))
    case_store.events.append(event)
    mailer = FakeMailer()

    result = send_daily_digest(mailer=mailer, unit_of_work_factory=fake_uow, date=date(2024, 3, 14))

    assert result.period_label == "2024-03-13"
    [sent] = mailer.sent
    assert [row.process_id for row in sent.rows] == [1]
    assert event.reported is True


def test_build_query_service_uses_given_collaborators(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    _ = case_store
    details = FakeDetailFetcher()

    service = build_query_service(unit_of_work_factory=fake_uow, detail_fetcher=details)
    page = service.list_processes(Principal(role=Role.ADMIN))

    assert page.total == 0
