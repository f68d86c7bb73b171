"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, time, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from casetrack.adapters.mail import GraphMailer
from casetrack.adapters.redelex import RedelexDetailFetcher, RedelexReportFetcher
from casetrack.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCaseUnitOfWork,
    is_started,
    startup,
)
from casetrack.config import get_digest_config, get_sync_config
from casetrack.domain.digest import DigestNotifier, DigestResult
from casetrack.domain.ports.unit_of_work import CaseUnitOfWork
from casetrack.domain.queries import QueryService
from casetrack.domain.reconciliation import ReconciliationEngine, ReconciliationResult
from casetrack.domain.reconciliation.lease import DEFAULT_RUN_LEASE

if TYPE_CHECKING:
    from datetime import date

    from casetrack.domain.ports.fetching import ProcessDetailFetcher, ProcessReportFetcher
    from casetrack.domain.ports.notifications import Mailer
    from casetrack.domain.reconciliation.lease import RunLease

UnitOfWorkFactory = Callable[[], CaseUnitOfWork]


log = getLogger(__name__)


def _resolve_unit_of_work(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyCaseUnitOfWork


def sync_process_report(
    *,
    fetcher: ProcessReportFetcher | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    report_id: int | None = None,
    batch_size: int | None = None,
    lease: RunLease | None = None,
) -> ReconciliationResult:
    """Fetch the provider report and reconcile it into the process store."""

    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    sync_config = get_sync_config()
    effective_fetcher = fetcher or RedelexReportFetcher(
        unit_of_work_factory=effective_uow,
        token_grace=timedelta(seconds=sync_config.token_grace_seconds),
    )
    effective_batch_size = batch_size or sync_config.batch_size
    log.info("Starting process sync: report_id=%s, batch_size=%s", report_id, effective_batch_size)

    fetched = effective_fetcher(report_id=report_id)

    engine = ReconciliationEngine(
        unit_of_work_factory=effective_uow,
        lease=lease or DEFAULT_RUN_LEASE,
        batch_size=effective_batch_size,
    )
    result = engine.reconcile(fetched.lines)
    # items the schema rejected never became lines, count them with the malformed ones
    result.total_lines += fetched.rejected
    result.malformed += fetched.rejected

    log.info(
        f"Finished process sync of report {fetched.report_id}: created={result.created}, "
        f"updated={result.updated}, deleted={result.deleted}, events={result.events}"
    )
    return result


def send_daily_digest(
    *,
    mailer: Mailer | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    date: date | None = None,
) -> DigestResult:
    """Mail every active account its stage changes for the day before ``date`` (default today)."""

    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    digest_config = get_digest_config()
    notifier = DigestNotifier(
        effective_uow,
        mailer or GraphMailer(),
        timezone=digest_config.timezone,
        retention=timedelta(days=digest_config.event_retention_days),
    )
    now = (
        datetime.combine(date, time(hour=12), tzinfo=digest_config.timezone)
        if date is not None
        else None
    )
    return notifier.run(now=now)


def build_query_service(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    detail_fetcher: ProcessDetailFetcher | None = None,
) -> QueryService:
    """Wire a ``QueryService`` against the configured store and provider."""

    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    return QueryService(
        unit_of_work_factory=effective_uow,
        detail_fetcher=detail_fetcher or RedelexDetailFetcher(unit_of_work_factory=effective_uow),
    )
