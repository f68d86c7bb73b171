"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, or_, select

from casetrack.adapters.sqlalchemy.mappings import (
    external_token_table,
    managed_account_table,
    process_record_table,
    sales_team_table,
    stage_change_event_table,
)
from casetrack.domain.model import (
    ExternalToken,
    ManagedAccount,
    ProcessRecord,
    SalesTeam,
    StageChangeEvent,
    normalize_email,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy import Select
    from sqlalchemy.orm import Session

    from casetrack.domain.ports.persistence import ProcessQuery


def _contains(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SqlAlchemyTokenStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def current(self) -> ExternalToken | None:
        stmt = (
            select(ExternalToken)
            .order_by(external_token_table.c.created_at.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def replace(self, token: ExternalToken) -> None:
        self.session.execute(delete(external_token_table))
        self.session.add(token)


class SqlAlchemyProcessRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ProcessRecord) -> None:
        self.session.add(entity)

    def get_many(self, process_ids: Collection[int]) -> dict[int, ProcessRecord]:
        if not process_ids:
            return {}
        stmt = select(ProcessRecord).where(
            process_record_table.c.process_id.in_(list(process_ids))
        )
        return {record.process_id: record for record in self.session.execute(stmt).scalars()}

    def ids(self) -> set[int]:
        stmt = select(process_record_table.c.process_id)
        return set(self.session.execute(stmt).scalars())

    def delete_ids(self, process_ids: Collection[int]) -> int:
        if not process_ids:
            return 0
        stmt = delete(ProcessRecord).where(
            process_record_table.c.process_id.in_(list(process_ids))
        )
        result = self.session.execute(stmt, execution_options={"synchronize_session": "fetch"})
        return int(getattr(result, "rowcount", 0) or 0)

    def find(
        self,
        query: ProcessQuery,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[ProcessRecord]:
        stmt = self._filtered(select(ProcessRecord), query).order_by(
            process_record_table.c.updated_at.desc(),
            process_record_table.c.process_id,
        )
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def count(self, query: ProcessQuery) -> int:
        stmt = self._filtered(select(func.count()).select_from(process_record_table), query)
        return int(self.session.execute(stmt).scalar_one())

    @staticmethod
    def _filtered[TSelect: Select[Any]](stmt: TSelect, query: ProcessQuery) -> TSelect:
        table = process_record_table
        if query.identifiers is not None:
            wanted = sorted(query.identifiers)
            stmt = stmt.where(
                or_(
                    table.c.plaintiff_identifier.in_(wanted),
                    table.c.defendant_identifier.in_(wanted),
                )
            )
        if query.client_stage:
            stmt = stmt.where(table.c.client_stage == query.client_stage)
        if query.process_category:
            stmt = stmt.where(table.c.process_category == query.process_category)
        if query.court_office:
            pattern = _contains(query.court_office)
            stmt = stmt.where(table.c.court_office.ilike(pattern, escape="\\"))
        if query.updated_since is not None:
            stmt = stmt.where(table.c.updated_at >= query.updated_since)
        if query.text:
            pattern = _contains(query.text)
            stmt = stmt.where(
                or_(
                    table.c.plaintiff_identifier.ilike(pattern, escape="\\"),
                    table.c.defendant_identifier.ilike(pattern, escape="\\"),
                    table.c.case_number.ilike(pattern, escape="\\"),
                    table.c.alternate_code.ilike(pattern, escape="\\"),
                )
            )
        if query.subject_identifier:
            pattern = _contains(query.subject_identifier)
            stmt = stmt.where(
                or_(
                    table.c.plaintiff_identifier.ilike(pattern, escape="\\"),
                    table.c.defendant_identifier.ilike(pattern, escape="\\"),
                )
            )
        return stmt


class SqlAlchemyStageChangeEventRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: StageChangeEvent) -> None:
        self.session.add(entity)

    def get_many(self, event_ids: Iterable[UUID]) -> list[StageChangeEvent]:
        wanted = list(event_ids)
        if not wanted:
            return []
        stmt = select(StageChangeEvent).where(stage_change_event_table.c.id.in_(wanted))
        return list(self.session.execute(stmt).scalars())

    def unreported_between(self, start: datetime, end: datetime) -> list[StageChangeEvent]:
        table = stage_change_event_table
        stmt = (
            select(StageChangeEvent)
            .where(table.c.reported.is_(False))
            .where(table.c.created_at >= start)
            .where(table.c.created_at < end)
            .order_by(table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())

    def purge_created_before(self, cutoff: datetime) -> int:
        stmt = delete(StageChangeEvent).where(stage_change_event_table.c.created_at < cutoff)
        result = self.session.execute(stmt, execution_options={"synchronize_session": "fetch"})
        return int(getattr(result, "rowcount", 0) or 0)


class SqlAlchemySalesTeamRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SalesTeam) -> None:
        self.session.add(entity)

    def get_by_lead(self, email: str) -> SalesTeam | None:
        lead = normalize_email(email)
        if lead is None:
            return None
        stmt = select(SalesTeam).where(sales_team_table.c.lead_email == lead)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyManagedAccountRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ManagedAccount) -> None:
        self.session.add(entity)

    def identifiers_for_managers(self, emails: Iterable[str]) -> frozenset[str]:
        wanted = sorted({email for email in (normalize_email(e) for e in emails) if email})
        if not wanted:
            return frozenset()
        stmt = select(managed_account_table.c.identifier).where(
            managed_account_table.c.assigned_account_manager_email.in_(wanted)
        )
        return frozenset(
            identifier for identifier in self.session.execute(stmt).scalars() if identifier
        )

    def active_recipients(self) -> list[ManagedAccount]:
        table = managed_account_table
        stmt = (
            select(ManagedAccount)
            .where(table.c.is_active.is_(True))
            .where(table.c.email.is_not(None))
            .where(table.c.email != "")
            .order_by(table.c.code)
        )
        return list(self.session.execute(stmt).scalars())


if TYPE_CHECKING:
    from casetrack.domain.ports.persistence import (
        ManagedAccountRepository,
        ProcessRecordRepository,
        SalesTeamRepository,
        StageChangeEventRepository,
        TokenStore,
    )

    _session: Session
    _token_check: TokenStore = SqlAlchemyTokenStore(_session)
    _process_check: ProcessRecordRepository = SqlAlchemyProcessRecordRepository(_session)
    _event_check: StageChangeEventRepository = SqlAlchemyStageChangeEventRepository(_session)
    _team_check: SalesTeamRepository = SqlAlchemySalesTeamRepository(_session)
    _account_check: ManagedAccountRepository = SqlAlchemyManagedAccountRepository(_session)
