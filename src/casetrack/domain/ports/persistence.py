"""Ports for persisting domain aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from casetrack.domain.model import (
    ExternalToken,
    ManagedAccount,
    ProcessRecord,
    SalesTeam,
    StageChangeEvent,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable
    from datetime import datetime
    from uuid import UUID


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class TokenStore(Protocol):
    """Holds at most one provider bearer token."""

    def current(self) -> ExternalToken | None: ...

    def replace(self, token: ExternalToken) -> None: ...


@dataclass(frozen=True, slots=True, kw_only=True)
class ProcessQuery:
    """Selection criteria for stored process records.

    ``identifiers`` restricts results to records with a plaintiff or defendant
    identifier in the set; ``None`` means unrestricted. ``text`` is matched as a
    case-insensitive substring of the identifiers, the case number and the
    alternate code. ``subject_identifier`` is a substring of either party's
    identifier.
    """

    identifiers: frozenset[str] | None = None
    client_stage: str | None = None
    process_category: str | None = None
    court_office: str | None = None
    updated_since: datetime | None = None
    text: str | None = None
    subject_identifier: str | None = None


@runtime_checkable
class ProcessRecordRepository(Repository[ProcessRecord], Protocol):
    """Persistence contract for process records."""

    def get_many(self, process_ids: Collection[int]) -> dict[int, ProcessRecord]: ...

    def ids(self) -> set[int]: ...

    def delete_ids(self, process_ids: Collection[int]) -> int: ...

    def find(
        self,
        query: ProcessQuery,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[ProcessRecord]: ...

    def count(self, query: ProcessQuery) -> int: ...


@runtime_checkable
class StageChangeEventRepository(Repository[StageChangeEvent], Protocol):
    """Persistence contract for stage change events."""

    def get_many(self, event_ids: Iterable[UUID]) -> list[StageChangeEvent]: ...

    def unreported_between(self, start: datetime, end: datetime) -> list[StageChangeEvent]: ...

    def purge_created_before(self, cutoff: datetime) -> int: ...


@runtime_checkable
class SalesTeamRepository(Repository[SalesTeam], Protocol):
    """Repository contract for the sales hierarchy."""

    def get_by_lead(self, email: str) -> SalesTeam | None: ...


@runtime_checkable
class ManagedAccountRepository(Repository[ManagedAccount], Protocol):
    """Repository contract for client accounts."""

    def identifiers_for_managers(self, emails: Iterable[str]) -> frozenset[str]: ...

    def active_recipients(self) -> list[ManagedAccount]: ...
