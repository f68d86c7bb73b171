"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextlib import AbstractContextManager
    from types import TracebackType

    from casetrack.domain.ports.persistence import (
        ManagedAccountRepository,
        ProcessRecordRepository,
        SalesTeamRepository,
        StageChangeEventRepository,
        TokenStore,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...  # the repo list itself should be immutable

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def savepoint(self) -> AbstractContextManager[None]:
        """Scope writes so that a rejected record is undone without losing the rest.

        Store-level rejections inside the block surface as ``PersistenceConflict``.
        """
        ...


@dataclass(slots=True)
class CaseRepositories(RepositoryCollection):
    """Repositories behind reconciliation, queries and the digest."""

    tokens: TokenStore
    processes: ProcessRecordRepository
    events: StageChangeEventRepository
    teams: SalesTeamRepository
    accounts: ManagedAccountRepository


type CaseUnitOfWork = UnitOfWork[CaseRepositories]
