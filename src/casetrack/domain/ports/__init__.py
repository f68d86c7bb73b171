"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import ProcessDetailFetcher, ProcessReportFetcher, ProcessReportFetchResult
from .notifications import Mailer
from .persistence import (
    ManagedAccountRepository,
    ProcessQuery,
    ProcessRecordRepository,
    Repository,
    SalesTeamRepository,
    StageChangeEventRepository,
    TokenStore,
)
from .unit_of_work import (
    CaseRepositories,
    CaseUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CaseRepositories",
    "CaseUnitOfWork",
    "Mailer",
    "ManagedAccountRepository",
    "ProcessDetailFetcher",
    "ProcessQuery",
    "ProcessRecordRepository",
    "ProcessReportFetchResult",
    "ProcessReportFetcher",
    "Repository",
    "RepositoryCollection",
    "SalesTeamRepository",
    "StageChangeEventRepository",
    "TokenStore",
    "UnitOfWork",
]
