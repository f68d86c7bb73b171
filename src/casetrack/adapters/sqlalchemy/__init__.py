"""SQLAlchemy adapter package for casetrack."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyManagedAccountRepository,
    SqlAlchemyProcessRecordRepository,
    SqlAlchemySalesTeamRepository,
    SqlAlchemyStageChangeEventRepository,
    SqlAlchemyTokenStore,
)
from .unit_of_work import (
    SqlAlchemyCaseUnitOfWork,
    StartupError,
    prepare_engine,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCaseUnitOfWork",
    "SqlAlchemyManagedAccountRepository",
    "SqlAlchemyProcessRecordRepository",
    "SqlAlchemySalesTeamRepository",
    "SqlAlchemyStageChangeEventRepository",
    "SqlAlchemyTokenStore",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "prepare_engine",
    "shutdown",
    "startup",
    "start_mappers",
]
