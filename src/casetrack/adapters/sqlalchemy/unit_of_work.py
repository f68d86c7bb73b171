"""SQLAlchemy-backed unit of work for the process store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from casetrack.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from casetrack.adapters.sqlalchemy.repositories import (
    SqlAlchemyManagedAccountRepository,
    SqlAlchemyProcessRecordRepository,
    SqlAlchemySalesTeamRepository,
    SqlAlchemyStageChangeEventRepository,
    SqlAlchemyTokenStore,
)
from casetrack.config import get_database_config
from casetrack.domain.errors import PersistenceConflict
from casetrack.domain.ports.unit_of_work import CaseRepositories, RepositoryCollection

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from sqlalchemy.engine import Connection, Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call casetrack.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def _sqlite_on_connect(dbapi_connection: Any, connection_record: Any) -> None:
    _ = connection_record
    # let SQLAlchemy emit BEGIN itself so SAVEPOINT works with pysqlite
    dbapi_connection.isolation_level = None


def _sqlite_on_begin(connection: Connection) -> None:
    connection.exec_driver_sql("BEGIN")


def prepare_engine(engine: Engine) -> Engine:
    """Configure mappers, transactional quirks and tables for ``engine``."""

    if engine.dialect.name == "sqlite" and not event.contains(
        engine, "connect", _sqlite_on_connect
    ):
        event.listen(engine, "connect", _sqlite_on_connect)
        event.listen(engine, "begin", _sqlite_on_begin)
    start_mappers()
    create_all_tables(engine)
    return engine


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, metadata, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    prepare_engine(resolved_engine)
    log.debug("SQLAlchemy adapter started on %s", resolved_engine.url)
    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        """Flush the block's writes under a SAVEPOINT, undoing only them on rejection."""

        try:
            with self.session.begin_nested():
                yield
        except IntegrityError as exc:
            raise PersistenceConflict(str(exc.orig)) from exc

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyCaseUnitOfWork(BaseSqlAlchemyUnitOfWork[CaseRepositories]):
    """Unit of work over every casetrack repository."""

    def _build_repositories(self, session: Session) -> CaseRepositories:
        return CaseRepositories(
            tokens=SqlAlchemyTokenStore(session),
            processes=SqlAlchemyProcessRecordRepository(session),
            events=SqlAlchemyStageChangeEventRepository(session),
            teams=SqlAlchemySalesTeamRepository(session),
            accounts=SqlAlchemyManagedAccountRepository(session),
        )


if TYPE_CHECKING:
    from casetrack.domain.ports.unit_of_work import CaseUnitOfWork

    _uow_check: CaseUnitOfWork = SqlAlchemyCaseUnitOfWork()
