from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from casetrack.adapters.sqlalchemy import prepare_engine
from casetrack.adapters.sqlalchemy.unit_of_work import SqlAlchemyCaseUnitOfWork, shutdown, startup
from casetrack.domain.reconciliation.lease import InProcessRunLease
from tests.helpers.cases import FakeCaseStore, FakeCaseUnitOfWork, fake_unit_of_work_factory

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    prepare_engine(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyCaseUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyCaseUnitOfWork:
        return SqlAlchemyCaseUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def case_store() -> FakeCaseStore:
    return FakeCaseStore()


@pytest.fixture
def fake_uow(case_store: FakeCaseStore) -> Callable[[], FakeCaseUnitOfWork]:
    return fake_unit_of_work_factory(case_store)


@pytest.fixture
def run_lease() -> InProcessRunLease:
    return InProcessRunLease()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 14, 15, 0, tzinfo=UTC)
