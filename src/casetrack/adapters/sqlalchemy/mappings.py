"""SQLAlchemy mapping metadata for the casetrack domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from casetrack.domain.model import (
    ExternalToken,
    ManagedAccount,
    ProcessRecord,
    Region,
    Role,
    SalesTeam,
    StageChangeEvent,
    normalize_email,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class EmailListType(TypeDecorator[list[str]]):
    """Ordered list of lowercase email addresses stored as a JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[str] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        payload = [email for email in (normalize_email(item) for item in value) if email]
        return json.dumps(payload)

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[str]:
        _ = dialect
        if value is None:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        items = cast(list[Any], loaded)
        return [item for item in items if isinstance(item, str)]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Provider state --------------------------------------------------------------

external_token_table = Table(
    "external_token",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("token", Text, nullable=False),
    Column("expires_at", UTCDateTime(), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
)

# Process mirror --------------------------------------------------------------

process_record_table = Table(
    "process_record",
    mapper_registry.metadata,
    Column("process_id", Integer, primary_key=True, autoincrement=False),
    Column("case_number", String, nullable=True),
    Column("alternate_code", String, nullable=True),
    Column("process_class", String, nullable=True),
    Column("internal_stage", String, nullable=True),
    Column("client_stage", String, nullable=True),
    Column("process_category", String, nullable=True),
    Column("court_office", String, nullable=True),
    Column("plaintiff_name", String, nullable=True),
    Column("plaintiff_identifier", String, nullable=True),
    Column("defendant_name", String, nullable=True),
    Column("defendant_identifier", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index("ix_process_record_plaintiff_identifier", "plaintiff_identifier"),
    Index("ix_process_record_defendant_identifier", "defendant_identifier"),
    Index("ix_process_record_client_stage", "client_stage"),
)

# no foreign key to process_record: events outlive tombstoned processes
stage_change_event_table = Table(
    "stage_change_event",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("process_id", Integer, nullable=False),
    Column("case_number", String, nullable=True),
    Column("process_category", String, nullable=True),
    Column("court_office", String, nullable=True),
    Column("plaintiff_identifier", String, nullable=True),
    Column("defendant_name", String, nullable=True),
    Column("defendant_identifier", String, nullable=True),
    Column("previous_client_stage", String, nullable=False),
    Column("current_client_stage", String, nullable=False),
    Column("reported", Boolean, nullable=False, default=False),
    Column("reported_at", UTCDateTime(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_stage_change_event_reported_created_at", "reported", "created_at"),
    Index("ix_stage_change_event_process_id", "process_id"),
)

# Organisation ----------------------------------------------------------------

sales_team_table = Table(
    "sales_team",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("lead_email", String, nullable=False),
    Column("lead_role", Enum(Role, native_enum=False), nullable=False),
    Column("subordinate_emails", EmailListType(), nullable=False),
    Column("region", Enum(Region, native_enum=False), nullable=False),
    UniqueConstraint("lead_email", name="uq_sales_team_lead_email"),
)

managed_account_table = Table(
    "managed_account",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("code", String, nullable=False),
    Column("name", String, nullable=False),
    Column("identifier", String, nullable=False),
    Column("email", String, nullable=True),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("assigned_account_manager_email", String, nullable=True),
    UniqueConstraint("code", name="uq_managed_account_code"),
    Index("ix_managed_account_assigned_manager", "assigned_account_manager_email"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for domain entities."""

    mapper_registry.map_imperatively(ExternalToken, external_token_table)
    mapper_registry.map_imperatively(ProcessRecord, process_record_table)
    mapper_registry.map_imperatively(StageChangeEvent, stage_change_event_table)
    mapper_registry.map_imperatively(SalesTeam, sales_team_table)
    mapper_registry.map_imperatively(ManagedAccount, managed_account_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
