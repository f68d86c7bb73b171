"""Process records mirrored from the case-management provider and their stage changes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import ClassVar
from uuid import UUID, uuid4


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False, kw_only=True)
class ExternalToken:
    """Bearer token issued by the provider in exchange for the API key."""

    id: UUID = field(default_factory=uuid4)
    token: str
    expires_at: datetime
    created_at: datetime = field(default_factory=_utcnow)

    def is_usable(self, *, now: datetime, grace: timedelta) -> bool:
        """Return whether the token stays valid for at least ``grace`` past ``now``."""

        return self.expires_at - now > grace


@dataclass(eq=False, kw_only=True)
class ProcessRecord:
    """Canonical local copy of one provider case, keyed by ``process_id``."""

    # attributes replaced wholesale by each reconciliation run
    SNAPSHOT_FIELDS: ClassVar[tuple[str, ...]] = (
        "case_number",
        "alternate_code",
        "process_class",
        "internal_stage",
        "client_stage",
        "process_category",
        "court_office",
        "plaintiff_name",
        "plaintiff_identifier",
        "defendant_name",
        "defendant_identifier",
    )

    process_id: int
    case_number: str | None = None
    alternate_code: str | None = None
    process_class: str | None = None
    internal_stage: str | None = None
    # derived from process_class and internal_stage at reconciliation time
    client_stage: str | None = None
    process_category: str | None = None
    court_office: str | None = None
    plaintiff_name: str | None = None
    plaintiff_identifier: str | None = None
    defendant_name: str | None = None
    defendant_identifier: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def subject_identifiers(self) -> tuple[str, ...]:
        return tuple(
            value
            for value in (self.plaintiff_identifier, self.defendant_identifier)
            if value
        )

    def differs_from(self, other: ProcessRecord) -> bool:
        return any(
            getattr(self, name) != getattr(other, name) for name in self.SNAPSHOT_FIELDS
        )

    def apply_snapshot(self, other: ProcessRecord, *, now: datetime) -> bool:
        """Copy snapshot attributes from ``other``; return whether anything changed."""

        if not self.differs_from(other):
            return False
        for name in self.SNAPSHOT_FIELDS:
            setattr(self, name, getattr(other, name))
        self.updated_at = now
        return True


@dataclass(eq=False, kw_only=True)
class StageChangeEvent:
    """A reportable client-facing stage transition for one process."""

    id: UUID = field(default_factory=uuid4)
    process_id: int
    case_number: str | None = None
    process_category: str | None = None
    court_office: str | None = None
    plaintiff_identifier: str | None = None
    defendant_name: str | None = None
    defendant_identifier: str | None = None
    previous_client_stage: str
    current_client_stage: str
    reported: bool = False
    reported_at: datetime | None = None
    created_at: datetime = field(default_factory=_utcnow)

    def mark_reported(self, *, now: datetime) -> None:
        self.reported = True
        self.reported_at = now

    def is_expired(self, *, now: datetime, retention: timedelta) -> bool:
        return now - self.created_at >= retention
