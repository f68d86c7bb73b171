"""Public domain model surface."""

from __future__ import annotations

from casetrack.domain.model.detail import DocketEntry, PrecautionaryMeasure, ProcessDetail, Subject
from casetrack.domain.model.enums import (
    Capability,
    ClientStage,
    ParticipantRole,
    ProcessCategory,
    Region,
    Role,
)
from casetrack.domain.model.organization import (
    DEFAULT_ROLE_CAPABILITIES,
    ManagedAccount,
    Principal,
    SalesTeam,
    normalize_email,
)
from casetrack.domain.model.process import ExternalToken, ProcessRecord, StageChangeEvent

__all__ = [  # noqa: RUF022
    # process
    "ExternalToken",
    "ProcessRecord",
    "StageChangeEvent",
    # detail
    "DocketEntry",
    "PrecautionaryMeasure",
    "ProcessDetail",
    "Subject",
    # organization
    "DEFAULT_ROLE_CAPABILITIES",
    "ManagedAccount",
    "Principal",
    "SalesTeam",
    "normalize_email",
    # enums
    "Capability",
    "ClientStage",
    "ParticipantRole",
    "ProcessCategory",
    "Region",
    "Role",
]
