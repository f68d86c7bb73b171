"""Sales organisation, managed client accounts and caller identities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from casetrack.domain.model.enums import Capability, Region, Role

if TYPE_CHECKING:
    from collections.abc import Iterable


def normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip().lower()
    return stripped or None


DEFAULT_ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    # admins are global through their role, not through a capability
    Role.ADMIN: frozenset(),
    Role.AFFI: frozenset({Capability.VIEW_ALL_PROCESSES}),
    Role.CLIENT_COMPANY: frozenset({Capability.VIEW_OWN_PROCESSES}),
    Role.COMMERCIAL_MANAGER: frozenset({Capability.COMMERCIAL_VIEW_GLOBAL}),
    Role.COMMERCIAL_DIRECTOR: frozenset({Capability.COMMERCIAL_VIEW_TEAM}),
    Role.ACCOUNT_MANAGER: frozenset({Capability.COMMERCIAL_VIEW_OWN}),
    Role.USER: frozenset(),
}


@dataclass(eq=False, kw_only=True)
class SalesTeam:
    """Two-level management tree entry: one lead and the account managers below them."""

    id: UUID = field(default_factory=uuid4)
    lead_email: str
    lead_role: Role = Role.COMMERCIAL_DIRECTOR
    subordinate_emails: list[str] = field(default_factory=list[str])
    region: Region = Region.NATIONAL

    def __post_init__(self) -> None:
        lead = normalize_email(self.lead_email)
        if lead is None:
            raise ValueError("Sales team lead email must not be blank")
        if self.lead_role not in {Role.COMMERCIAL_DIRECTOR, Role.COMMERCIAL_MANAGER}:
            raise ValueError(f"Unsupported sales team lead role: {self.lead_role}")
        self.lead_email = lead
        self.subordinate_emails = _dedupe_emails(self.subordinate_emails)


@dataclass(eq=False, kw_only=True)
class ManagedAccount:
    """A client company: digest recipient and unit of commercial assignment."""

    id: UUID = field(default_factory=uuid4)
    code: str
    name: str
    identifier: str
    email: str | None = None
    is_active: bool = True
    assigned_account_manager_email: str | None = None

    def __post_init__(self) -> None:
        self.identifier = self.identifier.strip()
        self.email = normalize_email(self.email)
        self.assigned_account_manager_email = normalize_email(
            self.assigned_account_manager_email
        )


@dataclass(frozen=True, kw_only=True)
class Principal:
    """Resolved identity and authorization context of a caller."""

    role: Role | None
    capabilities: frozenset[Capability] = frozenset()
    email: str | None = None
    identifier: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

    @classmethod
    def from_claims(
        cls,
        *,
        role: str | None,
        permissions: Iterable[str] | None = None,
        email: str | None = None,
        identifier: str | None = None,
    ) -> Principal:
        """Build a principal from the auth layer's role and permission strings.

        Unknown roles and permission strings are dropped. When ``permissions`` is
        ``None`` the role's default capability set applies.
        """

        parsed_role = _parse_role(role)
        if permissions is None:
            capabilities = (
                DEFAULT_ROLE_CAPABILITIES[parsed_role] if parsed_role is not None else frozenset()
            )
        else:
            capabilities = frozenset(_parse_capabilities(permissions))
        cleaned_identifier = identifier.strip() if identifier else None
        return cls(
            role=parsed_role,
            capabilities=capabilities,
            email=normalize_email(email),
            identifier=cleaned_identifier or None,
        )


def _parse_role(value: str | None) -> Role | None:
    if value is None:
        return None
    try:
        return Role(value.strip().lower())
    except ValueError:
        return None


def _parse_capabilities(values: Iterable[str]) -> Iterable[Capability]:
    for value in values:
        try:
            yield Capability(value.strip().lower())
        except ValueError:
            continue


def _dedupe_emails(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        email = normalize_email(value)
        if email is not None and email not in seen:
            seen.append(email)
    return seen
