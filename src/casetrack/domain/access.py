"""Resolve which processes a principal may see.

Visibility is expressed as a set of party identifiers. Commercial staff see the
processes of the client accounts assigned to them (or to their team), client
companies see their own processes through the identifier carried by the
principal, and global roles see everything.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from casetrack.domain.identifiers import matches_any
from casetrack.domain.model import Capability

if TYPE_CHECKING:
    from collections.abc import Iterable

    from casetrack.domain.model import Principal
    from casetrack.domain.ports.unit_of_work import CaseRepositories

log = getLogger(__name__)

_GLOBAL_CAPABILITIES = frozenset(
    {Capability.VIEW_ALL_PROCESSES, Capability.COMMERCIAL_VIEW_GLOBAL}
)


@dataclass(frozen=True, slots=True)
class AccessScope:
    is_global: bool = False
    allowed_identifiers: frozenset[str] = frozenset()

    @classmethod
    def everything(cls) -> AccessScope:
        return cls(is_global=True)

    @classmethod
    def nothing(cls) -> AccessScope:
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.is_global and not self.allowed_identifiers

    @property
    def identifier_filter(self) -> frozenset[str] | None:
        """Identifier restriction for store queries; ``None`` means unrestricted."""

        return None if self.is_global else self.allowed_identifiers


class AccessControlResolver:
    """Compute an ``AccessScope`` from a principal and the sales hierarchy."""

    def __init__(self, repositories: CaseRepositories) -> None:
        self._teams = repositories.teams
        self._accounts = repositories.accounts

    def resolve(self, principal: Principal) -> AccessScope:
        if principal.is_admin or principal.capabilities & _GLOBAL_CAPABILITIES:
            return AccessScope.everything()

        if principal.can(Capability.COMMERCIAL_VIEW_TEAM):
            if principal.email is None:
                return AccessScope.nothing()
            team = self._teams.get_by_lead(principal.email)
            if team is None:
                log.debug("%s has team visibility but leads no sales team", principal.email)
                return AccessScope.nothing()
            return self._scope_for_managers(team.subordinate_emails)

        if principal.can(Capability.COMMERCIAL_VIEW_OWN):
            if principal.email is None:
                return AccessScope.nothing()
            return self._scope_for_managers([principal.email])

        return AccessScope.nothing()

    def _scope_for_managers(self, emails: Iterable[str]) -> AccessScope:
        wanted = [email for email in emails if email]
        if not wanted:
            return AccessScope.nothing()
        identifiers = self._accounts.identifiers_for_managers(wanted)
        return AccessScope(allowed_identifiers=frozenset(i for i in identifiers if i))


def can_view_detail(
    principal: Principal,
    scope: AccessScope,
    subject_identifiers: Iterable[str],
) -> bool:
    """Detail rule: global scope, an identifier match with the principal, or an allowed subject."""

    if scope.is_global:
        return True
    subjects = [identifier for identifier in subject_identifiers if identifier]
    if principal.identifier and matches_any(principal.identifier, subjects):
        return True
    return any(subject in scope.allowed_identifiers for subject in subjects)


__all__ = ["AccessControlResolver", "AccessScope", "can_view_detail"]
