"""Port for delivering the daily digest."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from casetrack.domain.digest import DigestRow


@runtime_checkable
class Mailer(Protocol):
    """Sends one digest mail. An empty ``changes`` sequence means "no changes"."""

    def send_digest(
        self,
        recipient_email: str,
        changes: Sequence[DigestRow],
        period_label: str,
    ) -> None: ...


__all__ = ["Mailer"]
