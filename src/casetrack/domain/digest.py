"""Daily stage-change digest for client accounts.

One run is labelled with the previous local calendar day and picks up every
unreported event created before that day ends, back to the retention horizon.
Every active account with an email gets exactly one mail, listing its
processes' consolidated stage changes or saying there were none. Events are
marked reported only when every recipient they were selected for got its mail,
so a failed send is retried by the next run.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from casetrack.domain.identifiers import identifier_belongs_to
from casetrack.domain.time_windows import previous_day_window

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import tzinfo
    from uuid import UUID

    from casetrack.domain.model import ManagedAccount, StageChangeEvent
    from casetrack.domain.ports.notifications import Mailer
    from casetrack.domain.ports.unit_of_work import CaseUnitOfWork

log = getLogger(__name__)

DEFAULT_RETENTION = timedelta(days=30)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class DigestRow:
    """One process line of a digest mail."""

    process_id: int
    case_number: str | None
    process_category: str | None
    court_office: str | None
    plaintiff_identifier: str | None
    defendant_name: str | None
    defendant_identifier: str | None
    previous_client_stage: str
    current_client_stage: str
    changed_at: datetime


@dataclass(slots=True)
class DigestResult:
    period_label: str
    recipients: int = 0
    sent: int = 0
    failed: int = 0
    events_reported: int = 0
    purged: int = 0


def consolidate(events: Iterable[StageChangeEvent]) -> list[DigestRow]:
    """Collapse events per process: earliest previous stage, latest current stage and metadata."""

    by_process: dict[int, list[StageChangeEvent]] = {}
    for event in events:
        by_process.setdefault(event.process_id, []).append(event)

    rows: list[DigestRow] = []
    for process_id in sorted(by_process):
        ordered = sorted(by_process[process_id], key=lambda e: e.created_at)
        first, last = ordered[0], ordered[-1]
        rows.append(
            DigestRow(
                process_id=process_id,
                case_number=last.case_number,
                process_category=last.process_category,
                court_office=last.court_office,
                plaintiff_identifier=last.plaintiff_identifier,
                defendant_name=last.defendant_name,
                defendant_identifier=last.defendant_identifier,
                previous_client_stage=first.previous_client_stage,
                current_client_stage=last.current_client_stage,
                changed_at=last.created_at,
            )
        )
    return rows


def events_for_recipient(
    recipient: ManagedAccount,
    events: Iterable[StageChangeEvent],
) -> list[StageChangeEvent]:
    return [
        event
        for event in events
        if identifier_belongs_to(recipient.identifier, event.plaintiff_identifier)
    ]


class DigestNotifier:
    def __init__(
        self,
        unit_of_work_factory: Callable[[], CaseUnitOfWork],
        mailer: Mailer,
        *,
        timezone: tzinfo,
        retention: timedelta = DEFAULT_RETENTION,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._mailer = mailer
        self._timezone = timezone
        self._retention = retention
        self._clock = clock

    def run(self, now: datetime | None = None) -> DigestResult:
        """Send the digest for the local day before ``now`` (defaults to the clock)."""

        now = now or self._clock()
        window = previous_day_window(timezone=self._timezone, now=now)
        horizon = now - self._retention
        result = DigestResult(period_label=window.label)

        with self._unit_of_work_factory() as uow:
            result.purged = uow.repositories.events.purge_created_before(horizon)
            recipients = uow.repositories.accounts.active_recipients()
            pending = uow.repositories.events.unreported_between(horizon, window.end)
            uow.commit()

        result.recipients = len(recipients)
        delivered: set[UUID] = set()
        undelivered: set[UUID] = set()
        for recipient in recipients:
            if recipient.email is None:
                continue
            selected = events_for_recipient(recipient, pending)
            rows = consolidate(selected)
            try:
                self._mailer.send_digest(recipient.email, rows, window.label)
            except Exception:
                result.failed += 1
                log.exception("Digest send to %s (%s) failed", recipient.email, recipient.code)
                undelivered.update(event.id for event in selected)
                continue
            result.sent += 1
            delivered.update(event.id for event in selected)

        delivered -= undelivered
        if delivered:
            result.events_reported = self._mark_reported(delivered, now=now)

        log.info(
            "Digest %s finished: recipients=%s, sent=%s, failed=%s, reported=%s, purged=%s",
            result.period_label,
            result.recipients,
            result.sent,
            result.failed,
            result.events_reported,
            result.purged,
        )
        return result

    def _mark_reported(self, event_ids: set[UUID], *, now: datetime) -> int:
        with self._unit_of_work_factory() as uow:
            events = uow.repositories.events.get_many(event_ids)
            for event in events:
                event.mark_reported(now=now)
            uow.commit()
        return len(events)


__all__ = ["DigestNotifier", "DigestResult", "DigestRow", "consolidate", "events_for_recipient"]
