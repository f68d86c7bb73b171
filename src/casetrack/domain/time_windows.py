"""Calendar-day windows in a local timezone, resolved to UTC bounds."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from datetime import tzinfo


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError("Time window values must include timezone information")
    return value.astimezone(UTC)


@dataclass(frozen=True)
class DayWindow:
    """One local calendar day as a half-open UTC interval ``[start, end)``."""

    day: date
    start: datetime
    end: datetime

    @property
    def label(self) -> str:
        return self.day.isoformat()

    def contains(self, moment: datetime) -> bool:
        instant = _ensure_aware(moment)
        return self.start <= instant < self.end


def day_window(day: date, *, timezone: tzinfo) -> DayWindow:
    """Resolve ``day`` in ``timezone``; DST shifts make some days 23 or 25 hours long."""

    local_start = datetime.combine(day, time.min, tzinfo=timezone)
    local_end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=timezone)
    return DayWindow(day=day, start=local_start.astimezone(UTC), end=local_end.astimezone(UTC))


def previous_day_window(
    *,
    timezone: tzinfo,
    now: datetime | None = None,
    clock: Clock = _utcnow,
) -> DayWindow:
    """Return the local calendar day before the one containing ``now``."""

    anchor = _ensure_aware(now) if now is not None else _ensure_aware(clock())
    local_today = anchor.astimezone(timezone).date()
    return day_window(local_today - timedelta(days=1), timezone=timezone)


__all__ = ["Clock", "DayWindow", "day_window", "previous_day_window"]
