from __future__ import annotations

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

import pytest

from casetrack.domain.time_windows import Clock, day_window, previous_day_window

BOGOTA = ZoneInfo("America/Bogota")


def _make_clock(reference: datetime) -> Clock:
    def _clock() -> datetime:
        return reference

    return _clock


def test_day_window_resolves_local_midnights_to_utc() -> None:
    window = day_window(date(2024, 3, 13), timezone=BOGOTA)

    assert window.start == datetime(2024, 3, 13, 5, tzinfo=UTC)
    assert window.end == datetime(2024, 3, 14, 5, tzinfo=UTC)
    assert window.label == "2024-03-13"


def test_previous_day_window_uses_local_calendar_day() -> None:
    # 02:00 UTC on the 14th is still the 13th in Bogota
    now = datetime(2024, 3, 14, 2, tzinfo=UTC)

    window = previous_day_window(timezone=BOGOTA, now=now)

    assert window.day == date(2024, 3, 12)


def test_previous_day_window_falls_back_to_clock() -> None:
    clock = _make_clock(datetime(2024, 3, 14, 15, tzinfo=UTC))

    window = previous_day_window(timezone=BOGOTA, clock=clock)

    assert window.label == "2024-03-13"


def test_day_window_spans_dst_changes() -> None:
    berlin = ZoneInfo("Europe/Berlin")

    window = day_window(date(2024, 3, 31), timezone=berlin)

    assert (window.end - window.start).total_seconds() == 23 * 3600


def test_window_contains_is_half_open() -> None:
    window = day_window(date(2024, 3, 13), timezone=BOGOTA)

    assert window.contains(window.start)
    assert not window.contains(window.end)


def test_time_window_rejects_naive_datetimes() -> None:
    with pytest.raises(ValueError, match="timezone information"):
        previous_day_window(timezone=BOGOTA, now=datetime(2024, 3, 14, 12))  # noqa: DTZ001
