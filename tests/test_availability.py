"""
Tests for slot generation and busy-interval filtering.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from booking_engine.application.exceptions import InvalidInput
from booking_engine.application.use_cases.availability import AvailabilityUseCase, compute_availability
from booking_engine.application.utils.retry import RetryPolicy
from booking_engine.domain.entities.time_slot import BusyInterval
from booking_engine.infrastructure.calendar.mock_calendar import MockCalendar

BERLIN = ZoneInfo("Europe/Berlin")
HOUR = timedelta(minutes=60)
EARLIER = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _berlin(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=BERLIN)


def test_busy_hour_is_removed_from_working_day():
    day = date(2026, 3, 10)
    busy = [BusyInterval(start=_berlin(day, 10), end=_berlin(day, 11))]

    slots = compute_availability(day, time(9), time(17), HOUR, BERLIN, busy, EARLIER)

    assert list(slots.labels()) == ["09:00", "11:00", "12:00", "13:00", "14:00", "15:00", "16:00"]


def test_slots_never_overlap_busy_intervals_and_last_exactly_one_slot():
    day = date(2026, 6, 3)
    busy_sets = [
        [],
        [BusyInterval(_berlin(day, 9, 30), _berlin(day, 9, 45))],
        [BusyInterval(_berlin(day, 8), _berlin(day, 9, 1)), BusyInterval(_berlin(day, 16, 59), _berlin(day, 18))],
        [BusyInterval(_berlin(day, 12), _berlin(day, 12)), BusyInterval(_berlin(day, 13, 15), _berlin(day, 15, 45))],
        [BusyInterval(_berlin(day - timedelta(days=1), 0), _berlin(day + timedelta(days=1), 0))],
    ]
    for duration in (timedelta(minutes=30), HOUR, timedelta(minutes=90)):
        for busy in busy_sets:
            slots = list(compute_availability(day, time(9), time(17), duration, BERLIN, busy, EARLIER))
            for slot in slots:
                assert slot.end.astimezone(timezone.utc) - slot.start.astimezone(timezone.utc) == duration
                assert slot.end <= _berlin(day, 17)
                for interval in busy:
                    assert not (slot.start < interval.end and slot.end > interval.start)


def test_fully_booked_day_is_an_empty_result():
    day = date(2026, 6, 3)
    busy = [BusyInterval(_berlin(day, 0), _berlin(day, 23, 59))]

    assert list(compute_availability(day, time(9), time(17), HOUR, BERLIN, busy, EARLIER).labels()) == []


def test_elapsed_slots_are_dropped_today():
    day = date(2026, 3, 10)
    now = _berlin(day, 12, 30)

    slots = list(compute_availability(day, time(9), time(17), HOUR, BERLIN, [], now))

    assert [s.label for s in slots] == ["12:00", "13:00", "14:00", "15:00", "16:00"]
    assert all(slot.end > now for slot in slots)


def test_today_is_decided_in_business_timezone():
    day = date(2026, 3, 10)
    # 23:30 UTC on the 9th is already 00:30 on the 10th in Berlin
    now = datetime(2026, 3, 9, 23, 30, tzinfo=timezone.utc)

    slots = list(compute_availability(day, time(0), time(3), HOUR, BERLIN, [], now))

    assert [s.label for s in slots] == ["00:00", "01:00", "02:00"]
    slots = list(compute_availability(day, time(0), time(3), HOUR, BERLIN, [], now + timedelta(hours=1)))
    assert [s.label for s in slots] == ["01:00", "02:00"]


def test_sequence_can_be_iterated_again():
    day = date(2026, 3, 10)
    slots = compute_availability(day, time(9), time(12), HOUR, BERLIN, [], EARLIER)

    assert list(slots.labels()) == ["09:00", "10:00", "11:00"]
    assert list(slots.labels()) == ["09:00", "10:00", "11:00"]


def test_slot_durations_hold_across_dst_change():
    day = date(2026, 10, 25)  # Berlin falls back from CEST to CET at 03:00

    slots = list(compute_availability(day, time(0), time(6), HOUR, BERLIN, [], EARLIER))

    assert slots
    for slot in slots:
        assert slot.end.astimezone(timezone.utc) - slot.start.astimezone(timezone.utc) == HOUR


def test_use_case_reads_busy_time_from_calendar():
    calendar = MockCalendar()
    day = date(2026, 3, 10)
    calendar.add_busy(_berlin(day, 10), _berlin(day, 11))
    calendar.add_busy(_berlin(day, 14, 30), _berlin(day, 15))
    calendar.add_busy(_berlin(day + timedelta(days=1), 9), _berlin(day + timedelta(days=1), 17))
    use_case = AvailabilityUseCase(
        calendar=calendar,
        timezone=BERLIN,
        retry_policy=RetryPolicy(base_delay_seconds=0),
        clock=lambda: EARLIER,
    )

    assert use_case.get_available_slots("2026-03-10") == ["09:00", "11:00", "12:00", "13:00", "15:00", "16:00"]


@pytest.mark.parametrize("value", ["", "10-03-2026", "2026-3-10", "2026-02-30", "tomorrow", None])
def test_use_case_rejects_malformed_dates(value):
    use_case = AvailabilityUseCase(calendar=MockCalendar(), timezone=BERLIN)

    with pytest.raises(InvalidInput):
        use_case.get_available_slots(value)
