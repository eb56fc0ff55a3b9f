from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from zoneinfo import ZoneInfo

from booking_engine.application.ports.calendar import CalendarPort
from booking_engine.application.utils.date_parser import parse_date
from booking_engine.application.utils.retry import RetryPolicy, retry_read
from booking_engine.domain.entities.time_slot import BusyInterval, TimeSlot


class SlotSequence:
    """
    Bookable slots for one day. Iteration is lazy and starts over on every
    pass, so the same sequence can be walked more than once.
    """

    def __init__(
        self,
        day: date,
        work_start: time,
        work_end: time,
        slot_duration: timedelta,
        timezone: ZoneInfo,
        busy_intervals: Iterable[BusyInterval],
        now: datetime,
    ) -> None:
        if slot_duration <= timedelta(0):
            raise ValueError("slot_duration must be positive")
        self._day = day
        self._work_start = work_start
        self._work_end = work_end
        self._slot_duration = slot_duration
        self._timezone = timezone
        self._busy = tuple(busy_intervals)
        self._now = now

    def __iter__(self) -> Iterator[TimeSlot]:
        is_today = self._day == self._now.astimezone(self._timezone).date()
        for slot in self._grid():
            if is_today and slot.end <= self._now:
                continue
            if any(slot.overlaps(busy) for busy in self._busy):
                continue
            yield slot

    def labels(self) -> Iterator[str]:
        for slot in self:
            yield slot.label

    def _grid(self) -> Iterator[TimeSlot]:
        # Wall-clock steps in the business timezone; end is computed in
        # absolute time so every slot lasts exactly slot_duration.
        cursor = datetime.combine(self._day, self._work_start)
        limit = datetime.combine(self._day, self._work_end)
        while cursor + self._slot_duration <= limit:
            start = cursor.replace(tzinfo=self._timezone)
            end = (start.astimezone(dt_timezone.utc) + self._slot_duration).astimezone(self._timezone)
            yield TimeSlot(start=start, end=end)
            cursor += self._slot_duration


def compute_availability(
    day: date,
    work_start: time,
    work_end: time,
    slot_duration: timedelta,
    timezone: ZoneInfo,
    busy_intervals: Iterable[BusyInterval],
    now: datetime,
) -> SlotSequence:
    return SlotSequence(day, work_start, work_end, slot_duration, timezone, busy_intervals, now)


class AvailabilityUseCase:
    def __init__(
        self,
        calendar: CalendarPort,
        timezone: ZoneInfo,
        work_start_hour: int = 9,
        work_end_hour: int = 17,
        slot_minutes: int = 60,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._calendar = calendar
        self._timezone = timezone
        self._work_start = time(hour=work_start_hour)
        self._work_end = time(hour=work_end_hour)
        self._slot_duration = timedelta(minutes=slot_minutes)
        self._retry_policy = retry_policy or RetryPolicy()
        self._clock = clock or (lambda: datetime.now(dt_timezone.utc))
        self._logger = logging.getLogger(__name__)

    def get_available_slots(self, date_str: str | None) -> list[str]:
        day = parse_date(date_str)
        day_start = datetime.combine(day, time.min, tzinfo=self._timezone)
        day_end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=self._timezone)

        busy = retry_read(
            lambda: self._calendar.list_busy_intervals(day_start, day_end),
            self._retry_policy,
            description="list_busy_intervals",
        )
        slots = compute_availability(
            day,
            self._work_start,
            self._work_end,
            self._slot_duration,
            self._timezone,
            busy,
            self._clock(),
        )
        labels = list(slots.labels())
        self._logger.info(
            "Availability computed",
            extra={"date": day.isoformat(), "busy_count": len(busy), "slot_count": len(labels)},
        )
        return labels
