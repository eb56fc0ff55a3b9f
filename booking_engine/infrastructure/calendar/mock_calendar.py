from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from booking_engine.application.exceptions import BookingConflict, BookingNotFound
from booking_engine.application.ports.calendar import CalendarPort
from booking_engine.domain.entities.booking import BookingHandle, BookingStatusView
from booking_engine.domain.entities.time_slot import BusyInterval


@dataclass
class MockEvent:
    start: datetime
    end: datetime
    summary: str
    attendee_email: str | None = None
    response_status: str = "needsAction"


class MockCalendar(CalendarPort):
    def __init__(self) -> None:
        self._events: dict[str, MockEvent] = {}
        self._counter = 0
        self._logger = logging.getLogger(__name__)

    def add_busy(self, start: datetime, end: datetime, summary: str = "Busy") -> str:
        self._counter += 1
        event_id = f"mock_busy_{self._counter}"
        self._events[event_id] = MockEvent(start=start, end=end, summary=summary)
        return event_id

    def list_busy_intervals(self, time_min: datetime, time_max: datetime) -> list[BusyInterval]:
        return [
            BusyInterval(start=event.start, end=event.end)
            for event in self._events.values()
            if event.start < time_max and event.end > time_min
        ]

    def create_event(
        self,
        start: datetime,
        end: datetime,
        summary: str,
        description: str,
        attendee_email: str,
        event_id: str | None = None,
        timeout: float | None = None,
    ) -> BookingHandle:
        if event_id and event_id in self._events:
            raise BookingConflict(f"Event {event_id} already exists")
        if not event_id:
            self._counter += 1
            event_id = f"mock_event_{self._counter}"
        self._events[event_id] = MockEvent(
            start=start,
            end=end,
            summary=summary,
            attendee_email=attendee_email,
        )
        self._logger.info(
            "Mock calendar event created",
            extra={"event_id": event_id, "start": start.isoformat(), "end": end.isoformat()},
        )
        return BookingHandle(event_id=event_id, link=f"https://calendar.example.com/event?eid={event_id}")

    def delete_event(self, event_id: str, timeout: float | None = None) -> None:
        if event_id not in self._events:
            raise BookingNotFound("Event not found or already deleted")
        del self._events[event_id]
        self._logger.info("Mock calendar event deleted", extra={"event_id": event_id})

    def get_event(self, event_id: str) -> BookingStatusView:
        event = self._events.get(event_id)
        if event is None:
            raise BookingNotFound("Event not found")
        link = f"https://calendar.example.com/event?eid={event_id}"
        if event.attendee_email:
            return BookingStatusView(
                event_id=event_id,
                summary=event.summary,
                link=link,
                attendee_email=event.attendee_email,
                response_status=event.response_status,
            )
        return BookingStatusView(event_id=event_id, summary=event.summary, link=link)
