from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from booking_engine.domain.entities.booking import BookingHandle, BookingStatusView
from booking_engine.domain.entities.time_slot import BusyInterval


class CalendarPort(ABC):
    @abstractmethod
    def list_busy_intervals(self, time_min: datetime, time_max: datetime) -> list[BusyInterval]:
        """List intervals occupied by existing events between time_min and time_max."""
        raise NotImplementedError

    @abstractmethod
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
        """Create an event and email an invitation to the attendee."""
        raise NotImplementedError

    @abstractmethod
    def delete_event(self, event_id: str, timeout: float | None = None) -> None:
        """Cancel an event and notify its attendees."""
        raise NotImplementedError

    @abstractmethod
    def get_event(self, event_id: str) -> BookingStatusView:
        """Fetch an event with its first attendee's response status."""
        raise NotImplementedError
