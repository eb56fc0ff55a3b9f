from dataclasses import dataclass


@dataclass(frozen=True)
class BookingHandle:
    event_id: str
    link: str | None = None


@dataclass(frozen=True)
class BookingStatusView:
    event_id: str
    summary: str | None = None
    link: str | None = None
    attendee_email: str | None = None
    response_status: str | None = None  # "needsAction", "accepted", "declined", "tentative"
