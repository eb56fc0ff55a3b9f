from __future__ import annotations

import base64
import hashlib
import logging
from datetime import timedelta, timezone as dt_timezone
from zoneinfo import ZoneInfo

from booking_engine.application.exceptions import BookingConflict, BookingNotFound, InvalidInput
from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.application.ports.calendar import CalendarPort
from booking_engine.application.utils.date_parser import localize, parse_date, parse_time
from booking_engine.application.utils.retry import RetryPolicy, retry_read
from booking_engine.domain.entities.booking import BookingHandle, BookingStatusView
from booking_engine.domain.entities.booking_record import BookingRecord, BookingSource, BookingStatus


def event_id_for_key(idempotency_key: str) -> str:
    """
    Derive a provider event id from a caller's idempotency key.
    Event ids may only use base32hex characters (a-v, 0-9).
    """
    digest = hashlib.sha256(idempotency_key.encode("utf-8")).digest()
    return base64.b32hexencode(digest).decode("ascii").rstrip("=").lower()


class BookingUseCase:
    def __init__(
        self,
        calendar: CalendarPort,
        store: BookingStorePort,
        timezone: ZoneInfo,
        default_timeout: float = 10.0,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._calendar = calendar
        self._store = store
        self._timezone = timezone
        self._default_timeout = default_timeout
        self._retry_policy = retry_policy or RetryPolicy()
        self._logger = logging.getLogger(__name__)

    def create_booking(
        self,
        name: str,
        email: str,
        date: str,
        time: str,
        duration_minutes: int,
        timeout: float | None = None,
        idempotency_key: str | None = None,
    ) -> BookingHandle:
        """
        Create the provider event and email the attendee an invitation.
        Without an idempotency key every call creates a new event; with one,
        a repeated call returns the event created by the first.
        """
        if not name or not email or not date or not time or not duration_minutes:
            raise InvalidInput(
                "Missing required fields: name, email, date, time, and duration are required"
            )
        if "@" not in email:
            raise InvalidInput(f"Invalid email address: {email}")
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
            raise InvalidInput("Duration must be a positive number of minutes")

        start = localize(parse_date(date), parse_time(time), self._timezone)
        end = (start.astimezone(dt_timezone.utc) + timedelta(minutes=duration_minutes)).astimezone(self._timezone)
        summary = f"Meeting with {name}"
        event_id = event_id_for_key(idempotency_key) if idempotency_key else None

        try:
            handle = self._calendar.create_event(
                start=start,
                end=end,
                summary=summary,
                description=f"Booked via website\nContact: {name} ({email})",
                attendee_email=email,
                event_id=event_id,
                timeout=timeout if timeout is not None else self._default_timeout,
            )
        except BookingConflict:
            if event_id is None:
                raise
            handle = self._replay(event_id)

        self._record(
            BookingRecord(
                external_event_id=handle.event_id,
                attendee_name=name,
                attendee_email=email,
                event_name=summary,
                start_time=start,
                end_time=end,
                status=BookingStatus.active,
                source=BookingSource.direct,
            )
        )
        self._logger.info("Booking created", extra={"event_id": handle.event_id, "date": date})
        return handle

    def delete_booking(self, event_id: str | None, timeout: float | None = None) -> dict[str, object]:
        if not event_id:
            raise InvalidInput("Event ID is required")

        try:
            self._calendar.delete_event(
                event_id,
                timeout=timeout if timeout is not None else self._default_timeout,
            )
        except BookingNotFound:
            # Event is already gone on the provider side
            self._store.mark_canceled(event_id)
            raise
        if self._store.mark_canceled(event_id) is None:
            self._logger.info("Deleted booking had no local record", extra={"event_id": event_id})
        self._logger.info("Booking deleted", extra={"event_id": event_id})
        return {"success": True, "message": "Event deleted successfully"}

    def get_booking_status(self, event_id: str | None) -> BookingStatusView:
        if not event_id:
            raise InvalidInput("Event ID is required")
        return retry_read(
            lambda: self._calendar.get_event(event_id),
            self._retry_policy,
            description="get_event",
        )

    def _replay(self, event_id: str) -> BookingHandle:
        try:
            existing = self._calendar.get_event(event_id)
        except BookingNotFound as e:
            raise BookingConflict("Idempotency key was already used for a canceled booking") from e
        self._logger.info("Returning existing booking for repeated request", extra={"event_id": event_id})
        return BookingHandle(event_id=existing.event_id, link=existing.link)

    def _record(self, record: BookingRecord) -> None:
        # Provider event exists at this point; store failures are logged, not raised
        try:
            self._store.upsert(record)
        except Exception:
            self._logger.exception(
                "Failed to record direct booking",
                extra={"event_id": record.external_event_id},
            )
