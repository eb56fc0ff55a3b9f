from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import date, datetime, time
from typing import Any
from urllib.parse import quote
from zoneinfo import ZoneInfo

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from booking_engine.application.exceptions import (
    BookingNotFound,
    ConfigurationMissing,
    ProviderTimeout,
    UnknownProviderError,
)
from booking_engine.application.ports.calendar import CalendarPort
from booking_engine.domain.entities.booking import BookingHandle, BookingStatusView
from booking_engine.domain.entities.time_slot import BusyInterval
from booking_engine.infrastructure.calendar.errors import classify_provider_error

SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
]
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


def normalize_private_key(raw: str | None) -> str | None:
    """Undo the quoting and escaping private keys pick up in .env files."""
    if not raw:
        return None
    key = re.sub(r"^[\"']|[\"']$", "", raw)
    key = key.replace("\\n", "\n")
    key = key.replace("\r\n", "\n").replace("\r", "\n")
    key = key.strip()
    return key or None


def validate_private_key(key: str | None) -> str:
    if not key:
        raise ConfigurationMissing("GOOGLE_PRIVATE_KEY environment variable is not set")
    if "BEGIN" not in key:
        raise ConfigurationMissing("Invalid private key format: missing BEGIN header")
    if "END" not in key:
        raise ConfigurationMissing("Invalid private key format: missing END footer")
    return key


class ServiceAccountTokenProvider:
    """Hands out bearer tokens for a service account, refreshing them when stale."""

    def __init__(
        self,
        client_email: str | None,
        private_key: str | None,
        delegated_user: str | None = None,
    ) -> None:
        if not client_email:
            raise ConfigurationMissing("GOOGLE_SERVICE_ACCOUNT_EMAIL environment variable is not set")
        key = validate_private_key(normalize_private_key(private_key))
        try:
            self._credentials = service_account.Credentials.from_service_account_info(
                {
                    "client_email": client_email,
                    "private_key": key,
                    "token_uri": GOOGLE_TOKEN_URI,
                },
                scopes=SCOPES,
                subject=delegated_user or None,
            )
        except ValueError as e:
            raise ConfigurationMissing(f"Invalid GOOGLE_PRIVATE_KEY: {e}") from e
        self._logger = logging.getLogger(__name__)

    def __call__(self) -> str:
        if not self._credentials.valid:
            self._logger.info("Refreshing Google service account token")
            self._credentials.refresh(GoogleAuthRequest())
        return self._credentials.token


class GoogleCalendarClient(CalendarPort):
    def __init__(
        self,
        calendar_id: str | None,
        token_provider: Callable[[], str],
        timezone: ZoneInfo,
        base_url: str = "https://www.googleapis.com/calendar/v3",
        timeout: float = 10.0,
        service_account_email: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        if not calendar_id:
            raise ConfigurationMissing("GOOGLE_CALENDAR_ID environment variable is not set")
        self._calendar_id = calendar_id
        self._token_provider = token_provider
        self._timezone = timezone
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._service_account_email = service_account_email
        self._client = client or httpx.Client(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def list_busy_intervals(self, time_min: datetime, time_max: datetime) -> list[BusyInterval]:
        params: dict[str, Any] = {
            "eventTypes": "default",
            "timeMin": time_min.isoformat(),
            "timeMax": time_max.isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
        }
        intervals: list[BusyInterval] = []
        while True:
            data = self._request("GET", self._events_path(), params=params, calendar_level=True).json()
            for item in data.get("items", []) or []:
                if item.get("status") == "cancelled":
                    continue
                interval = self._to_busy_interval(item)
                if interval is not None:
                    intervals.append(interval)
            page_token = data.get("nextPageToken")
            if not page_token:
                break
            params["pageToken"] = page_token

        self._logger.info(
            "Listed calendar events",
            extra={"date": time_min.date().isoformat(), "busy_count": len(intervals)},
        )
        return intervals

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
        tz_name = str(self._timezone)
        body: dict[str, Any] = {
            "summary": summary,
            "description": description,
            "start": {"dateTime": start.isoformat(), "timeZone": tz_name},
            "end": {"dateTime": end.isoformat(), "timeZone": tz_name},
            "attendees": [{"email": attendee_email}],
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": 30},
                    {"method": "popup", "minutes": 10},
                ],
            },
        }
        if event_id:
            body["id"] = event_id

        # sendUpdates=all is what makes the provider email the invitation
        response = self._request(
            "POST",
            self._events_path(),
            params={"sendUpdates": "all"},
            json=body,
            timeout=timeout,
        )
        data = response.json()
        created_id = data.get("id")
        if not created_id:
            raise UnknownProviderError("Failed to insert event", status_code=response.status_code)

        self._logger.info("Calendar event created", extra={"event_id": created_id})
        return BookingHandle(event_id=str(created_id), link=data.get("htmlLink"))

    def delete_event(self, event_id: str, timeout: float | None = None) -> None:
        self._request(
            "DELETE",
            self._events_path(event_id),
            params={"sendUpdates": "all"},
            timeout=timeout,
        )
        self._logger.info("Calendar event deleted", extra={"event_id": event_id})

    def get_event(self, event_id: str) -> BookingStatusView:
        data = self._request("GET", self._events_path(event_id)).json()
        # Deleted events stay readable with status "cancelled"
        if data.get("status") == "cancelled":
            raise BookingNotFound(f"Event {event_id} not found")

        attendees = data.get("attendees") or []
        if attendees:
            attendee = attendees[0]
            return BookingStatusView(
                event_id=data.get("id", event_id),
                summary=data.get("summary"),
                link=data.get("htmlLink"),
                attendee_email=attendee.get("email"),
                response_status=attendee.get("responseStatus") or "needsAction",
            )
        return BookingStatusView(
            event_id=data.get("id", event_id),
            summary=data.get("summary"),
            link=data.get("htmlLink"),
        )

    def _events_path(self, event_id: str | None = None) -> str:
        path = f"/calendars/{quote(self._calendar_id, safe='')}/events"
        if event_id:
            path += f"/{quote(event_id, safe='')}"
        return path

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        timeout: float | None = None,
        calendar_level: bool = False,
    ) -> httpx.Response:
        try:
            token = self._token_provider()
        except GoogleAuthError as e:
            self._logger.error("Calendar credentials rejected", extra={"method": method, "error": str(e)})
            raise classify_provider_error(None, str(e), self._service_account_email) from e
        headers = {"Authorization": f"Bearer {token}"}
        try:
            response = self._client.request(
                method,
                f"{self._base_url}{path}",
                params=params,
                json=json,
                headers=headers,
                timeout=timeout if timeout is not None else self._timeout,
            )
        except httpx.TimeoutException as e:
            self._logger.error("Calendar request timed out", extra={"method": method, "path": path})
            raise ProviderTimeout(f"Calendar provider timed out on {method} {path}") from e
        except httpx.TransportError as e:
            self._logger.error("Calendar request failed", extra={"method": method, "error": str(e)})
            raise UnknownProviderError(str(e), transient=True) from e

        if response.status_code >= 400:
            message = _error_message(response)
            self._logger.error(
                "Calendar provider error",
                extra={"method": method, "status": response.status_code, "error": message},
            )
            raise classify_provider_error(
                response.status_code,
                message,
                self._service_account_email,
                calendar_level=calendar_level,
            )
        return response

    def _to_busy_interval(self, item: dict[str, Any]) -> BusyInterval | None:
        start = _event_boundary(item.get("start") or {}, self._timezone)
        end = _event_boundary(item.get("end") or {}, self._timezone)
        if start is None or end is None:
            return None
        return BusyInterval(start=start, end=end)


def _event_boundary(boundary: dict[str, Any], timezone: ZoneInfo) -> datetime | None:
    if boundary.get("dateTime"):
        value = datetime.fromisoformat(boundary["dateTime"].replace("Z", "+00:00"))
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone)
        return value
    if boundary.get("date"):
        # All-day events run midnight to midnight in the business timezone
        return datetime.combine(date.fromisoformat(boundary["date"]), time.min, tzinfo=timezone)
    return None


def _error_message(response: httpx.Response) -> str:
    try:
        error = response.json().get("error")
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(error, dict):
        return str(error.get("message") or response.text)
    if error:
        return str(error)
    return response.text or f"HTTP {response.status_code}"

