from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from booking_engine.application.utils.date_parser import parse_provider_datetime
from booking_engine.domain.entities.invitee_event import InviteeEvent


class CalendlyWebhookDTO(BaseModel):
    event: str | None = None
    payload: dict[str, Any] | None = None

    def to_invitee_event(self) -> InviteeEvent:
        """
        Normalize the payload into one canonical record.
        The scheduled event arrives either as a nested object carrying its own
        start_time/end_time/uri, or as a bare URI with the times alongside it
        on the payload (or under event_details).
        """
        p = self.payload or {}
        invitee = p.get("invitee") if isinstance(p.get("invitee"), dict) else p
        event_obj = p.get("event")

        if isinstance(event_obj, dict):
            start_time = event_obj.get("start_time")
            end_time = event_obj.get("end_time")
            event_uri = event_obj.get("uri") or ""
        else:
            details = p.get("event_details") if isinstance(p.get("event_details"), dict) else {}
            start_time = p.get("start_time") or details.get("start_time")
            end_time = p.get("end_time") or details.get("end_time")
            event_uri = event_obj if isinstance(event_obj, str) else ""

        event_type = p.get("event_type") if isinstance(p.get("event_type"), dict) else {}
        if isinstance(event_obj, dict) and not event_type.get("name"):
            event_name = event_obj.get("name") or p.get("event_type_name") or ""
        else:
            event_name = event_type.get("name") or p.get("event_type_name") or ""

        return InviteeEvent(
            invitee_uri=invitee.get("uri") or p.get("uri") or "",
            event_uri=event_uri,
            invitee_name=invitee.get("name") or p.get("name") or "",
            invitee_email=invitee.get("email") or p.get("email") or "",
            event_name=event_name,
            start_time=parse_provider_datetime(start_time),
            end_time=parse_provider_datetime(end_time),
            invitee_status=invitee.get("status") or p.get("status"),
        )
