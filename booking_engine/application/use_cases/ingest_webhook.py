from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from booking_engine.application.dto.webhook_event import CalendlyWebhookDTO
from booking_engine.application.exceptions import InvalidInput, SignatureInvalid
from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.domain.entities.booking_record import BookingRecord, BookingSource, BookingStatus
from booking_engine.domain.entities.invitee_event import InviteeEvent
from booking_engine.infrastructure.calendly.webhook_verify import verify_signature

INVITEE_CREATED = "invitee.created"
INVITEE_CANCELED = "invitee.canceled"


@dataclass(frozen=True)
class IngestResult:
    action: str  # "created", "updated", "canceled", "ignored"
    created: bool = False
    updated: bool = False


def record_from_invitee(invitee: InviteeEvent, source: BookingSource, status: BookingStatus) -> BookingRecord:
    return BookingRecord(
        external_event_id=invitee.event_uri or invitee.invitee_uri,
        external_invitee_uri=invitee.invitee_uri or None,
        attendee_name=invitee.invitee_name,
        attendee_email=invitee.invitee_email,
        event_name=invitee.event_name,
        start_time=invitee.start_time,
        end_time=invitee.end_time,
        status=status,
        source=source,
    )


class IngestWebhookUseCase:
    def __init__(self, store: BookingStorePort, signing_key: str | None = None) -> None:
        self._store = store
        self._signing_key = signing_key
        self._logger = logging.getLogger(__name__)

    def ingest(self, raw_body: bytes, signature_header: str | None) -> IngestResult:
        """Verify, parse and apply one webhook delivery."""
        if not raw_body:
            raise InvalidInput("Missing body")
        if not verify_signature(raw_body, signature_header, self._signing_key):
            raise SignatureInvalid("Invalid signature")

        try:
            body = json.loads(raw_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise InvalidInput("Invalid webhook payload") from e
        if not isinstance(body, dict):
            raise InvalidInput("Invalid webhook payload")

        return self.handle_event(body.get("event"), body.get("payload"))

    def handle_event(self, event_type: str | None, payload: dict[str, Any] | None) -> IngestResult:
        if not event_type or not payload:
            raise InvalidInput("Invalid webhook payload")
        try:
            dto = CalendlyWebhookDTO(event=event_type, payload=payload)
        except ValidationError as e:
            raise InvalidInput("Invalid webhook payload") from e

        if event_type == INVITEE_CREATED:
            return self._created(dto.to_invitee_event())
        if event_type == INVITEE_CANCELED:
            return self._canceled(dto.to_invitee_event())

        self._logger.info("Ignoring webhook event", extra={"event_type": event_type})
        return IngestResult(action="ignored")

    def _created(self, invitee: InviteeEvent) -> IngestResult:
        if not invitee.invitee_uri and not invitee.event_uri:
            raise InvalidInput("Webhook payload has no invitee or event URI")

        result = self._store.upsert(
            record_from_invitee(invitee, BookingSource.synced_webhook, BookingStatus.active)
        )
        self._logger.info(
            "Webhook booking stored",
            extra={"event_type": INVITEE_CREATED, "invitee_uri": invitee.invitee_uri, "was_created": result.created},
        )
        if result.created:
            return IngestResult(action="created", created=True)
        return IngestResult(action="updated", updated=True)

    def _canceled(self, invitee: InviteeEvent) -> IngestResult:
        if not invitee.invitee_uri:
            return IngestResult(action="ignored")

        record = self._store.mark_canceled(invitee.invitee_uri)
        if record is None:
            # Invitee was never synced, e.g. booked before the webhook existed
            self._logger.info(
                "Cancel for unknown invitee",
                extra={"event_type": INVITEE_CANCELED, "invitee_uri": invitee.invitee_uri},
            )
            return IngestResult(action="ignored")

        self._logger.info(
            "Webhook booking canceled",
            extra={"event_type": INVITEE_CANCELED, "invitee_uri": invitee.invitee_uri},
        )
        return IngestResult(action="canceled", updated=True)
