from __future__ import annotations

import logging
from typing import Any

from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.application.ports.scheduling_provider import SchedulingProviderPort
from booking_engine.application.use_cases.ingest_webhook import (
    INVITEE_CANCELED,
    INVITEE_CREATED,
    record_from_invitee,
)
from booking_engine.application.utils.date_parser import parse_provider_datetime
from booking_engine.domain.entities.booking_record import BookingSource, BookingStatus
from booking_engine.domain.entities.invitee_event import InviteeEvent, SyncSummary


def invitee_from_listing(invitee: dict[str, Any], event: dict[str, Any]) -> InviteeEvent:
    return InviteeEvent(
        invitee_uri=invitee.get("uri") or "",
        event_uri=event.get("uri") or "",
        invitee_name=invitee.get("name") or "",
        invitee_email=invitee.get("email") or "",
        event_name=event.get("name") or "",
        start_time=parse_provider_datetime(event.get("start_time")),
        end_time=parse_provider_datetime(event.get("end_time")),
        invitee_status=invitee.get("status"),
    )


class SyncBookingsUseCase:
    """
    Pull every scheduled event and invitee from the scheduling provider and
    upsert them into the booking store.

    Webhooks only fire for bookings made after the subscription was
    registered; this run covers everything before it and any delivery the
    webhook endpoint missed. Running it twice without provider changes creates
    nothing on the second pass.
    """

    def __init__(self, provider: SchedulingProviderPort, store: BookingStorePort) -> None:
        self._provider = provider
        self._store = store
        self._logger = logging.getLogger(__name__)

    def sync(self) -> SyncSummary:
        scope = self._provider.get_scope()
        self._logger.info("Backfill started", extra={"scope": scope.key})

        created = 0
        updated = 0
        total_events = 0
        for event in self._provider.iter_scheduled_events(scope):
            total_events += 1
            event_uri = event.get("uri")
            if not event_uri:
                continue
            for raw_invitee in self._provider.iter_invitees(event_uri):
                invitee = invitee_from_listing(raw_invitee, event)
                if not invitee.invitee_uri:
                    continue
                status = (
                    BookingStatus.canceled
                    if invitee.invitee_status == "canceled"
                    else BookingStatus.active
                )
                result = self._store.upsert(
                    record_from_invitee(invitee, BookingSource.synced_backfill, status)
                )
                if result.created:
                    created += 1
                else:
                    updated += 1

        summary = SyncSummary(created=created, updated=updated, total_events=total_events)
        self._logger.info(
            "Backfill finished",
            extra={"created_count": created, "updated_count": updated, "total_events": total_events},
        )
        return summary


class RegisterWebhookUseCase:
    def __init__(self, provider: SchedulingProviderPort) -> None:
        self._provider = provider
        self._logger = logging.getLogger(__name__)

    def register(self, webhook_url: str) -> dict[str, Any]:
        scope = self._provider.get_scope()
        subscription = self._provider.create_webhook_subscription(
            url=webhook_url,
            events=[INVITEE_CREATED, INVITEE_CANCELED],
            scope=scope,
        )
        self._logger.info("Webhook registered", extra={"url": webhook_url, "scope": scope.key})
        return {"webhook_url": webhook_url, "scope": scope.key, "subscription": subscription}
