from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


class BookingStatus(str, Enum):
    active = "active"
    canceled = "canceled"


class BookingSource(str, Enum):
    direct = "direct"
    synced_webhook = "synced_webhook"
    synced_backfill = "synced_backfill"


@dataclass(frozen=True)
class BookingRecord:
    external_event_id: str
    attendee_name: str = ""
    attendee_email: str = ""
    event_name: str = ""
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: BookingStatus = BookingStatus.active
    source: BookingSource = BookingSource.direct
    external_invitee_uri: str | None = None
    notes: str | None = None  # operator-owned, never overwritten by sync
    updated_at: float | None = None

    @property
    def dedup_key(self) -> str:
        return self.external_invitee_uri or self.external_event_id

    def merged_into(self, existing: BookingRecord) -> BookingRecord:
        """Overlay this record's informational fields onto an existing one.

        Provenance, notes, a canceled status and updated_at survive from the
        existing record; stores restamp updated_at only when something changed.
        """
        status = self.status
        if existing.status == BookingStatus.canceled:
            status = BookingStatus.canceled
        return replace(
            self,
            status=status,
            source=existing.source,
            notes=existing.notes,
            updated_at=existing.updated_at,
        )


@dataclass(frozen=True)
class UpsertResult:
    record: BookingRecord
    created: bool
