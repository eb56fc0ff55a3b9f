from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime

from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.domain.entities.booking_record import BookingRecord, BookingStatus, UpsertResult


class MemoryBookingStore(BookingStorePort):
    def __init__(self) -> None:
        self._records: dict[str, BookingRecord] = {}
        self._lock = threading.Lock()

    def find(self, key: str) -> BookingRecord | None:
        with self._lock:
            return self._records.get(key)

    def upsert(self, record: BookingRecord) -> UpsertResult:
        key = record.dedup_key
        with self._lock:
            existing = self._records.get(key)
            if existing is not None:
                record = record.merged_into(existing)
            if record != existing:
                record = replace(record, updated_at=datetime.now().timestamp())
                self._records[key] = record
            return UpsertResult(record=record, created=existing is None)

    def mark_canceled(self, key: str) -> BookingRecord | None:
        with self._lock:
            existing = self._records.get(key)
            if existing is None:
                return None
            if existing.status != BookingStatus.canceled:
                existing = replace(
                    existing,
                    status=BookingStatus.canceled,
                    updated_at=datetime.now().timestamp(),
                )
                self._records[key] = existing
            return existing

    def list_records(self) -> list[BookingRecord]:
        with self._lock:
            return list(self._records.values())
