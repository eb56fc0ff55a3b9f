from __future__ import annotations

import fcntl
import json
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.domain.entities.booking_record import (
    BookingRecord,
    BookingSource,
    BookingStatus,
    UpsertResult,
)


class JsonBookingStore(BookingStorePort):
    """Booking store persisted to a single JSON file keyed by dedup key."""

    def __init__(self, path: str = "./data/bookings.json") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock_path = self._path.with_name(self._path.name + ".lock")
        self._lock = threading.Lock()

    def find(self, key: str) -> BookingRecord | None:
        with self._exclusive():
            data = self._load()
        raw = data["records"].get(key)
        return self._deserialize_record(raw) if raw else None

    def upsert(self, record: BookingRecord) -> UpsertResult:
        key = record.dedup_key
        with self._exclusive():
            data = self._load()
            raw = data["records"].get(key)
            existing = self._deserialize_record(raw) if raw else None
            if existing is not None:
                record = record.merged_into(existing)
            if record != existing:
                record = replace(record, updated_at=datetime.now().timestamp())
                data["records"][key] = self._serialize_record(record)
                self._save(data)
        return UpsertResult(record=record, created=existing is None)

    def mark_canceled(self, key: str) -> BookingRecord | None:
        with self._exclusive():
            data = self._load()
            raw = data["records"].get(key)
            if not raw:
                return None
            record = self._deserialize_record(raw)
            if record.status != BookingStatus.canceled:
                record = replace(
                    record,
                    status=BookingStatus.canceled,
                    updated_at=datetime.now().timestamp(),
                )
                data["records"][key] = self._serialize_record(record)
                self._save(data)
        return record

    def list_records(self) -> list[BookingRecord]:
        with self._exclusive():
            data = self._load()
        return [self._deserialize_record(raw) for raw in data["records"].values()]

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold the in-process lock and an exclusive flock on the sidecar lock file."""
        with self._lock:
            with open(self._lock_path, "a") as lock_file:
                fcntl.flock(lock_file, fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(lock_file, fcntl.LOCK_UN)

    def _load(self) -> dict[str, Any]:
        """Load the store file, return an empty store if missing."""
        if not self._path.exists():
            return {"records": {}, "version": 1}
        with open(self._path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data.setdefault("records", {})
        data.setdefault("version", 1)
        return data

    def _save(self, data: dict[str, Any]) -> None:
        """Save the store file atomically."""
        fd, temp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f"{self._path.name}.", suffix=".tmp")
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(self._path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def _serialize_record(self, record: BookingRecord) -> dict[str, Any]:
        return {
            "external_event_id": record.external_event_id,
            "external_invitee_uri": record.external_invitee_uri,
            "attendee_name": record.attendee_name,
            "attendee_email": record.attendee_email,
            "event_name": record.event_name,
            "start_time": record.start_time.isoformat() if record.start_time else None,
            "end_time": record.end_time.isoformat() if record.end_time else None,
            "status": record.status.value,
            "source": record.source.value,
            "notes": record.notes,
            "updated_at": record.updated_at,
        }

    def _deserialize_record(self, data: dict[str, Any]) -> BookingRecord:
        start_time = data.get("start_time")
        end_time = data.get("end_time")
        return BookingRecord(
            external_event_id=data.get("external_event_id", ""),
            external_invitee_uri=data.get("external_invitee_uri"),
            attendee_name=data.get("attendee_name", ""),
            attendee_email=data.get("attendee_email", ""),
            event_name=data.get("event_name", ""),
            start_time=datetime.fromisoformat(start_time) if start_time else None,
            end_time=datetime.fromisoformat(end_time) if end_time else None,
            status=BookingStatus(data.get("status", BookingStatus.active.value)),
            source=BookingSource(data.get("source", BookingSource.direct.value)),
            notes=data.get("notes"),
            updated_at=data.get("updated_at"),
        )
