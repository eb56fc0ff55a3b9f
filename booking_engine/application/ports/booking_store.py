from abc import ABC, abstractmethod

from booking_engine.domain.entities.booking_record import BookingRecord, UpsertResult


class BookingStorePort(ABC):
    @abstractmethod
    def find(self, key: str) -> BookingRecord | None:
        """Find a record by its dedup key (invitee URI, or event id for direct bookings)."""
        raise NotImplementedError

    @abstractmethod
    def upsert(self, record: BookingRecord) -> UpsertResult:
        """
        Atomically insert the record or update the one sharing its dedup key.
        Two concurrent calls for the same key never produce two records.
        """
        raise NotImplementedError

    @abstractmethod
    def mark_canceled(self, key: str) -> BookingRecord | None:
        """
        Flip the record to canceled. Returns None when no record has that key.
        """
        raise NotImplementedError

    @abstractmethod
    def list_records(self) -> list[BookingRecord]:
        raise NotImplementedError
