from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from booking_engine.application.exceptions import (
    BookingConflict,
    BookingNotFound,
    InvalidInput,
    ProviderTimeout,
    UnknownProviderError,
)
from booking_engine.application.use_cases.booking import BookingUseCase, event_id_for_key
from booking_engine.application.utils.retry import RetryPolicy
from booking_engine.domain.entities.booking_record import BookingSource, BookingStatus
from booking_engine.infrastructure.calendar.mock_calendar import MockCalendar
from booking_engine.infrastructure.store.memory_store import MemoryBookingStore

BERLIN = ZoneInfo("Europe/Berlin")


def _use_case(calendar=None, store=None) -> BookingUseCase:
    return BookingUseCase(
        calendar=calendar or MockCalendar(),
        store=store or MemoryBookingStore(),
        timezone=BERLIN,
        retry_policy=RetryPolicy(base_delay_seconds=0),
    )


class TimingOutCalendar(MockCalendar):
    def __init__(self) -> None:
        super().__init__()
        self.create_calls = 0
        self.timeouts: list[float | None] = []

    def create_event(self, start, end, summary, description, attendee_email, event_id=None, timeout=None):
        self.create_calls += 1
        self.timeouts.append(timeout)
        raise ProviderTimeout("timed out")


class FlakyReadCalendar(MockCalendar):
    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures
        self.get_calls = 0

    def get_event(self, event_id):
        self.get_calls += 1
        if self.get_calls <= self.failures:
            raise UnknownProviderError("backend error", status_code=503)
        return super().get_event(event_id)


def test_create_booking_builds_event_in_business_timezone():
    calendar = MockCalendar()
    store = MemoryBookingStore()
    use_case = _use_case(calendar, store)

    handle = use_case.create_booking("Ada", "ada@example.com", "2026-03-10", "10:00", 30)

    status = calendar.get_event(handle.event_id)
    assert status.summary == "Meeting with Ada"
    assert status.attendee_email == "ada@example.com"
    assert status.response_status == "needsAction"
    assert handle.link

    record = store.find(handle.event_id)
    assert record is not None
    assert record.source == BookingSource.direct
    assert record.status == BookingStatus.active
    assert record.start_time == datetime(2026, 3, 10, 10, 0, tzinfo=BERLIN)
    assert record.end_time == datetime(2026, 3, 10, 10, 30, tzinfo=BERLIN)


@pytest.mark.parametrize(
    "args",
    [
        ("", "ada@example.com", "2026-03-10", "10:00", 30),
        ("Ada", "", "2026-03-10", "10:00", 30),
        ("Ada", "not-an-email", "2026-03-10", "10:00", 30),
        ("Ada", "ada@example.com", "10.03.2026", "10:00", 30),
        ("Ada", "ada@example.com", "2026-03-10", "25:00", 30),
        ("Ada", "ada@example.com", "2026-03-10", "10am", 30),
        ("Ada", "ada@example.com", "2026-03-10", "10:00", 0),
        ("Ada", "ada@example.com", "2026-03-10", "10:00", -15),
    ],
)
def test_invalid_input_fails_before_calling_provider(args):
    calendar = TimingOutCalendar()
    use_case = _use_case(calendar)

    with pytest.raises(InvalidInput):
        use_case.create_booking(*args)
    assert calendar.create_calls == 0


def test_create_is_not_retried_and_honors_timeout():
    calendar = TimingOutCalendar()
    use_case = _use_case(calendar)

    with pytest.raises(ProviderTimeout):
        use_case.create_booking("Ada", "ada@example.com", "2026-03-10", "10:00", 30, timeout=2.5)

    assert calendar.create_calls == 1
    assert calendar.timeouts == [2.5]


def test_repeated_create_without_key_makes_two_events():
    calendar = MockCalendar()
    use_case = _use_case(calendar)

    first = use_case.create_booking("Ada", "ada@example.com", "2026-03-10", "10:00", 30)
    second = use_case.create_booking("Ada", "ada@example.com", "2026-03-10", "10:00", 30)

    assert first.event_id != second.event_id


def test_repeated_create_with_idempotency_key_returns_first_event():
    calendar = MockCalendar()
    store = MemoryBookingStore()
    use_case = _use_case(calendar, store)

    first = use_case.create_booking("Ada", "ada@example.com", "2026-03-10", "10:00", 30, idempotency_key="req-1")
    second = use_case.create_booking("Ada", "ada@example.com", "2026-03-10", "10:00", 30, idempotency_key="req-1")

    assert first.event_id == second.event_id == event_id_for_key("req-1")
    assert len(store.list_records()) == 1


def test_event_id_for_key_uses_provider_alphabet():
    event_id = event_id_for_key("booking form submission 42")

    assert 5 <= len(event_id) <= 1024
    assert set(event_id) <= set("0123456789abcdefghijklmnopqrstuv")
    assert event_id == event_id_for_key("booking form submission 42")
    assert event_id != event_id_for_key("booking form submission 43")


def test_deleted_event_frees_its_idempotency_key_in_mock_calendar():
    use_case = _use_case()
    handle = use_case.create_booking("Ada", "ada@example.com", "2026-03-10", "10:00", 30, idempotency_key="req-2")
    use_case.delete_booking(handle.event_id)

    again = use_case.create_booking("Ada", "ada@example.com", "2026-03-10", "10:00", 30, idempotency_key="req-2")

    assert again.event_id == handle.event_id


def test_idempotency_key_of_canceled_booking_is_a_conflict():
    class CanceledEventCalendar(MockCalendar):
        def create_event(self, *args, **kwargs):
            raise BookingConflict("The requested identifier already exists.")

    with pytest.raises(BookingConflict, match="canceled booking"):
        _use_case(CanceledEventCalendar()).create_booking(
            "Ada", "ada@example.com", "2026-03-10", "10:00", 30, idempotency_key="req-2"
        )


def test_delete_then_status_is_not_found():
    store = MemoryBookingStore()
    use_case = _use_case(store=store)
    handle = use_case.create_booking("Ada", "ada@example.com", "2026-03-10", "10:00", 30)

    assert use_case.delete_booking(handle.event_id)["success"] is True

    with pytest.raises(BookingNotFound):
        use_case.get_booking_status(handle.event_id)
    assert store.find(handle.event_id).status == BookingStatus.canceled


def test_delete_unknown_event_surfaces_not_found():
    use_case = _use_case()

    with pytest.raises(BookingNotFound):
        use_case.delete_booking("missing")


def test_missing_event_id_is_invalid_input():
    use_case = _use_case()

    with pytest.raises(InvalidInput):
        use_case.delete_booking("")
    with pytest.raises(InvalidInput):
        use_case.get_booking_status(None)


def test_status_without_attendees_omits_attendee_fields():
    calendar = MockCalendar()
    event_id = calendar.add_busy(datetime(2026, 3, 10, 9, tzinfo=BERLIN), datetime(2026, 3, 10, 10, tzinfo=BERLIN))

    view = _use_case(calendar).get_booking_status(event_id)

    assert view.summary == "Busy"
    assert view.attendee_email is None
    assert view.response_status is None


def test_status_read_is_retried_on_transient_errors():
    calendar = FlakyReadCalendar(failures=2)
    use_case = _use_case(calendar)
    handle = use_case.create_booking("Ada", "ada@example.com", "2026-03-10", "10:00", 30)

    view = use_case.get_booking_status(handle.event_id)

    assert view.event_id == handle.event_id
    assert calendar.get_calls == 3


def test_delete_of_event_gone_on_provider_cancels_local_record():
    calendar = MockCalendar()
    store = MemoryBookingStore()
    use_case = _use_case(calendar=calendar, store=store)
    handle = use_case.create_booking("Ada", "ada@example.com", "2026-03-10", "10:00", 30)
    calendar.delete_event(handle.event_id)

    with pytest.raises(BookingNotFound):
        use_case.delete_booking(handle.event_id)

    assert store.find(handle.event_id).status == BookingStatus.canceled
