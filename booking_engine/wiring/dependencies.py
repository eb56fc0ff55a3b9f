from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from booking_engine.core.config import settings
from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.application.ports.calendar import CalendarPort
from booking_engine.application.ports.scheduling_provider import SchedulingProviderPort
from booking_engine.application.use_cases.availability import AvailabilityUseCase
from booking_engine.application.use_cases.booking import BookingUseCase
from booking_engine.application.use_cases.ingest_webhook import IngestWebhookUseCase
from booking_engine.application.use_cases.sync_bookings import RegisterWebhookUseCase, SyncBookingsUseCase
from booking_engine.application.utils.date_parser import load_timezone
from booking_engine.application.utils.retry import RetryPolicy
from booking_engine.infrastructure.calendar.google_calendar_client import (
    GoogleCalendarClient,
    ServiceAccountTokenProvider,
)
from booking_engine.infrastructure.calendar.mock_calendar import MockCalendar
from booking_engine.infrastructure.calendly.calendly_client import CalendlyClient
from booking_engine.infrastructure.store.json_store import JsonBookingStore
from booking_engine.infrastructure.store.memory_store import MemoryBookingStore


logger = logging.getLogger(__name__)


@lru_cache
def get_timezone() -> ZoneInfo:
    return load_timezone(settings.BUSINESS_TIMEZONE)


@lru_cache
def get_retry_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=max(1, settings.READ_RETRY_ATTEMPTS))


@lru_cache
def get_booking_store() -> BookingStorePort:
    if settings.ENV.lower() == "test":
        return MemoryBookingStore()
    return JsonBookingStore(path=settings.BOOKING_STORE_PATH)


@lru_cache
def get_calendar() -> CalendarPort:
    if settings.USE_MOCK_CALENDAR:
        logger.warning("Using MockCalendar: bookings are not sent to Google Calendar")
        return MockCalendar()

    token_provider = ServiceAccountTokenProvider(
        client_email=settings.GOOGLE_SERVICE_ACCOUNT_EMAIL,
        private_key=settings.GOOGLE_PRIVATE_KEY,
        delegated_user=settings.GOOGLE_DELEGATED_USER,
    )
    logger.info("Using GoogleCalendarClient", extra={"delegated": bool(settings.GOOGLE_DELEGATED_USER)})
    return GoogleCalendarClient(
        calendar_id=settings.GOOGLE_CALENDAR_ID,
        token_provider=token_provider,
        timezone=get_timezone(),
        base_url=settings.GOOGLE_CALENDAR_BASE_URL,
        timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        service_account_email=settings.GOOGLE_SERVICE_ACCOUNT_EMAIL,
    )


@lru_cache
def get_scheduling_provider() -> SchedulingProviderPort:
    return CalendlyClient(
        access_token=settings.CALENDLY_PERSONAL_ACCESS_TOKEN,
        base_url=settings.CALENDLY_BASE_URL,
        timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        retry_policy=get_retry_policy(),
    )


def get_setup_secret() -> str | None:
    return settings.CALENDLY_SETUP_SECRET or None


def get_availability_use_case() -> AvailabilityUseCase:
    return AvailabilityUseCase(
        calendar=get_calendar(),
        timezone=get_timezone(),
        work_start_hour=settings.WORK_START_HOUR,
        work_end_hour=settings.WORK_END_HOUR,
        slot_minutes=settings.SLOT_MINUTES,
        retry_policy=get_retry_policy(),
    )


def get_booking_use_case() -> BookingUseCase:
    return BookingUseCase(
        calendar=get_calendar(),
        store=get_booking_store(),
        timezone=get_timezone(),
        default_timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        retry_policy=get_retry_policy(),
    )


def get_ingest_webhook_use_case() -> IngestWebhookUseCase:
    return IngestWebhookUseCase(
        store=get_booking_store(),
        signing_key=settings.CALENDLY_WEBHOOK_SIGNING_KEY or None,
    )


def get_sync_use_case() -> SyncBookingsUseCase:
    return SyncBookingsUseCase(provider=get_scheduling_provider(), store=get_booking_store())


def get_register_webhook_use_case() -> RegisterWebhookUseCase:
    return RegisterWebhookUseCase(provider=get_scheduling_provider())
