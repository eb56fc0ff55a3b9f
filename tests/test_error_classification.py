from __future__ import annotations

import pytest

from booking_engine.application.exceptions import (
    BookingConflict,
    BookingNotFound,
    DelegationRequired,
    PermissionDenied,
    UnknownProviderError,
)
from booking_engine.infrastructure.calendar.errors import DELEGATION_HINT, classify_provider_error


@pytest.mark.parametrize(
    "status_code, message, expected",
    [
        (403, "Service accounts cannot invite attendees without Domain-Wide Delegation of Authority.", DelegationRequired),
        (400, "Requires domain-wide delegation", DelegationRequired),
        (403, "You need to have writer access to this calendar.", PermissionDenied),
        (403, "Forbidden", PermissionDenied),
        (None, "Insufficient permission", PermissionDenied),
        (404, "Not Found", BookingNotFound),
        (410, "Resource has been deleted", BookingNotFound),
        (400, "Event not found", BookingNotFound),
        (409, "The requested identifier already exists.", BookingConflict),
        (400, "duplicate event id", BookingConflict),
        (500, "Backend Error", UnknownProviderError),
        (None, "", UnknownProviderError),
    ],
)
def test_provider_errors_map_onto_engine_taxonomy(status_code, message, expected):
    error = classify_provider_error(status_code, message, "svc@project.iam.gserviceaccount.com")

    assert type(error) is expected


def test_delegation_takes_precedence_over_permission():
    error = classify_provider_error(403, "Forbidden: cannot invite attendees without domain-wide delegation")

    assert isinstance(error, DelegationRequired)
    assert error.hint == DELEGATION_HINT


def test_permission_hint_names_the_service_account():
    error = classify_provider_error(403, "You need to have writer access to this calendar.", "svc@example.iam")

    assert isinstance(error, PermissionDenied)
    assert "svc@example.iam" in error.hint
    assert "Make changes to events" in error.hint


def test_rate_limits_are_transient():
    error = classify_provider_error(429, "Rate Limit Exceeded")

    assert isinstance(error, UnknownProviderError)
    assert error.transient is True
    assert error.status_code == 429


def test_quota_message_without_status_is_transient():
    error = classify_provider_error(403, "Calendar usage limits exceeded: quota exceeded")

    assert isinstance(error, UnknownProviderError)
    assert error.transient is True


def test_unknown_errors_keep_status_code():
    error = classify_provider_error(502, "Bad Gateway")

    assert isinstance(error, UnknownProviderError)
    assert error.status_code == 502
    assert error.transient is False
    assert str(error) == "Bad Gateway"


def test_unauthorized_client_means_delegation_is_missing():
    error = classify_provider_error(None, "unauthorized_client: Client is unauthorized to retrieve access tokens")

    assert isinstance(error, DelegationRequired)
    assert error.hint == DELEGATION_HINT


def test_calendar_level_not_found_is_a_configuration_problem():
    event_level = classify_provider_error(404, "Not Found", "svc@example.iam")
    calendar_level = classify_provider_error(404, "Not Found", "svc@example.iam", calendar_level=True)

    assert isinstance(event_level, BookingNotFound)
    assert isinstance(calendar_level, PermissionDenied)
    assert calendar_level.hint.startswith("Calendar not found.")
    assert "svc@example.iam" in calendar_level.hint
