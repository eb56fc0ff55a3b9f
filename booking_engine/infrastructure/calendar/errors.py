"""Classification of calendar provider failures.

The provider returns no structured error taxonomy, so every status-code and
message check lives here and nowhere else. Callers receive one of the engine's
exception types and never inspect provider messages themselves.
"""

from __future__ import annotations

import re

from booking_engine.application.exceptions import (
    BookingConflict,
    BookingEngineError,
    BookingNotFound,
    DelegationRequired,
    PermissionDenied,
    UnknownProviderError,
)

DELEGATION_PATTERN = re.compile(
    r"domain-wide delegation|cannot invite attendees|unauthorized_client", re.IGNORECASE
)
PERMISSION_PATTERN = re.compile(r"writer access|permission|forbidden", re.IGNORECASE)
NOT_FOUND_PATTERN = re.compile(r"not found", re.IGNORECASE)
CONFLICT_PATTERN = re.compile(r"already exists|duplicate", re.IGNORECASE)
RATE_LIMIT_PATTERN = re.compile(r"rate limit|quota exceeded", re.IGNORECASE)

DELEGATION_HINT = (
    "Domain-Wide Delegation is required to send email invites. "
    "See: https://developers.google.com/identity/protocols/oauth2/service-account#delegatingauthority "
    "Or switch to OAuth2 authentication instead of service account."
)


def permission_hint(service_account_email: str | None) -> str:
    return (
        "Share the calendar with the service account: Go to Google Calendar → Settings for the calendar → "
        f'Share with specific people → Add "{service_account_email or "the service account"}" '
        'with "Make changes to events" permission.'
    )


def calendar_not_found_hint(service_account_email: str | None) -> str:
    return (
        "Calendar not found. Check that GOOGLE_CALENDAR_ID is set to a valid calendar id, "
        "that the calendar exists, and that it is shared with "
        f'"{service_account_email or "the service account"}".'
    )


def classify_provider_error(
    status_code: int | None,
    message: str,
    service_account_email: str | None = None,
    calendar_level: bool = False,
) -> BookingEngineError:
    """Map a provider status code and message onto the engine's error taxonomy.

    With calendar_level set, a not-found means the calendar itself is missing
    or unshared, not that an event is gone.
    """
    message = message or "Unknown provider error"

    if DELEGATION_PATTERN.search(message):
        return DelegationRequired(message, hint=DELEGATION_HINT)
    if status_code in (404, 410) or NOT_FOUND_PATTERN.search(message):
        if calendar_level:
            return PermissionDenied(message, hint=calendar_not_found_hint(service_account_email))
        return BookingNotFound(message)
    if status_code == 409 or CONFLICT_PATTERN.search(message):
        return BookingConflict(message)
    if status_code == 429 or RATE_LIMIT_PATTERN.search(message):
        return UnknownProviderError(message, status_code=status_code, transient=True)
    if status_code == 403 or PERMISSION_PATTERN.search(message):
        return PermissionDenied(message, hint=permission_hint(service_account_email))
    return UnknownProviderError(message, status_code=status_code)
