from typing import Any

from fastapi.responses import JSONResponse

from booking_engine.application.exceptions import (
    BookingConflict,
    BookingEngineError,
    BookingNotFound,
    ConfigurationMissing,
    InvalidInput,
    ProviderTimeout,
    SignatureInvalid,
)

STATUS_BY_ERROR: list[tuple[type[BookingEngineError], int]] = [
    (InvalidInput, 400),
    (SignatureInvalid, 401),
    (BookingNotFound, 404),
    (BookingConflict, 409),
    (ConfigurationMissing, 503),
    (ProviderTimeout, 504),
]


def status_for(error: Exception) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return 500


def error_response(error: Exception, summary: str, **extra: Any) -> JSONResponse:
    """Build the JSON error body for a failed call, hint included when known."""
    status_code = status_for(error)
    if status_code in (400, 503):
        content: dict[str, Any] = {"error": str(error)}
    else:
        content = {"error": summary, "details": str(error)}
    hint = getattr(error, "hint", None)
    if hint:
        content["hint"] = hint
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)
