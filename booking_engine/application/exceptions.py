class BookingEngineError(RuntimeError):
    """Base class for every error the engine surfaces to its callers."""

    hint: str | None = None

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        if hint is not None:
            self.hint = hint


class InvalidInput(BookingEngineError):
    """Raised when a date, time or required field is malformed. Never retried."""
    pass


class ConfigurationMissing(BookingEngineError):
    """Raised when a required credential or identifier is not configured."""
    pass


class BookingNotFound(BookingEngineError):
    """Raised when the provider has no such event (may mean already canceled)."""
    pass


class PermissionDenied(BookingEngineError):
    """Raised when the credential lacks write access to the calendar."""
    pass


class DelegationRequired(BookingEngineError):
    """Raised when the credential cannot send attendee invites on its own authority."""
    pass


class BookingConflict(BookingEngineError):
    """Raised when an event with the requested identifier already exists."""
    pass


class SignatureInvalid(BookingEngineError):
    """Raised when a webhook signature does not match the raw body."""
    pass


class ProviderTimeout(BookingEngineError):
    """Raised when the provider does not answer within the caller's timeout."""
    pass


class UnknownProviderError(BookingEngineError):
    """Raised for any provider failure outside the known taxonomy."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        hint: str | None = None,
        transient: bool = False,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.transient = transient
