from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any

from booking_engine.domain.entities.invitee_event import ProviderScope


class SchedulingProviderPort(ABC):
    @abstractmethod
    def get_scope(self) -> ProviderScope:
        """Resolve the organization scope of the credential, falling back to the user."""
        raise NotImplementedError

    @abstractmethod
    def iter_scheduled_events(self, scope: ProviderScope) -> Iterator[dict[str, Any]]:
        """Yield every scheduled event in scope, following pagination until exhausted."""
        raise NotImplementedError

    @abstractmethod
    def iter_invitees(self, event_uri: str) -> Iterator[dict[str, Any]]:
        """Yield every invitee of a scheduled event."""
        raise NotImplementedError

    @abstractmethod
    def create_webhook_subscription(
        self,
        url: str,
        events: list[str],
        scope: ProviderScope,
    ) -> dict[str, Any]:
        raise NotImplementedError
