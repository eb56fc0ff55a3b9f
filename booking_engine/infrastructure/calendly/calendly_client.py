from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

import httpx

from booking_engine.application.exceptions import (
    ConfigurationMissing,
    ProviderTimeout,
    UnknownProviderError,
)
from booking_engine.application.ports.scheduling_provider import SchedulingProviderPort
from booking_engine.application.utils.retry import RetryPolicy, retry_read
from booking_engine.domain.entities.invitee_event import ProviderScope

PAGE_SIZE = 100


class CalendlyClient(SchedulingProviderPort):
    def __init__(
        self,
        access_token: str | None,
        base_url: str = "https://api.calendly.com",
        timeout: float = 10.0,
        retry_policy: RetryPolicy | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        if not access_token:
            raise ConfigurationMissing("CALENDLY_PERSONAL_ACCESS_TOKEN is not set.")
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._retry_policy = retry_policy or RetryPolicy()
        self._client = client or httpx.Client(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def get_scope(self) -> ProviderScope:
        me = self._get("/users/me")
        resource = me.get("resource") or me
        org_uri = resource.get("current_organization") or me.get("current_organization")
        user_uri = resource.get("uri") or me.get("uri")
        if org_uri:
            return ProviderScope(key="organization", uri=org_uri)
        if user_uri:
            return ProviderScope(key="user", uri=user_uri)
        raise UnknownProviderError("Could not get user or organization URI from Calendly.")

    def iter_scheduled_events(self, scope: ProviderScope) -> Iterator[dict[str, Any]]:
        yield from self._paginate("/scheduled_events", {scope.key: scope.uri, "count": PAGE_SIZE})

    def iter_invitees(self, event_uri: str) -> Iterator[dict[str, Any]]:
        yield from self._paginate(f"{self._relative(event_uri)}/invitees", {"count": PAGE_SIZE})

    def create_webhook_subscription(
        self,
        url: str,
        events: list[str],
        scope: ProviderScope,
    ) -> dict[str, Any]:
        body = {
            "url": url,
            "events": events,
            "scope": scope.key,
            scope.key: scope.uri,
        }
        response = self._send("POST", "/webhook_subscriptions", json=body)
        self._logger.info("Calendly webhook subscription created", extra={"url": url, "scope": scope.key})
        return response.json()

    def _paginate(self, path: str, params: dict[str, Any]) -> Iterator[dict[str, Any]]:
        page = self._get(path, params=params)
        while True:
            yield from page.get("collection") or []
            next_page = (page.get("pagination") or {}).get("next_page")
            if not next_page:
                return
            # next_page already carries the cursor and the original filters
            page = self._get(next_page)

    def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return retry_read(
            lambda: self._send("GET", path, params=params).json(),
            self._retry_policy,
            description=f"GET {path}",
        )

    def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        url = path if path.startswith("http") else f"{self._base_url}{path}"
        headers = {"Authorization": f"Bearer {self._access_token}"}
        try:
            response = self._client.request(method, url, params=params, json=json, headers=headers)
        except httpx.TimeoutException as e:
            raise ProviderTimeout(f"Calendly API timed out on {method} {path}") from e
        except httpx.TransportError as e:
            raise UnknownProviderError(str(e), transient=True) from e

        if response.status_code >= 400:
            self._logger.error(
                "Calendly API error",
                extra={"method": method, "status": response.status_code, "error": response.text[:500]},
            )
            raise UnknownProviderError(
                f"Calendly API {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response

    def _relative(self, uri: str) -> str:
        if uri.startswith(self._base_url):
            return uri[len(self._base_url):]
        return uri
