from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class InviteeEvent:
    invitee_uri: str
    event_uri: str = ""
    invitee_name: str = ""
    invitee_email: str = ""
    event_name: str = ""
    start_time: datetime | None = None
    end_time: datetime | None = None
    invitee_status: str | None = None  # provider status, "active" or "canceled"


@dataclass(frozen=True)
class ProviderScope:
    key: str  # "organization" or "user"
    uri: str


@dataclass(frozen=True)
class SyncSummary:
    created: int
    updated: int
    total_events: int
