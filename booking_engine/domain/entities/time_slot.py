from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TimeSlot:
    start: datetime
    end: datetime

    @property
    def label(self) -> str:
        return self.start.strftime("%H:%M")

    def overlaps(self, busy: BusyInterval) -> bool:
        return self.start < busy.end and self.end > busy.start


@dataclass(frozen=True)
class BusyInterval:
    start: datetime
    end: datetime
