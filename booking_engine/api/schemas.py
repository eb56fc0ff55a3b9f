from pydantic import BaseModel, Field


class BookingRequestSchema(BaseModel):
    name: str | None = None
    email: str | None = None
    date: str | None = None
    time: str | None = None
    duration: int | None = Field(default=None, description="Meeting length in minutes")


class BookingEventSchema(BaseModel):
    eventId: str
    htmlLink: str | None = None


class BookingCreatedSchema(BaseModel):
    success: bool = True
    message: str = "Meeting has been added to the calendar"
    event: BookingEventSchema


class AvailabilitySchema(BaseModel):
    slots: list[str]


class SyncResultSchema(BaseModel):
    ok: bool = True
    message: str = "Sync complete. No duplicates: existing meetings updated, new ones created."
    created: int
    updated: int
    totalEvents: int
