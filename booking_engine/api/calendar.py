from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse

from booking_engine.api.errors import error_response
from booking_engine.api.schemas import (
    AvailabilitySchema,
    BookingCreatedSchema,
    BookingEventSchema,
    BookingRequestSchema,
)
from booking_engine.application.exceptions import BookingEngineError, InvalidInput
from booking_engine.application.use_cases.availability import AvailabilityUseCase
from booking_engine.application.use_cases.booking import BookingUseCase
from booking_engine.wiring.dependencies import get_availability_use_case, get_booking_use_case


router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/availability", response_model=AvailabilitySchema)
def availability(
    date: str | None = Query(None),
    uc: AvailabilityUseCase = Depends(get_availability_use_case),
):
    if not date:
        return JSONResponse(status_code=400, content={"error": "Date parameter is required"})
    try:
        slots = uc.get_available_slots(date)
    except InvalidInput as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception as e:
        logger.exception("Availability failed", extra={"date": date, "error": str(e)})
        return error_response(e, "Failed to get availability", slots=[])
    return AvailabilitySchema(slots=slots)


@router.post("/booking", response_model=BookingCreatedSchema)
def create_booking(
    req: BookingRequestSchema,
    idempotency_key: str | None = Header(None, alias="Idempotency-Key"),
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    try:
        handle = uc.create_booking(
            name=req.name or "",
            email=req.email or "",
            date=req.date or "",
            time=req.time or "",
            duration_minutes=req.duration or 0,
            idempotency_key=idempotency_key,
        )
    except BookingEngineError as e:
        logger.error("Error creating booking", extra={"error": str(e)})
        return error_response(e, "Failed to create booking")
    return BookingCreatedSchema(event=BookingEventSchema(eventId=handle.event_id, htmlLink=handle.link))


@router.delete("/booking")
def delete_booking(
    event_id: str | None = Query(None, alias="eventId"),
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    if not event_id:
        return JSONResponse(status_code=400, content={"error": "Missing required parameter: eventId"})
    try:
        return uc.delete_booking(event_id)
    except BookingEngineError as e:
        logger.error("Error deleting booking", extra={"event_id": event_id, "error": str(e)})
        return error_response(e, "Failed to delete booking")


@router.get("/booking/status")
def booking_status(
    event_id: str | None = Query(None, alias="eventId"),
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    if not event_id:
        return JSONResponse(status_code=400, content={"error": "Missing required parameter: eventId"})
    try:
        view = uc.get_booking_status(event_id)
    except BookingEngineError as e:
        logger.error("Error getting booking status", extra={"event_id": event_id, "error": str(e)})
        return error_response(e, "Failed to get booking status")

    body: dict[str, object] = {
        "success": True,
        "eventId": view.event_id,
        "summary": view.summary,
        "link": view.link,
    }
    if view.attendee_email is not None:
        body["attendeeEmail"] = view.attendee_email
        body["responseStatus"] = view.response_status
    return body
