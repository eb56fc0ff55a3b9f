import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from booking_engine.api.calendar import router as calendar_router
from booking_engine.api.calendly import router as calendly_router
from booking_engine.application.exceptions import ConfigurationMissing
from booking_engine.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in (
            "event_id",
            "invitee_uri",
            "event_type",
            "date",
            "status",
            "was_created",
            "created_count",
            "updated_count",
            "error",
        ):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="Booking Sync Engine", version="1.0.0")

app.include_router(calendar_router, tags=["calendar"])
app.include_router(calendly_router, tags=["calendly"])


@app.exception_handler(ConfigurationMissing)
def configuration_missing(request: Request, exc: ConfigurationMissing) -> JSONResponse:
    logging.getLogger(__name__).error("Endpoint not configured", extra={"error": str(exc)})
    return JSONResponse(status_code=503, content={"error": str(exc)})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
