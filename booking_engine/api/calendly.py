from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from booking_engine.api.schemas import SyncResultSchema
from booking_engine.application.exceptions import InvalidInput, SignatureInvalid
from booking_engine.application.use_cases.ingest_webhook import IngestWebhookUseCase
from booking_engine.application.use_cases.sync_bookings import RegisterWebhookUseCase, SyncBookingsUseCase
from booking_engine.core.config import settings
from booking_engine.wiring.dependencies import (
    get_ingest_webhook_use_case,
    get_register_webhook_use_case,
    get_setup_secret,
    get_sync_use_case,
)


router = APIRouter()
logger = logging.getLogger(__name__)


def require_setup_secret(
    x_setup_secret: str | None = Header(None, alias="x-setup-secret"),
    secret: str | None = Depends(get_setup_secret),
) -> str | None:
    if secret and x_setup_secret != secret:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return secret


@router.post("/webhook")
async def calendly_webhook(
    request: Request,
    uc: IngestWebhookUseCase = Depends(get_ingest_webhook_use_case),
):
    raw_body = await request.body()
    signature = request.headers.get("Calendly-Webhook-Signature") or request.headers.get("X-Calendly-Signature")
    try:
        # Store write must finish before the delivery is acknowledged
        result = await asyncio.to_thread(uc.ingest, raw_body, signature)
    except SignatureInvalid:
        return JSONResponse(status_code=401, content={"error": "Invalid signature"})
    except InvalidInput as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception:
        logger.exception("Webhook processing failed")
        return JSONResponse(status_code=500, content={"error": "Webhook processing failed"})

    body: dict[str, bool] = {"ok": True}
    if result.created:
        body["created"] = True
    if result.updated:
        body["updated"] = True
    return body


@router.post("/sync", response_model=SyncResultSchema)
def sync_bookings(
    secret: str | None = Depends(require_setup_secret),
    uc: SyncBookingsUseCase = Depends(get_sync_use_case),
):
    try:
        summary = uc.sync()
    except Exception as e:
        logger.exception("Sync failed", extra={"error": str(e)})
        content = {"error": "Sync failed"}
        if secret:
            content["detail"] = str(e)
        return JSONResponse(status_code=500, content=content)
    return SyncResultSchema(
        created=summary.created,
        updated=summary.updated,
        totalEvents=summary.total_events,
    )


@router.post("/webhook/register")
def register_webhook(
    request: Request,
    secret: str | None = Depends(require_setup_secret),
    uc: RegisterWebhookUseCase = Depends(get_register_webhook_use_case),
):
    base_url = settings.SITE_URL or str(request.base_url)
    webhook_url = f"{base_url.rstrip('/')}/webhook"
    try:
        result = uc.register(webhook_url)
    except Exception as e:
        logger.exception("Failed to register webhook", extra={"error": str(e)})
        content = {"error": "Failed to register webhook"}
        if secret:
            content["detail"] = str(e)
        return JSONResponse(status_code=500, content=content)
    return {
        "ok": True,
        "message": "Webhook registered. New bookings will sync to the booking store.",
        "webhookUrl": result["webhook_url"],
        "scope": result["scope"],
        "subscription": result["subscription"],
    }
