"""
Routes: Veriff identity verification.

  - GET  /webhooks/veriff     liveness probe
  - POST /webhooks/veriff     vendor callbacks (started / submitted / decision)
  - POST /fetch-veriff-media  re-fetch a session's images
"""

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from src.api.dependencies import (
    get_fetch_media_use_case,
    get_notification_dispatcher,
    get_webhook_secret,
    get_webhook_use_case,
)
from src.api.schemas.requests import FetchMediaRequest
from src.api.schemas.responses import MediaFetchResponse, WebhookResponse
from src.core.exceptions import ConfigurationError, DocumentNotFoundError
from src.core.use_cases.fetch_verification_media import FetchVerificationMediaUseCase
from src.core.use_cases.handle_verification_webhook import HandleVerificationWebhookUseCase
from src.infrastructure.notifications.dispatcher import NotificationDispatcher
from src.infrastructure.veriff.signatures import verify_webhook_signature

logger = logging.getLogger(__name__)

router = APIRouter()

SIGNATURE_HEADERS = ("X-HMAC-SIGNATURE", "X-Signature")


def _reject(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    content = {"ok": False, "error": error}
    if message:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


@router.get("/webhooks/veriff", response_model=WebhookResponse)
async def veriff_webhook_probe():
    return {"ok": True, "message": "Veriff webhook endpoint is active"}


@router.post("/webhooks/veriff", response_model=WebhookResponse)
async def veriff_webhook(
    request: Request,
    use_case: HandleVerificationWebhookUseCase = Depends(get_webhook_use_case),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    secret: str = Depends(get_webhook_secret),
):
    """Apply one Veriff callback. The signature is checked before anything is read or written."""
    raw = await request.body()
    if not raw.strip():
        return _reject(400, "Empty payload", "Webhook expects POST request with JSON data from Veriff")

    if secret:
        signature = next((request.headers.get(h) for h in SIGNATURE_HEADERS if request.headers.get(h)), None)
        if not verify_webhook_signature(raw, signature, secret):
            logger.error(f"Rejected Veriff webhook: {'invalid' if signature else 'missing'} signature")
            return _reject(401, "Invalid signature")
    else:
        logger.debug("VERIFF_WEBHOOK_SECRET not set; signature check skipped")

    try:
        payload = json.loads(raw)
    except ValueError:
        return _reject(400, "Invalid JSON payload")
    if not isinstance(payload, dict):
        return _reject(400, "Payload must be a JSON object")

    try:
        outcome = await run_in_threadpool(use_case.execute, payload)
    except Exception as e:
        logger.exception(f"Error handling Veriff webhook: {e}")
        return _reject(500, "Internal error while processing webhook")

    if not outcome.ok:
        return _reject(400, outcome.error or "Invalid payload")

    if outcome.events:
        # the decision is already committed; the vendor still gets ok
        try:
            await run_in_threadpool(dispatcher.dispatch, outcome.events)
        except Exception as e:
            logger.exception(f"Notification dispatch failed for session {outcome.session_id}: {e}")

    return {"ok": True}


@router.post("/fetch-veriff-media", response_model=MediaFetchResponse)
async def fetch_veriff_media(
    request: Request,
    use_case: FetchVerificationMediaUseCase = Depends(get_fetch_media_use_case),
):
    """Body: verificationId or sessionId."""
    try:
        body = FetchMediaRequest.model_validate(await request.json())
    except ValueError:
        return _reject(400, "Request body must be a JSON object")
    if not body.verification_id and not body.session_id:
        return _reject(400, "verificationId or sessionId required")

    try:
        outcome = await run_in_threadpool(use_case.execute, body.verification_id, body.session_id)
    except ConfigurationError as e:
        logger.error(str(e))
        return _reject(500, str(e))
    except DocumentNotFoundError as e:
        return _reject(404, str(e))
    except Exception as e:
        logger.exception(f"Media fetch failed: {e}")
        return _reject(500, "Media fetch failed")

    if not outcome.ok:
        return _reject(400, outcome.error or "Failed to fetch media")
    return {"ok": True, "message": outcome.message, "urls": outcome.urls}
