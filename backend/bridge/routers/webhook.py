"""
Nylas webhook router.

Endpoints:
  GET  /webhook?challenge=...  one-time verification handshake; echoes the
                               challenge verbatim as text/plain.
  POST /webhook                notification delivery (auth: X-Nylas-Signature,
                               HMAC-SHA256 of the raw body with WEBHOOK_SECRET).

POST responses:
  413  body larger than WEBHOOK_MAX_BODY_BYTES (default 2 MB)
  500  WEBHOOK_SECRET is not configured
  401  X-Nylas-Signature header missing
  403  signature does not match
  200  "OK" otherwise, including bodies that fail to parse. Nylas must see
       success or it redelivers; processing continues in the background.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from bridge.config import Settings, get_settings
from bridge.models.notification import InboundNotification
from bridge.services.notification_processor import process_notification
from bridge.services.signature import verify_signature

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _payload_too_large(limit: int) -> HTTPException:
    logger.warning("Rejected webhook body larger than %s bytes", limit)
    return HTTPException(status_code=413, detail="Payload too large")


async def _read_body(request: Request, limit: int) -> bytes:
    """
    Read the raw request body, refusing anything over `limit` bytes.

    A declared Content-Length is checked before reading; the streamed size is
    checked as well for chunked or mislabelled requests.
    """
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise _payload_too_large(limit)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise _payload_too_large(limit)
    return bytes(body)


def _parse_notification(raw_body: bytes) -> Optional[InboundNotification]:
    """
    Parse the raw body into an InboundNotification.

    Returns None (after logging) for non-UTF-8, non-JSON or non-object bodies.
    """
    try:
        payload = json.loads(raw_body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        logger.warning("Webhook payload parse error: %s", exc)
        return None

    if not isinstance(payload, dict):
        logger.warning("Webhook payload is not a JSON object: %s", type(payload).__name__)
        return None

    try:
        return InboundNotification.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Webhook payload has unexpected shape: %s", exc)
        return None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/webhook")
async def webhook_challenge(challenge: Optional[str] = None):
    """
    Answer the Nylas verification handshake.

    Nylas requires a 200 whose body is exactly the challenge string: no JSON
    quoting, no extra whitespace, not chunked. PlainTextResponse sends the
    bytes as-is with a Content-Length header.
    """
    if not challenge:
        raise HTTPException(status_code=400, detail="Missing challenge")

    return PlainTextResponse(content=challenge, status_code=200)


@router.post("/webhook")
async def webhook_notification(
    request: Request,
    background_tasks: BackgroundTasks,
    x_nylas_signature: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
):
    """
    Verify and accept a Nylas notification.

    The signature is checked against the exact raw bytes. Once verified,
    processing is scheduled to run after the response is sent.
    """
    raw_body = await _read_body(request, settings.webhook_max_body_bytes)

    if not settings.webhook_secret:
        logger.error("WEBHOOK_SECRET is not set")
        raise HTTPException(status_code=500, detail="Server misconfiguration")

    if not x_nylas_signature:
        raise HTTPException(status_code=401, detail="Missing signature")

    if not verify_signature(raw_body, settings.webhook_secret, x_nylas_signature):
        logger.warning("Rejected webhook with invalid signature")
        raise HTTPException(status_code=403, detail="Invalid signature")

    notification = _parse_notification(raw_body)
    if notification is not None:
        logger.info("Webhook: %s", notification.type or "<untyped>")
        background_tasks.add_task(process_notification, notification, settings)

    return PlainTextResponse("OK")
