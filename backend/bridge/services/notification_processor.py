"""
Detached processing of a verified notification.

Runs after the webhook response has been sent (FastAPI BackgroundTasks):
event-type dispatch -> message resolution -> field extraction -> order
dispatch. The whole job is bounded by PROCESSING_TIMEOUT_SECONDS and never
raises; its outcome only reaches the logs.
"""

import asyncio
import logging
from typing import Optional

import httpx

from bridge.config import Settings
from bridge.models.notification import InboundNotification
from bridge.services.field_extractor import extract_fields
from bridge.services.message_resolver import MessageResolver
from bridge.services.nylas_adapter import MESSAGE_EVENT_TYPES
from bridge.services.nylas_client import NylasClient
from bridge.services.order_dispatcher import OrderDispatcher

logger = logging.getLogger(__name__)


async def handle_message_event(
    notification: InboundNotification,
    resolver: MessageResolver,
    dispatcher: OrderDispatcher,
) -> Optional[dict]:
    """Resolve, extract and dispatch a single message notification."""
    record = await resolver.resolve(notification)
    if record is None:
        logger.info("No message could be resolved for %s", notification.type)
        return None

    fields = extract_fields(record)
    logger.info(
        "Message %s: organization=%r domain=%r salesperson=%r",
        record.id,
        fields.organization_name,
        fields.domain,
        fields.salesperson_email,
    )
    return await dispatcher.dispatch(fields)


async def process_notification(notification: InboundNotification, settings: Settings) -> None:
    """
    Background entry point for a verified notification.

    Non-message events (grant.created, thread.replied, ...) are logged and
    ignored.
    """
    if notification.type not in MESSAGE_EVENT_TYPES:
        logger.info("Ignoring webhook event %r", notification.type or "<untyped>")
        return

    try:
        async with httpx.AsyncClient(timeout=settings.outbound_timeout_seconds) as http_client:
            resolver = MessageResolver(NylasClient(settings, http_client))
            dispatcher = OrderDispatcher(settings, http_client)
            await asyncio.wait_for(
                handle_message_event(notification, resolver, dispatcher),
                timeout=settings.processing_timeout_seconds,
            )
    except asyncio.TimeoutError:
        logger.error(
            "Processing %s timed out after %ss",
            notification.type,
            settings.processing_timeout_seconds,
        )
    except Exception:
        logger.exception("Unexpected error processing %s", notification.type)
