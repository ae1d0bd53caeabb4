"""
Message resolution: notification -> complete MessageRecord.

Resolution never raises. When the provider cannot supply more data the best
partial record already in hand is returned.
"""

import logging
from typing import Optional

from bridge.models.notification import (
    InboundNotification,
    MessageRecord,
    MessageReference,
)
from bridge.services.nylas_adapter import normalize_notification
from bridge.services.nylas_client import NylasClient

logger = logging.getLogger(__name__)


class MessageResolver:
    """Upgrades stub or bodiless notifications to full records via NylasClient."""

    def __init__(self, client: NylasClient):
        self._client = client

    async def _fetch(self, grant_id: str, message_id: str) -> Optional[MessageRecord]:
        try:
            return await self._client.fetch_message(grant_id, message_id)
        except Exception:
            logger.exception("Unexpected error fetching message %s", message_id)
            return None

    async def resolve(self, notification: InboundNotification) -> Optional[MessageRecord]:
        """
        Produce the message record for a notification.

        - Inline content with a body is returned as-is.
        - A stub (ids only) is fetched; None if the fetch yields nothing.
        - Inline content without a body is refetched once. A refetched record
          with a body replaces it; otherwise the original record is kept.

        Makes at most one provider call.
        """
        normalized = normalize_notification(notification)

        if normalized is None:
            return None

        if isinstance(normalized, MessageReference):
            logger.info("Fetching stub message %s", normalized.message_id)
            return await self._fetch(normalized.grant_id, normalized.message_id)

        record = normalized.record
        if record.has_body:
            return record

        if record.id and record.grant_id:
            logger.info("Message %s arrived without body; refetching", record.id)
            fetched = await self._fetch(record.grant_id, record.id)
            if fetched is not None and fetched.has_body:
                return fetched
            logger.info("Refetch of %s gave no body; keeping partial record", record.id)

        return record
