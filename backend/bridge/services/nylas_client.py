"""
Minimal async client for the Nylas v3 message API.

Only one call is needed: fetch a single message by grant and message id.
Every failure is logged and reported as None so callers can degrade to
whatever partial data they already hold.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from bridge.config import Settings
from bridge.models.notification import MessageRecord
from bridge.services.nylas_adapter import message_record_from_dict

logger = logging.getLogger(__name__)


class NylasClient:
    """
    Fetches messages from GET {base}/v3/grants/{grant_id}/messages/{message_id}.

    Args:
        settings:    Bridge configuration (API key, base URL, timeout).
        http_client: Optional shared httpx.AsyncClient. When omitted a
                     short-lived client is created per call.
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self._settings = settings
        self._http_client = http_client

    def message_url(self, grant_id: str, message_id: str) -> str:
        return (
            f"{self._settings.nylas_api_uri}/v3/grants/"
            f"{quote(grant_id, safe='')}/messages/{quote(message_id, safe='')}"
        )

    async def fetch_message(self, grant_id: str, message_id: str) -> Optional[MessageRecord]:
        """
        Fetch one message. Returns None when unconfigured or on any failure.
        """
        if not self._settings.nylas_api_key:
            logger.info("NYLAS_API_KEY is not set; skipping fetch of message %s", message_id)
            return None

        url = self.message_url(grant_id, message_id)
        headers = {
            "Authorization": f"Bearer {self._settings.nylas_api_key}",
            "Accept": "application/json",
        }

        try:
            if self._http_client is not None:
                response = await self._http_client.get(
                    url, headers=headers, timeout=self._settings.outbound_timeout_seconds
                )
            else:
                async with httpx.AsyncClient(
                    timeout=self._settings.outbound_timeout_seconds
                ) as client:
                    response = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Nylas message fetch failed for %s: %s", message_id, exc)
            return None

        if response.status_code != 200:
            logger.warning(
                "Nylas message fetch for %s returned %s: %s",
                message_id,
                response.status_code,
                response.text[:500],
            )
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Nylas message fetch for %s returned non-JSON body", message_id)
            return None

        message = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(message, dict):
            logger.warning("Nylas message fetch for %s returned no data object", message_id)
            return None

        return message_record_from_dict(message, grant_id)
