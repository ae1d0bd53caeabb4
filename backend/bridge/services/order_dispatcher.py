"""
SaleSys order dispatch.

Best-effort: one POST per extracted message, no retry, no queue. A failed
call is logged with its status and body and then dropped; webhook delivery
never waits on the order system.
"""

import logging
from datetime import date, timedelta
from typing import Optional

import httpx

from bridge.config import Settings
from bridge.models.notification import ExtractedFields
from bridge.models.order import OrderField, OrderRequest

logger = logging.getLogger(__name__)

# Orders are booked this many calendar days ahead of today
ORDER_DATE_OFFSET_DAYS = 4


def default_order_date(today: Optional[date] = None) -> date:
    """Business date for a new order: today + 4 calendar days."""
    return (today or date.today()) + timedelta(days=ORDER_DATE_OFFSET_DAYS)


def build_order_request(
    fields: ExtractedFields,
    settings: Settings,
    today: Optional[date] = None,
) -> OrderRequest:
    """
    Map extracted fields onto the orders-v2 request shape.

    Only present fields are included, each under its configured field id.
    """
    mapping = (
        (settings.salesys_field_organization, fields.organization_name),
        (settings.salesys_field_domain, fields.domain),
        (settings.salesys_field_salesperson_email, fields.salesperson_email),
    )

    return OrderRequest(
        user_id=settings.salesys_user_id or "",
        project_id=settings.salesys_project_id or "",
        tag_ids=list(settings.salesys_tag_ids),
        order_date=default_order_date(today),
        fields=[
            OrderField(field_id=field_id, value=value)
            for field_id, value in mapping
            if value
        ],
    )


class OrderDispatcher:
    """
    Creates SaleSys orders from extracted fields.

    Args:
        settings:    Bridge configuration (token, ids, field mapping, timeout).
        http_client: Optional shared httpx.AsyncClient; a short-lived client
                     is created per call when omitted.
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self._settings = settings
        self._http_client = http_client

    async def dispatch(
        self,
        fields: ExtractedFields,
        today: Optional[date] = None,
    ) -> Optional[dict]:
        """
        POST one order. Returns the API acknowledgement, or None when the
        dispatch was skipped or failed.
        """
        if not self._settings.order_dispatch_configured:
            logger.info(
                "SaleSys is not configured (SALESYS_API_TOKEN / SALESYS_USER_ID / "
                "SALESYS_PROJECT_ID); skipping order"
            )
            return None

        if not fields.is_dispatchable:
            logger.info("No domain or organization name extracted; skipping order")
            return None

        order = build_order_request(fields, self._settings, today)
        body = order.model_dump(by_alias=True, mode="json")
        headers = {
            "Authorization": f"Bearer {self._settings.salesys_api_token}",
            "Content-Type": "application/json",
        }
        url = self._settings.salesys_orders_url

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    url,
                    json=body,
                    headers=headers,
                    timeout=self._settings.outbound_timeout_seconds,
                )
            else:
                async with httpx.AsyncClient(
                    timeout=self._settings.outbound_timeout_seconds
                ) as client:
                    response = await client.post(url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("SaleSys order request failed: %s", exc)
            return None

        if not response.is_success:
            logger.error(
                "SaleSys order rejected: HTTP %s %s",
                response.status_code,
                response.text[:1000],
            )
            return None

        try:
            ack = response.json()
        except ValueError:
            ack = {}

        logger.info(
            "SaleSys order created for %s",
            fields.domain or fields.organization_name,
        )
        return ack if isinstance(ack, dict) else {"result": ack}
