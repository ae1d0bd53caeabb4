"""
Runtime configuration for the webhook bridge.

All settings come from environment variables (optionally seeded from a .env
file). They are read once into an immutable Settings value and passed to the
services that need them, instead of being looked up at call sites.

Environment variables
---------------------
PORT                             Listening port for run() (default: 3000).
WEBHOOK_SECRET                   Shared secret used to verify X-Nylas-Signature.
WEBHOOK_MAX_BODY_BYTES           Largest accepted POST body (default: 2 MB).
NYLAS_API_KEY                    Bearer key for the Nylas message API.
NYLAS_API_URI                    Nylas API base URL (default: https://api.us.nylas.com).
SALESYS_API_TOKEN                Bearer token for the SaleSys order API.
SALESYS_ORDERS_URL               Order endpoint (default: orders-v2 on app.salesys.se).
SALESYS_USER_ID                  SaleSys user that owns created orders.
SALESYS_PROJECT_ID               SaleSys project that receives created orders.
SALESYS_TAG_IDS                  Comma-separated tag ids attached to every order.
SALESYS_FIELD_ORGANIZATION       Field id for the organization name.
SALESYS_FIELD_DOMAIN             Field id for the domain.
SALESYS_FIELD_SALESPERSON_EMAIL  Field id for the salesperson email.
OUTBOUND_TIMEOUT_SECONDS         Timeout for each outbound HTTP call (default: 10).
PROCESSING_TIMEOUT_SECONDS       Bound on the detached processing job (default: 30).
LOG_LEVEL                        Root log level (default: INFO).
"""

import logging
import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000
DEFAULT_MAX_BODY_BYTES = 2 * 1024 * 1024  # 2 MB
DEFAULT_NYLAS_API_URI = "https://api.us.nylas.com"
DEFAULT_SALESYS_ORDERS_URL = "https://app.salesys.se/api/orders/orders-v2"
DEFAULT_OUTBOUND_TIMEOUT_SECONDS = 10.0
DEFAULT_PROCESSING_TIMEOUT_SECONDS = 30.0


class Settings(BaseModel):
    """Immutable bridge configuration. Every field is absent-safe."""

    model_config = {"frozen": True}

    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    webhook_secret: Optional[str] = None
    webhook_max_body_bytes: int = DEFAULT_MAX_BODY_BYTES

    nylas_api_key: Optional[str] = None
    nylas_api_uri: str = DEFAULT_NYLAS_API_URI

    salesys_api_token: Optional[str] = None
    salesys_orders_url: str = DEFAULT_SALESYS_ORDERS_URL
    salesys_user_id: Optional[str] = None
    salesys_project_id: Optional[str] = None
    salesys_tag_ids: tuple[str, ...] = ()
    salesys_field_organization: str = "organizationName"
    salesys_field_domain: str = "domain"
    salesys_field_salesperson_email: str = "salespersonEmail"

    outbound_timeout_seconds: float = DEFAULT_OUTBOUND_TIMEOUT_SECONDS
    processing_timeout_seconds: float = DEFAULT_PROCESSING_TIMEOUT_SECONDS

    @property
    def order_dispatch_configured(self) -> bool:
        """True when every value needed to create a SaleSys order is set."""
        return bool(
            self.salesys_api_token and self.salesys_user_id and self.salesys_project_id
        )


def _env(name: str) -> Optional[str]:
    """Return a stripped env value, treating blank strings as unset."""
    value = os.getenv(name, "").strip()
    return value or None


def _env_number(name: str, default, cast):
    raw = _env(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default


def load_settings() -> Settings:
    """
    Build Settings from the process environment.

    A .env file in the working directory is loaded first without overriding
    variables that are already set.
    """
    load_dotenv()

    tag_ids = tuple(
        t.strip() for t in (_env("SALESYS_TAG_IDS") or "").split(",") if t.strip()
    )

    return Settings(
        port=_env_number("PORT", DEFAULT_PORT, int),
        log_level=(_env("LOG_LEVEL") or "INFO").upper(),
        webhook_secret=_env("WEBHOOK_SECRET"),
        webhook_max_body_bytes=_env_number(
            "WEBHOOK_MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES, int
        ),
        nylas_api_key=_env("NYLAS_API_KEY"),
        nylas_api_uri=(_env("NYLAS_API_URI") or DEFAULT_NYLAS_API_URI).rstrip("/"),
        salesys_api_token=_env("SALESYS_API_TOKEN"),
        salesys_orders_url=_env("SALESYS_ORDERS_URL") or DEFAULT_SALESYS_ORDERS_URL,
        salesys_user_id=_env("SALESYS_USER_ID"),
        salesys_project_id=_env("SALESYS_PROJECT_ID"),
        salesys_tag_ids=tag_ids,
        salesys_field_organization=_env("SALESYS_FIELD_ORGANIZATION") or "organizationName",
        salesys_field_domain=_env("SALESYS_FIELD_DOMAIN") or "domain",
        salesys_field_salesperson_email=(
            _env("SALESYS_FIELD_SALESPERSON_EMAIL") or "salespersonEmail"
        ),
        outbound_timeout_seconds=_env_number(
            "OUTBOUND_TIMEOUT_SECONDS", DEFAULT_OUTBOUND_TIMEOUT_SECONDS, float
        ),
        processing_timeout_seconds=_env_number(
            "PROCESSING_TIMEOUT_SECONDS", DEFAULT_PROCESSING_TIMEOUT_SECONDS, float
        ),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide Settings, built once."""
    return load_settings()
