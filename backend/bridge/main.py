"""
Nylas → SaleSys webhook bridge.
FastAPI application that turns forwarded order emails into SaleSys orders.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from bridge.config import Settings, get_settings
from bridge.routers import webhook

_settings = get_settings()

# Configure logging to output to console
logging.basicConfig(
    level=getattr(logging, _settings.log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


def log_startup(settings: Settings) -> None:
    """Log where the webhook listens and which integrations are configured."""
    logger.info(
        "Nylas webhook listening on port %s\n"
        "  Signature secret: %s\n"
        "  Nylas API:        %s\n"
        "  SaleSys orders:   %s",
        settings.port,
        "configured" if settings.webhook_secret else "MISSING (POST /webhook returns 500)",
        "configured" if settings.nylas_api_key else "not configured (no message fetch)",
        "configured" if settings.order_dispatch_configured else "not configured (orders skipped)",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    log_startup(get_settings())
    yield


app = FastAPI(
    title="Nylas SaleSys Bridge",
    description="Receives Nylas message webhooks and creates SaleSys orders",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(webhook.router, tags=["webhook"])


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "Nylas webhook endpoint. Use GET /webhook?challenge=... for verification."


@app.get("/health")
async def health():
    return {"status": "ok"}


def run() -> None:
    """Console entry point: serve the app on 0.0.0.0:$PORT with uvicorn."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)


if __name__ == "__main__":
    run()
