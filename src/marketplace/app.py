"""Marketplace FastAPI application.

Processes the order workflow synchronously via HTTP. Every request runs
inside the marketplace domain context; notification delivery runs on the
relay's worker thread for the lifetime of the app.

Usage:
    uvicorn marketplace.app:app --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.api import ROUTERS
from marketplace.api.errors import register_marketplace_exception_handlers
from marketplace.domain import marketplace
from marketplace.notifications.relay import get_relay
from marketplace.utils.logging import bind_request, configure_logging, unbind_request

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Domain init walks this package, so it runs at startup, not on import.
    # PROTEAN_ENV selects the domain.toml overlay:
    #   - unset        → in-memory provider
    #   - "production" → PostgreSQL
    configure_logging()
    marketplace.init()

    relay = get_relay()
    relay.start()
    logger.info("Marketplace API started", domain=marketplace.name)
    try:
        yield
    finally:
        relay.stop()
        logger.info("Marketplace API stopped")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Marketplace API",
    description="Order fulfillment and payment reconciliation",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the marketplace domain context and tag logs with the caller."""
    bind_request(request.method, request.url.path, request.headers.get("x-user-id"))
    try:
        with marketplace.domain_context():
            return await call_next(request)
    finally:
        unbind_request()


register_marketplace_exception_handlers(app)

for router in ROUTERS:
    app.include_router(router)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": marketplace.name,
            "notification_relay": get_relay().running,
        }
    )
