"""HTTP mapping for workflow errors not covered by Protean's handlers."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError
from protean.integrations.fastapi import register_exception_handlers

from marketplace.errors import ExternalServiceError, InvalidSignature, PartialUpdateError
from marketplace.gateway.port import GatewayTimeout

logger = structlog.get_logger(__name__)


async def _external_service_error(request: Request, exc: ExternalServiceError) -> JSONResponse:
    status_code = 504 if isinstance(exc, GatewayTimeout) else 502
    logger.warning("external_service_error", path=request.url.path, service=exc.service, error=exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"error": {"service": exc.service, "message": exc.message, "retryable": True}},
    )


async def _partial_update_error(request: Request, exc: PartialUpdateError) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": {"saga_id": exc.saga_id, "step": exc.step, "message": exc.message}},
    )


async def _invalid_signature(request: Request, exc: InvalidSignature) -> JSONResponse:
    logger.warning("notification_signature_rejected", path=request.url.path)
    return JSONResponse(status_code=401, content={"error": {"message": str(exc)}})


async def _version_conflict(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    logger.info("concurrent_update_rejected", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=409,
        content={"error": {"message": "Record was modified concurrently, retry the request", "retryable": True}},
    )


def register_marketplace_exception_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(ExpectedVersionError, _version_conflict)
    app.add_exception_handler(ExternalServiceError, _external_service_error)
    app.add_exception_handler(PartialUpdateError, _partial_update_error)
    app.add_exception_handler(InvalidSignature, _invalid_signature)
