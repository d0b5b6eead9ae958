"""Central mapping of checkout exceptions to HTTP responses"""

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from lucentpay_checkout.domain.exceptions import (
    CheckoutError,
    CheckoutValidationError,
    GatewayRejectedError,
    GatewayUnavailableError,
)

logger = logging.getLogger(__name__)


def error_body(exc: CheckoutError, expose_gateway_errors: bool = False) -> Dict[str, Any]:
    """
    Build the client-facing error payload.

    Gateway detail stays in the logs unless expose_gateway_errors is set.
    """
    message = exc.public_message
    if expose_gateway_errors and isinstance(exc, (GatewayRejectedError, GatewayUnavailableError)):
        message = str(exc) or message

    body: Dict[str, Any] = {"error": message, "retryable": exc.retryable}
    if isinstance(exc, CheckoutValidationError) and exc.missing:
        body["missing"] = exc.missing
    return body


def error_response(exc: CheckoutError, expose_gateway_errors: bool = False) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc, expose_gateway_errors))


async def handle_checkout_error(request: Request, exc: CheckoutError) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    extra = {"request_id": request_id, "path": request.url.path, "error_type": type(exc).__name__}

    if isinstance(exc, CheckoutValidationError):
        logger.warning(f"Rejected request: {exc}", extra=extra)
    else:
        logger.error(f"Checkout failed: {exc}", extra=extra)

    expose = request.app.state.settings.expose_gateway_errors
    return error_response(exc, expose)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(
        "Malformed request body",
        extra={"request_id": getattr(request.state, "request_id", "unknown"), "path": request.url.path},
    )
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "retryable": False})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: keep the {error} shape and log the traceback"""
    logger.error(
        f"Unhandled error: {exc}",
        exc_info=exc,
        extra={
            "request_id": getattr(request.state, "request_id", "unknown"),
            "path": request.url.path,
            "error_type": type(exc).__name__,
        },
    )
    return JSONResponse(status_code=500, content={"error": CheckoutError.public_message, "retryable": False})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CheckoutError, handle_checkout_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
