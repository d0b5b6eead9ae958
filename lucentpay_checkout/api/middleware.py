"""FastAPI middleware for request tracing, metrics, and origin enforcement"""

import logging
import uuid
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from lucentpay_checkout.api.errors import error_response
from lucentpay_checkout.domain.exceptions import CorsRejectedError
from lucentpay_checkout.domain.origins import OriginPolicy
from lucentpay_checkout.infrastructure.observability.metrics import request_duration_histogram

logger = logging.getLogger(__name__)

ALLOWED_METHODS = "GET, POST, OPTIONS"
ALLOWED_HEADERS = "Content-Type"
POWERED_BY = "LucentPay Checkout"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add unique request ID to each request for distributed tracing"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Powered-By"] = POWERED_BY
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record HTTP request metrics"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time
        request_duration_histogram.labels(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code,
        ).observe(duration)

        return response


class OriginPolicyMiddleware(BaseHTTPMiddleware):
    """
    Enforce the origin policy before any route runs.

    Rejected origins get a 403 and never reach a handler. Permitted
    preflights are answered here with 204.
    """

    def __init__(self, app: ASGIApp, policy: OriginPolicy):
        super().__init__(app)
        self.policy = policy

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")

        if not self.policy.is_allowed(origin):
            logger.warning(
                "Origin rejected",
                extra={"request_id": getattr(request.state, "request_id", "unknown"), "origin": origin},
            )
            return error_response(CorsRejectedError(f"Origin not allowed: {origin}"))

        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)

        if origin:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
            response.headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
            response.headers["Vary"] = "Origin"
        return response
