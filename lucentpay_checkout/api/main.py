"""FastAPI application factory"""

from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from lucentpay_checkout.api.errors import register_exception_handlers
from lucentpay_checkout.api.middleware import MetricsMiddleware, OriginPolicyMiddleware, RequestIDMiddleware
from lucentpay_checkout.api.routes import checkout, debug
from lucentpay_checkout.config import Settings, settings
from lucentpay_checkout.domain.origins import OriginPolicy
from lucentpay_checkout.infrastructure.clients.payments_gateway import PaymentsGatewayClient
from lucentpay_checkout.infrastructure.observability.logging import setup_logging
from lucentpay_checkout.services.price_resolver import PriceResolver

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


def create_app(config: Settings | None = None, gateway: PaymentsGatewayClient | None = None) -> FastAPI:
    """Create and configure FastAPI application"""
    config = config or settings
    gateway = gateway or PaymentsGatewayClient.from_settings(config)

    app = FastAPI(
        title="LucentPay Checkout",
        description="Hosted checkout sessions for Pro membership and invoice payments",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = config
    app.state.gateway = gateway
    app.state.price_resolver = PriceResolver(gateway)

    policy = OriginPolicy(
        config.allowed_origin_list,
        primary_domain=config.primary_domain,
        storefront_suffix=config.storefront_suffix,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(OriginPolicyMiddleware, policy=policy)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/")
    def health_check():
        has_key = bool(config.stripe_secret_key)
        return JSONResponse(
            status_code=200 if has_key else 503,
            content={
                "ok": has_key,
                "service": config.service_name,
                "time": datetime.now(timezone.utc).isoformat(),
                "hasGatewayKey": has_key,
                "hasPrice": bool(config.stripe_price_pro),
            },
        )

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(checkout.router, tags=["checkout"])
    app.include_router(debug.router, tags=["debug"])

    return app


app = create_app()


def serve() -> None:
    """Run the service with uvicorn on the configured port"""
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)
