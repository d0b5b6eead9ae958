"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request

from lucentpay_checkout.config import Settings
from lucentpay_checkout.infrastructure.clients.payments_gateway import PaymentsGatewayClient
from lucentpay_checkout.services.checkout import CheckoutService
from lucentpay_checkout.services.price_resolver import PriceResolver


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_settings(request: Request) -> Settings:
    """Settings the app was created with"""
    return request.app.state.settings


def get_gateway_client(request: Request) -> PaymentsGatewayClient:
    """Provide the shared payments gateway client"""
    return request.app.state.gateway


def get_price_resolver(request: Request) -> PriceResolver:
    """Provide the process-wide price resolver (owns the price cache)"""
    return request.app.state.price_resolver


def get_checkout_service(
    gateway: PaymentsGatewayClient = Depends(get_gateway_client),
    price_resolver: PriceResolver = Depends(get_price_resolver),
    config: Settings = Depends(get_settings),
) -> CheckoutService:
    """Provide a checkout service bound to the shared gateway and resolver"""
    return CheckoutService(gateway, price_resolver, config)
