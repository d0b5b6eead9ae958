"""Pytest fixtures for testing"""

import pytest
from typing import Any, Dict
from fastapi.testclient import TestClient
from lucentpay_checkout.api.main import create_app
from lucentpay_checkout.config import Settings
from lucentpay_checkout.domain.models import BillingMode, CheckoutSession
from lucentpay_checkout.infrastructure.clients.payments_gateway import PaymentsGatewayClient


@pytest.fixture
def test_settings() -> Settings:
    """Fully configured settings, isolated from any local .env"""
    return Settings(
        _env_file=None,
        stripe_secret_key="sk_test_123",
        stripe_price_pro="price_pro_annual",
        stripe_api_base="https://api.payments.test",
        site_base_url="https://lucentpay.co/",
        allowed_origins="https://partner.example, https://admin.partner.example",
        http_timeout_seconds=2.0,
    )


@pytest.fixture
def gateway(test_settings: Settings) -> PaymentsGatewayClient:
    return PaymentsGatewayClient.from_settings(test_settings)


@pytest.fixture
def client(test_settings: Settings, gateway: PaymentsGatewayClient) -> TestClient:
    """Create FastAPI test client against a fresh app (and a cold price cache)"""
    app = create_app(test_settings, gateway)
    return TestClient(app)


@pytest.fixture
def recurring_price_record() -> Dict[str, Any]:
    """Annual Pro membership price as returned by the gateway"""
    return {
        "id": "price_pro_annual",
        "object": "price",
        "currency": "gbp",
        "unit_amount": 9500,
        "type": "recurring",
        "recurring": {"interval": "year", "interval_count": 1},
    }


@pytest.fixture
def one_time_price_record() -> Dict[str, Any]:
    """One-off price record (no recurring block)"""
    return {
        "id": "price_pro_annual",
        "object": "price",
        "currency": "gbp",
        "unit_amount": 24900,
        "type": "one_time",
        "recurring": None,
    }


@pytest.fixture
def subscription_session() -> CheckoutSession:
    return CheckoutSession(
        session_id="cs_test_sub",
        redirect_url="https://checkout.payments.test/pay/cs_test_sub",
        mode=BillingMode.RECURRING,
    )


@pytest.fixture
def payment_session() -> CheckoutSession:
    return CheckoutSession(
        session_id="cs_test_pay",
        redirect_url="https://checkout.payments.test/pay/cs_test_pay",
        mode=BillingMode.ONE_TIME,
    )


@pytest.fixture
def invoice_payload() -> Dict[str, Any]:
    """Complete invoice checkout body as posted by the storefront"""
    return {
        "recipient": "Acme Ltd",
        "sort_code": "12-34-56",
        "account_number": "12345678",
        "reference": "INV-1001",
        "amount": 200,
        "fee_rate": 0.05,
        "plan": "starter",
        "email": "payer@example.com",
    }
