"""Integration tests for API endpoints"""

import pytest
import httpx
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from lucentpay_checkout.api.main import create_app
from lucentpay_checkout.config import Settings
from lucentpay_checkout.domain.exceptions import GatewayRejectedError, GatewayUnavailableError
from lucentpay_checkout.domain.models import CheckoutSession
from lucentpay_checkout.infrastructure.clients.payments_gateway import PaymentsGatewayClient

GATEWAY = "lucentpay_checkout.infrastructure.clients.payments_gateway.PaymentsGatewayClient"


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["service"] == "lucentpay-checkout"
    assert data["hasGatewayKey"] is True
    assert data["hasPrice"] is True
    assert "time" in data


def test_health_endpoint_without_gateway_key():
    """Missing credentials keep health failing instead of crashing the process"""
    app = create_app(Settings(_env_file=None, stripe_secret_key="", stripe_price_pro=""))
    response = TestClient(app).get("/")

    assert response.status_code == 503
    assert response.json()["ok"] is False
    assert response.json()["hasPrice"] is False


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "gateway_latency_seconds" in response.text


def test_tracing_headers(client: TestClient):
    response = client.get("/")
    assert response.headers["X-Request-ID"]
    assert response.headers["X-Powered-By"] == "LucentPay Checkout"


# POST /create-pro-checkout


@patch(f"{GATEWAY}.create_checkout_session", new_callable=AsyncMock)
@patch(f"{GATEWAY}.retrieve_price", new_callable=AsyncMock)
def test_pro_checkout_subscription(
    mock_price: AsyncMock,
    mock_create: AsyncMock,
    client: TestClient,
    recurring_price_record,
    subscription_session: CheckoutSession,
):
    """Recurring price → subscription session, URL returned to the storefront"""
    mock_price.return_value = recurring_price_record
    mock_create.return_value = subscription_session

    response = client.post("/create-pro-checkout", json={"email": " payer@example.com "})

    assert response.status_code == 200
    assert response.json() == {"url": subscription_session.redirect_url}
    params = mock_create.await_args.args[0]
    assert params["mode"] == "subscription"
    assert params["customer_email"] == "payer@example.com"


@patch(f"{GATEWAY}.create_checkout_session", new_callable=AsyncMock)
@patch(f"{GATEWAY}.retrieve_price", new_callable=AsyncMock)
def test_pro_checkout_without_email_omits_customer_email(
    mock_price: AsyncMock,
    mock_create: AsyncMock,
    client: TestClient,
    recurring_price_record,
    subscription_session: CheckoutSession,
):
    mock_price.return_value = recurring_price_record
    mock_create.return_value = subscription_session

    assert client.post("/create-pro-checkout", json={}).status_code == 200
    assert client.post("/create-pro-checkout").status_code == 200

    for call in mock_create.await_args_list:
        assert "customer_email" not in call.args[0]


@patch(f"{GATEWAY}.create_checkout_session", new_callable=AsyncMock)
@patch(f"{GATEWAY}.retrieve_price", new_callable=AsyncMock)
def test_pro_checkout_one_time_price(
    mock_price: AsyncMock,
    mock_create: AsyncMock,
    client: TestClient,
    one_time_price_record,
    payment_session: CheckoutSession,
):
    mock_price.return_value = one_time_price_record
    mock_create.return_value = payment_session

    response = client.post("/create-pro-checkout", json={})

    assert response.status_code == 200
    assert mock_create.await_args.args[0]["mode"] == "payment"


@patch(f"{GATEWAY}.create_checkout_session", new_callable=AsyncMock)
@patch(f"{GATEWAY}.retrieve_price", new_callable=AsyncMock)
def test_pro_checkout_caches_price_across_requests(
    mock_price: AsyncMock,
    mock_create: AsyncMock,
    client: TestClient,
    recurring_price_record,
    subscription_session: CheckoutSession,
):
    mock_price.return_value = recurring_price_record
    mock_create.return_value = subscription_session

    for _ in range(3):
        assert client.post("/create-pro-checkout", json={}).status_code == 200

    assert mock_price.await_count == 1
    assert mock_create.await_count == 3


def test_pro_checkout_without_price_configured(test_settings: Settings):
    app = create_app(test_settings.model_copy(update={"stripe_price_pro": ""}))
    response = TestClient(app).post("/create-pro-checkout", json={})

    assert response.status_code == 500
    assert response.json() == {"error": "Checkout is not configured", "retryable": False}


@patch(f"{GATEWAY}.retrieve_price", new_callable=AsyncMock)
def test_pro_checkout_gateway_rejection_is_generic(mock_price: AsyncMock, client: TestClient):
    """Provider error text stays in the logs by default"""
    mock_price.side_effect = GatewayRejectedError("No such price: 'price_pro_annual'", status=404)

    response = client.post("/create-pro-checkout", json={})

    assert response.status_code == 500
    assert response.json() == {"error": "Unable to start checkout", "retryable": False}


@patch(f"{GATEWAY}.retrieve_price", new_callable=AsyncMock)
def test_pro_checkout_gateway_rejection_verbose(mock_price: AsyncMock, test_settings: Settings):
    mock_price.side_effect = GatewayRejectedError("No such price: 'price_pro_annual'", status=404)
    app = create_app(test_settings.model_copy(update={"expose_gateway_errors": True}))

    response = TestClient(app).post("/create-pro-checkout", json={})

    assert response.status_code == 500
    assert response.json()["error"] == "No such price: 'price_pro_annual'"


@patch(f"{GATEWAY}.create_checkout_session", new_callable=AsyncMock)
@patch(f"{GATEWAY}.retrieve_price", new_callable=AsyncMock)
def test_pro_checkout_gateway_unavailable_is_retryable(
    mock_price: AsyncMock,
    mock_create: AsyncMock,
    client: TestClient,
    recurring_price_record,
):
    mock_price.return_value = recurring_price_record
    mock_create.side_effect = GatewayUnavailableError("Gateway timeout after 2.0s")

    response = client.post("/create-pro-checkout", json={})

    assert response.status_code == 500
    assert response.json()["retryable"] is True


# POST /create-checkout-session


@patch(f"{GATEWAY}.create_checkout_session", new_callable=AsyncMock)
def test_invoice_checkout(mock_create: AsyncMock, client: TestClient, invoice_payload, payment_session: CheckoutSession):
    """Acme Ltd, £200 at 5% → 21000 pence"""
    mock_create.return_value = payment_session

    response = client.post("/create-checkout-session", json=invoice_payload)

    assert response.status_code == 200
    assert response.json() == {"id": "cs_test_pay", "url": payment_session.redirect_url}
    line_item = mock_create.await_args.args[0]["line_items"][0]
    assert line_item["price_data"]["unit_amount"] == 21000
    assert "Acme Ltd" in line_item["price_data"]["product_data"]["name"]


@patch(f"{GATEWAY}.create_checkout_session", new_callable=AsyncMock)
def test_invoice_checkout_accepts_string_numbers(
    mock_create: AsyncMock, client: TestClient, invoice_payload, payment_session: CheckoutSession
):
    mock_create.return_value = payment_session
    invoice_payload.update(amount="49.99", fee_rate="0.10")

    response = client.post("/create-checkout-session", json=invoice_payload)

    assert response.status_code == 200
    assert mock_create.await_args.args[0]["line_items"][0]["price_data"]["unit_amount"] == 5499


@patch(f"{GATEWAY}.create_checkout_session", new_callable=AsyncMock)
def test_invoice_checkout_missing_reference(mock_create: AsyncMock, client: TestClient, invoice_payload):
    del invoice_payload["reference"]

    response = client.post("/create-checkout-session", json=invoice_payload)

    assert response.status_code == 400
    data = response.json()
    assert data["missing"] == ["reference"]
    assert "reference" in data["error"]
    assert data["retryable"] is False
    mock_create.assert_not_awaited()


@patch(f"{GATEWAY}.create_checkout_session", new_callable=AsyncMock)
def test_invoice_checkout_negative_amount(mock_create: AsyncMock, client: TestClient, invoice_payload):
    invoice_payload["amount"] = -10

    response = client.post("/create-checkout-session", json=invoice_payload)

    assert response.status_code == 400
    mock_create.assert_not_awaited()


@patch(f"{GATEWAY}.create_checkout_session", new_callable=AsyncMock)
def test_invoice_checkout_huge_amount_is_client_error(mock_create: AsyncMock, client: TestClient, invoice_payload):
    """A finite amount too large to price is rejected as input, not a crash"""
    invoice_payload["amount"] = "1e30"

    response = client.post("/create-checkout-session", json=invoice_payload)

    assert response.status_code == 400
    assert response.json()["retryable"] is False
    assert "error" in response.json()
    mock_create.assert_not_awaited()


def test_invoice_checkout_malformed_body(client: TestClient):
    response = client.post(
        "/create-checkout-session",
        content="not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"


@patch(f"{GATEWAY}.create_checkout_session", new_callable=AsyncMock)
def test_invoice_checkout_gateway_failure(mock_create: AsyncMock, client: TestClient, invoice_payload):
    mock_create.side_effect = GatewayRejectedError("Amount must be at least 30 pence", status=400)

    response = client.post("/create-checkout-session", json=invoice_payload)

    assert response.status_code == 500
    assert response.json()["error"] == "Unable to start checkout"


# GET /debug/price


@patch(f"{GATEWAY}.retrieve_price", new_callable=AsyncMock)
def test_debug_price(mock_price: AsyncMock, client: TestClient, recurring_price_record):
    mock_price.return_value = recurring_price_record

    first = client.get("/debug/price")
    second = client.get("/debug/price")

    assert first.status_code == 200
    assert first.json()["ok"] is True
    assert first.json()["price"]["billing_mode"] == "recurring"
    assert first.json()["price"]["mode"] == "subscription"
    assert second.json() == first.json()
    assert mock_price.await_count == 1


def test_debug_price_without_configuration(test_settings: Settings):
    app = create_app(test_settings.model_copy(update={"stripe_price_pro": ""}))
    response = TestClient(app).get("/debug/price")

    assert response.status_code == 500
    assert "error" in response.json()


# GET /verify-session


def test_verify_session_requires_session_id(client: TestClient):
    response = client.get("/verify-session")

    assert response.status_code == 400
    assert response.json()["error"] == "Missing session_id"


@patch(f"{GATEWAY}.retrieve_checkout_session", new_callable=AsyncMock)
def test_verify_session(mock_retrieve: AsyncMock, client: TestClient):
    mock_retrieve.return_value = {
        "id": "cs_test_sub",
        "status": "complete",
        "mode": "subscription",
        "customer_details": {"email": "payer@example.com"},
        "subscription": {"status": "active"},
    }

    response = client.get("/verify-session", params={"session_id": "cs_test_sub"})

    assert response.status_code == 200
    assert response.json() == {
        "id": "cs_test_sub",
        "status": "complete",
        "mode": "subscription",
        "customer_email": "payer@example.com",
        "subscription_status": "active",
    }


@patch(f"{GATEWAY}.retrieve_checkout_session", new_callable=AsyncMock)
def test_verify_session_rejects_path_like_id(mock_retrieve: AsyncMock, client: TestClient):
    response = client.get("/verify-session", params={"session_id": "../../customers/cus_1"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid session_id"
    mock_retrieve.assert_not_awaited()


def test_verify_session_requests_only_the_session_resource(test_settings: Settings):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        return httpx.Response(200, json={"id": "cs_test_sub", "status": "open", "mode": "subscription"})

    gateway = PaymentsGatewayClient.from_settings(test_settings, transport=httpx.MockTransport(handler))
    client = TestClient(create_app(test_settings, gateway))

    response = client.get("/verify-session", params={"session_id": "cs_test_sub"})

    assert response.status_code == 200
    assert seen["path"] == "/v1/checkout/sessions/cs_test_sub"


# Origin policy


@patch(f"{GATEWAY}.create_checkout_session", new_callable=AsyncMock)
def test_disallowed_origin_never_reaches_handler(mock_create: AsyncMock, client: TestClient, invoice_payload):
    response = client.post(
        "/create-checkout-session",
        json=invoice_payload,
        headers={"Origin": "https://evil.example"},
    )

    assert response.status_code == 403
    assert response.json()["error"] == "CORS: Origin not allowed"
    assert "Access-Control-Allow-Origin" not in response.headers
    mock_create.assert_not_awaited()


@pytest.mark.parametrize(
    "origin",
    ["https://shop123.myshopify.com", "https://www.lucentpay.co", "https://partner.example"],
)
def test_preflight_from_allowed_origin(client: TestClient, origin: str):
    response = client.options(
        "/create-checkout-session",
        headers={"Origin": origin, "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 204
    assert response.content == b""
    assert response.headers["Access-Control-Allow-Origin"] == origin
    assert "POST" in response.headers["Access-Control-Allow-Methods"]
    assert response.headers["Access-Control-Allow-Headers"] == "Content-Type"


def test_preflight_from_malformed_origin(client: TestClient):
    response = client.options("/create-pro-checkout", headers={"Origin": "not a url"})
    assert response.status_code == 403


def test_request_without_origin_has_no_cors_headers(client: TestClient):
    response = client.get("/")

    assert response.status_code == 200
    assert "Access-Control-Allow-Origin" not in response.headers


# Unexpected failures


def test_debug_price_with_non_object_gateway_body(test_settings: Settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["oops"])

    gateway = PaymentsGatewayClient.from_settings(test_settings, transport=httpx.MockTransport(handler))
    response = TestClient(create_app(test_settings, gateway)).get("/debug/price")

    assert response.status_code == 500
    assert response.json() == {"error": "Unable to start checkout", "retryable": False}


@patch(f"{GATEWAY}.retrieve_price", new_callable=AsyncMock)
def test_unhandled_exception_returns_json_error(mock_price: AsyncMock, test_settings: Settings):
    mock_price.side_effect = RuntimeError("boom")
    client = TestClient(create_app(test_settings), raise_server_exceptions=False)

    response = client.post("/create-pro-checkout", json={})

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    assert response.json() == {"error": "Unable to start checkout", "retryable": False}
