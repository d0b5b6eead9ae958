"""Payments gateway HTTP client (Stripe-compatible REST API)"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from lucentpay_checkout.config import Settings, settings as default_settings
from lucentpay_checkout.domain.exceptions import GatewayRejectedError, GatewayUnavailableError, NotConfiguredError
from lucentpay_checkout.domain.models import BillingMode, CheckoutSession
from lucentpay_checkout.infrastructure.observability.metrics import gateway_failure_counter, gateway_latency_histogram


def encode_form(params: Dict[str, Any], prefix: str | None = None) -> Dict[str, str]:
    """
    Flatten nested params into the gateway's bracketed form encoding.

    {"line_items": [{"price": "p", "quantity": 1}]}
        → {"line_items[0][price]": "p", "line_items[0][quantity]": "1"}

    None values are dropped so optional fields are omitted, not sent empty.
    """
    encoded: Dict[str, str] = {}
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            encoded.update(encode_form(value, name))
        elif isinstance(value, (list, tuple)):
            encoded.update(encode_form({str(i): item for i, item in enumerate(value)}, name))
        elif isinstance(value, bool):
            encoded[name] = "true" if value else "false"
        else:
            encoded[name] = str(value)
    return encoded


class PaymentsGatewayClient:
    """Client for the external payments API: price lookups and hosted checkout sessions"""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else default_settings.stripe_secret_key
        self.base_url = (base_url or default_settings.stripe_api_base).rstrip("/")
        self.timeout = timeout or default_settings.http_timeout_seconds
        self.transport = transport

    @classmethod
    def from_settings(cls, config: Settings, transport: httpx.AsyncBaseTransport | None = None) -> "PaymentsGatewayClient":
        return cls(
            api_key=config.stripe_secret_key,
            base_url=config.stripe_api_base,
            timeout=config.http_timeout_seconds,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def retrieve_price(self, price_id: str) -> Dict[str, Any]:
        """
        Fetch a raw price record.

        Raises:
            GatewayUnavailableError: On timeout, network failure, 429 or 5xx
            GatewayRejectedError: On 4xx (unknown price, bad key)
        """
        return await self._request("retrieve_price", "GET", f"/v1/prices/{_path_segment(price_id)}")

    async def create_checkout_session(self, params: Dict[str, Any]) -> CheckoutSession:
        """
        Create a hosted checkout session.

        Args:
            params: Nested session parameters (mode, line_items, success_url, ...)

        Returns:
            CheckoutSession with the gateway's session id and redirect URL
        """
        data = await self._request(
            "create_checkout_session",
            "POST",
            "/v1/checkout/sessions",
            data=encode_form(params),
        )
        try:
            return CheckoutSession(
                session_id=data["id"],
                redirect_url=data.get("url"),
                mode=BillingMode.from_session_mode(data.get("mode") or params.get("mode")),
            )
        except KeyError as e:
            raise GatewayRejectedError(f"Invalid session data from gateway: missing {e}") from e

    async def retrieve_checkout_session(self, session_id: str, expand: Optional[List[str]] = None) -> Dict[str, Any]:
        """Fetch a checkout session, optionally expanding related objects"""
        params = [("expand[]", field) for field in (expand or [])]
        return await self._request(
            "retrieve_checkout_session",
            "GET",
            f"/v1/checkout/sessions/{_path_segment(session_id)}",
            params=params,
        )

    async def _request(self, operation: str, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        if not self.configured:
            raise NotConfiguredError("Missing payments gateway API key")

        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers={"Authorization": f"Bearer {self.api_key}"},
        ) as client:
            try:
                with gateway_latency_histogram.labels(operation=operation).time():
                    response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                data = response.json()

            except httpx.TimeoutException as e:
                gateway_failure_counter.labels(operation=operation, kind="unavailable").inc()
                raise GatewayUnavailableError(f"Gateway timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                message = _error_message(e.response)
                if status == 429 or status >= 500:
                    gateway_failure_counter.labels(operation=operation, kind="unavailable").inc()
                    raise GatewayUnavailableError(f"Gateway error {status}: {message}") from e
                gateway_failure_counter.labels(operation=operation, kind="rejected").inc()
                raise GatewayRejectedError(message, status=status) from e
            except httpx.RequestError as e:
                gateway_failure_counter.labels(operation=operation, kind="unavailable").inc()
                raise GatewayUnavailableError(f"Gateway unreachable: {e}") from e
            except ValueError as e:
                gateway_failure_counter.labels(operation=operation, kind="unavailable").inc()
                raise GatewayUnavailableError("Invalid JSON from gateway") from e

        if not isinstance(data, dict):
            gateway_failure_counter.labels(operation=operation, kind="rejected").inc()
            raise GatewayRejectedError(f"Unexpected {type(data).__name__} body from gateway")
        return data


def _path_segment(identifier: str) -> str:
    """Percent-encode an identifier as a single path segment"""
    if identifier in (".", ".."):
        raise GatewayRejectedError(f"Invalid identifier: {identifier!r}")
    return quote(identifier, safe="")


def _error_message(response: httpx.Response) -> str:
    """Extract the gateway's own error text, falling back to the status line"""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"HTTP {response.status_code}"
