"""Checkout use cases: membership subscription, invoice payment, and session verification"""

import logging
import re
from typing import Any, Dict, Mapping, Optional, Tuple

from lucentpay_checkout.config import Settings
from lucentpay_checkout.domain.exceptions import CheckoutValidationError, NotConfiguredError
from lucentpay_checkout.domain.models import BillingMode, CheckoutRequest, CheckoutSession, ComputedCharge, SessionStatus
from lucentpay_checkout.domain.money import compute_charge, minor_to_major, to_decimal
from lucentpay_checkout.infrastructure.clients.payments_gateway import PaymentsGatewayClient
from lucentpay_checkout.services.price_resolver import PriceResolver

logger = logging.getLogger(__name__)

SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"

MEMBERSHIP_SUCCESS_PATH = "/pages/verify-pro"
MEMBERSHIP_CANCEL_PATH = "/products/lucentpay-pro"
INVOICE_SUCCESS_PATH = "/pages/payment-success"
INVOICE_CANCEL_PATH = "/pages/payment-cancelled"

MEMBERSHIP_PRODUCT_TAG = "lucentpay_pro_membership"
MEMBERSHIP_PLAN_TAG = "lucentpay_pro_annual"

INVOICE_REQUIRED_FIELDS = ("recipient", "sort_code", "account_number", "reference", "amount", "fee_rate", "email")

# Gateway object ids: prefix, underscore, alphanumerics (cs_test_a1B2...)
SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


def _clean(value: Any) -> str:
    return "" if value is None else str(value).strip()


def parse_checkout_request(payload: Mapping[str, Any]) -> CheckoutRequest:
    """
    Validate an invoice payload and convert it to a CheckoutRequest.

    Raises:
        CheckoutValidationError: Listing every missing or blank required field
        InvalidAmountError: If amount or fee_rate is not a finite non-negative number
    """
    values = {field: _clean(payload.get(field)) for field in INVOICE_REQUIRED_FIELDS}
    missing = [field for field, value in values.items() if not value]
    if missing:
        raise CheckoutValidationError(f"Missing required fields: {', '.join(missing)}", missing=missing)

    plan = _clean(payload.get("plan"))

    return CheckoutRequest(
        recipient_name=values["recipient"],
        sort_code=values["sort_code"],
        account_number=values["account_number"],
        payment_reference=values["reference"],
        base_amount_major=to_decimal(values["amount"], "amount"),
        fee_rate=to_decimal(values["fee_rate"], "fee_rate"),
        payer_email=values["email"],
        plan_tag=plan or None,
    )


class CheckoutService:
    """Builds session-creation requests and submits them to the payments gateway"""

    def __init__(self, gateway: PaymentsGatewayClient, price_resolver: PriceResolver, config: Settings):
        self.gateway = gateway
        self.price_resolver = price_resolver
        self.config = config

    def _url(self, path: str, with_session_id: bool = False) -> str:
        url = f"{self.config.site_root}{path}"
        if with_session_id:
            url = f"{url}?session_id={SESSION_ID_PLACEHOLDER}"
        return url

    async def create_membership_checkout(self, payer_email: Optional[str] = None) -> CheckoutSession:
        """
        Start a Pro membership checkout for the configured price.

        Mode follows the price's billing cadence: recurring prices open a
        subscription session, one-time prices a single payment.
        """
        price_id = self.config.stripe_price_pro
        if not price_id:
            raise NotConfiguredError("Missing product price identifier")

        price = await self.price_resolver.resolve(price_id)
        recurring = price.billing_mode is BillingMode.RECURRING

        params: Dict[str, Any] = {
            "mode": price.billing_mode.session_mode,
            "line_items": [{"price": price_id, "quantity": 1}],
            "allow_promotion_codes": False,
            "success_url": self._url(MEMBERSHIP_SUCCESS_PATH, with_session_id=True),
            "cancel_url": self._url(MEMBERSHIP_CANCEL_PATH),
            "metadata": {"product": MEMBERSHIP_PRODUCT_TAG},
        }

        email = _clean(payer_email)
        if email:
            params["customer_email"] = email

        # subscription_data is rejected by the gateway for payment-mode sessions
        if recurring:
            params["subscription_data"] = {"metadata": {"plan": MEMBERSHIP_PLAN_TAG}}

        return await self.gateway.create_checkout_session(params)

    async def create_invoice_checkout(self, request: CheckoutRequest) -> Tuple[CheckoutSession, ComputedCharge]:
        """
        Start a one-off payment for an invoice plus its fee markup.

        Returns the session together with the charge it was created for.

        The recipient's bank details ride along as session metadata for
        manual payout; the gateway stores them without interpreting them.
        """
        charge = compute_charge(request.base_amount_major, request.fee_rate)
        description = f"Payment to {request.recipient_name} (Ref: {request.payment_reference})"

        params: Dict[str, Any] = {
            "mode": BillingMode.ONE_TIME.session_mode,
            "line_items": [
                {
                    "price_data": {
                        "currency": self.config.invoice_currency,
                        "product_data": {"name": description},
                        "unit_amount": charge.total_amount_minor,
                    },
                    "quantity": 1,
                }
            ],
            "customer_email": request.payer_email,
            "success_url": self._url(INVOICE_SUCCESS_PATH, with_session_id=True),
            "cancel_url": self._url(INVOICE_CANCEL_PATH),
            "metadata": {
                "recipient": request.recipient_name,
                "sort_code": request.sort_code,
                "account_number": request.account_number,
                "reference": request.payment_reference,
                "base_amount": str(charge.base_amount_major),
                "fee_rate": str(charge.fee_rate),
                "total_amount": minor_to_major(charge.total_amount_minor),
                "plan": request.plan_tag,
                "email": request.payer_email,
            },
        }

        session = await self.gateway.create_checkout_session(params)
        logger.debug(
            "Invoice charge computed",
            extra={"session_id": session.session_id, "total_amount_minor": charge.total_amount_minor},
        )
        return session, charge

    async def verify_session(self, session_id: Optional[str]) -> SessionStatus:
        """Look up a session after redirect so the storefront can confirm the purchase"""
        session_id = _clean(session_id)
        if not session_id:
            raise CheckoutValidationError("Missing session_id", missing=["session_id"])
        if not SESSION_ID_PATTERN.match(session_id):
            raise CheckoutValidationError("Invalid session_id")

        data = await self.gateway.retrieve_checkout_session(session_id, expand=["subscription", "customer"])

        customer_details = data.get("customer_details")
        if not isinstance(customer_details, dict):
            customer_details = {}
        customer = data.get("customer")
        subscription = data.get("subscription")

        email = customer_details.get("email")
        if not email and isinstance(customer, dict):
            email = customer.get("email")

        return SessionStatus(
            id=data.get("id", session_id),
            status=data.get("status"),
            mode=data.get("mode"),
            customer_email=email or None,
            subscription_status=subscription.get("status") if isinstance(subscription, dict) else None,
        )
