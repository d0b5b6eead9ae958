"""Checkout endpoints: Pro membership, invoice payment, and session verification"""

import time
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from lucentpay_checkout.api.dependencies import get_checkout_service, get_request_id
from lucentpay_checkout.api.schemas import (
    CheckoutUrlResponse,
    InvoiceCheckoutRequest,
    InvoiceCheckoutResponse,
    MembershipCheckoutRequest,
    SessionStatusResponse,
)
from lucentpay_checkout.domain.exceptions import CheckoutError, CheckoutValidationError
from lucentpay_checkout.infrastructure.observability.logging import log_checkout
from lucentpay_checkout.infrastructure.observability.metrics import record_checkout
from lucentpay_checkout.services.checkout import CheckoutService, parse_checkout_request

router = APIRouter()


def _outcome(exc: CheckoutError) -> str:
    return "rejected" if isinstance(exc, CheckoutValidationError) else "failed"


@router.post("/create-pro-checkout", response_model=CheckoutUrlResponse)
async def create_pro_checkout(
    request: Request,
    request_body: Optional[MembershipCheckoutRequest] = None,
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Start a hosted checkout for the Pro membership.

    Flow:
    1. Resolve the configured price (cached after the first call)
    2. Pick subscription or one-time mode from the price's cadence
    3. Create the session and hand back its redirect URL
    """
    start_time = time.time()
    email = request_body.email if request_body else None

    try:
        session = await service.create_membership_checkout(email)
    except CheckoutError as e:
        record_checkout("membership", _outcome(e))
        raise

    record_checkout("membership", "created")
    log_checkout(
        get_request_id(request),
        flow="membership",
        session_id=session.session_id,
        mode=session.mode.value,
        duration_ms=(time.time() - start_time) * 1000,
    )
    return CheckoutUrlResponse(url=session.redirect_url or "")


@router.post("/create-checkout-session", response_model=InvoiceCheckoutResponse)
async def create_checkout_session(
    request_body: InvoiceCheckoutRequest,
    request: Request,
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Start a one-off payment for an invoice plus fee markup.

    Flow:
    1. Validate required fields (400 naming any that are missing)
    2. Compute the fee-inclusive total in pence
    3. Create a dynamically priced session carrying the payout details as metadata
    """
    start_time = time.time()

    try:
        checkout_request = parse_checkout_request(request_body.model_dump())
        session, charge = await service.create_invoice_checkout(checkout_request)
    except CheckoutError as e:
        record_checkout("invoice", _outcome(e))
        raise

    record_checkout("invoice", "created", total_amount_minor=charge.total_amount_minor)
    log_checkout(
        get_request_id(request),
        flow="invoice",
        session_id=session.session_id,
        mode=session.mode.value,
        duration_ms=(time.time() - start_time) * 1000,
        total_amount_minor=charge.total_amount_minor,
    )
    return InvoiceCheckoutResponse(id=session.session_id, url=session.redirect_url)


@router.get("/verify-session", response_model=SessionStatusResponse)
async def verify_session(
    session_id: Optional[str] = Query(None, description="Checkout session id from the success redirect"),
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Confirm a checkout session after the storefront redirect.

    Returns:
        Session status, mode, payer email, and subscription status when present
    """
    status = await service.verify_session(session_id)
    return SessionStatusResponse.from_domain(status)
