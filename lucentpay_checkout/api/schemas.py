"""Pydantic schemas for API request/response validation"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from lucentpay_checkout.domain.models import PriceInfo, SessionStatus

# Storefront forms post numbers either as JSON numbers or as strings
FormValue = Optional[Union[str, int, float]]


class MembershipCheckoutRequest(BaseModel):
    """Request body for POST /create-pro-checkout"""

    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None


class InvoiceCheckoutRequest(BaseModel):
    """
    Request body for POST /create-checkout-session.

    Every field is optional at the schema level so a missing field is
    reported by name from the checkout service rather than as a generic
    schema error.
    """

    model_config = ConfigDict(extra="ignore")

    recipient: FormValue = None
    sort_code: FormValue = None
    account_number: FormValue = None
    reference: FormValue = None
    amount: FormValue = None
    fee_rate: FormValue = None
    plan: FormValue = None
    email: FormValue = None


class CheckoutUrlResponse(BaseModel):
    """Response for POST /create-pro-checkout"""

    url: str


class InvoiceCheckoutResponse(BaseModel):
    """Response for POST /create-checkout-session"""

    id: str
    url: Optional[str] = None


class PriceSchema(BaseModel):
    """Resolved price as exposed by GET /debug/price"""

    identifier: str
    billing_mode: str
    mode: str
    currency: str
    unit_amount_minor: Optional[int] = None
    interval: Optional[str] = None
    interval_count: Optional[int] = None

    @classmethod
    def from_domain(cls, price: PriceInfo) -> "PriceSchema":
        return cls(**price.to_dict())


class PriceResponse(BaseModel):
    """Response for GET /debug/price"""

    ok: bool = True
    price: PriceSchema


class SessionStatusResponse(BaseModel):
    """Response for GET /verify-session"""

    id: str
    status: Optional[str] = None
    mode: Optional[str] = None
    customer_email: Optional[str] = None
    subscription_status: Optional[str] = None

    @classmethod
    def from_domain(cls, status: SessionStatus) -> "SessionStatusResponse":
        return cls(
            id=status.id,
            status=status.status,
            mode=status.mode,
            customer_email=status.customer_email,
            subscription_status=status.subscription_status,
        )
