"""Domain models - pure Python dataclasses representing checkout entities"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class BillingMode(str, Enum):
    """Billing cadence of a price record"""

    ONE_TIME = "one_time"
    RECURRING = "recurring"

    @property
    def session_mode(self) -> str:
        """Checkout session mode understood by the gateway"""
        return "subscription" if self is BillingMode.RECURRING else "payment"

    @classmethod
    def from_session_mode(cls, mode: str | None) -> "BillingMode":
        return cls.RECURRING if mode == "subscription" else cls.ONE_TIME


@dataclass(frozen=True)
class PriceInfo:
    """Resolved gateway price record"""

    identifier: str
    billing_mode: BillingMode
    currency: str
    unit_amount_minor: Optional[int] = None
    interval: Optional[str] = None  # "day" | "week" | "month" | "year"
    interval_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "billing_mode": self.billing_mode.value,
            "mode": self.billing_mode.session_mode,
            "currency": self.currency,
            "unit_amount_minor": self.unit_amount_minor,
            "interval": self.interval,
            "interval_count": self.interval_count,
        }


@dataclass(frozen=True)
class CheckoutRequest:
    """Validated invoice payment request"""

    recipient_name: str
    sort_code: str
    account_number: str
    payment_reference: str
    base_amount_major: Decimal
    fee_rate: Decimal
    payer_email: str
    plan_tag: Optional[str] = None


@dataclass(frozen=True)
class ComputedCharge:
    """Fee-inclusive charge for an invoice payment"""

    total_amount_minor: int
    base_amount_major: Decimal
    fee_rate: Decimal


@dataclass(frozen=True)
class CheckoutSession:
    """Hosted checkout session handle returned by the gateway"""

    session_id: str
    redirect_url: Optional[str]
    mode: BillingMode


@dataclass(frozen=True)
class SessionStatus:
    """Verification snapshot of an existing checkout session"""

    id: str
    status: Optional[str]
    mode: Optional[str]
    customer_email: Optional[str]
    subscription_status: Optional[str]
