"""Price record classification"""

from typing import Any, Dict

from lucentpay_checkout.domain.models import BillingMode, PriceInfo


def classify_price(record: Dict[str, Any]) -> PriceInfo:
    """
    Normalize a raw gateway price record into a PriceInfo.

    A record is RECURRING when it carries a `recurring` object with an
    interval; anything else (including `recurring: null`) is ONE_TIME.

    Raises:
        KeyError: If the record has no `id`
    """
    recurring = record.get("recurring") or {}
    interval = recurring.get("interval") if isinstance(recurring, dict) else None

    if interval:
        billing_mode = BillingMode.RECURRING
        interval_count = int(recurring.get("interval_count") or 1)
    else:
        billing_mode = BillingMode.ONE_TIME
        interval = None
        interval_count = None

    unit_amount = record.get("unit_amount")

    return PriceInfo(
        identifier=record["id"],
        billing_mode=billing_mode,
        currency=str(record.get("currency") or ""),
        unit_amount_minor=int(unit_amount) if unit_amount is not None else None,
        interval=interval,
        interval_count=interval_count,
    )
