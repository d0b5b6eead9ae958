"""Fee-inclusive amount arithmetic in minor currency units"""

from decimal import Decimal, DecimalException, InvalidOperation, ROUND_HALF_UP
from typing import Union

from lucentpay_checkout.domain.exceptions import InvalidAmountError
from lucentpay_checkout.domain.models import ComputedCharge

Number = Union[Decimal, int, float, str]

MINOR_UNITS_PER_MAJOR = Decimal(100)


def to_decimal(value: Number, field: str = "amount") -> Decimal:
    """
    Parse a finite, non-negative decimal.

    Floats go through str() so 49.99 stays 49.99 instead of its binary
    approximation.

    Raises:
        InvalidAmountError: On non-numeric, non-finite or negative input
    """
    if isinstance(value, bool):
        raise InvalidAmountError(f"Invalid {field}: {value!r}")

    try:
        if isinstance(value, Decimal):
            parsed = value
        elif isinstance(value, (int, float)):
            parsed = Decimal(str(value))
        else:
            parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidAmountError(f"Invalid {field}: {value!r}") from e

    if not parsed.is_finite():
        raise InvalidAmountError(f"Invalid {field}: {value!r}")
    if parsed < 0:
        raise InvalidAmountError(f"{field} must not be negative")

    return parsed


def compute_total_with_fee(base_amount_major: Number, fee_rate: Number) -> int:
    """
    Total in minor units after applying a fractional fee.

    Rounds half away from zero (inputs are non-negative, so ROUND_HALF_UP).
    Totals beyond the decimal context precision are rejected as invalid input.

    Example:
        49.99 at 10% → 49.99 * 1.10 * 100 = 5498.9 → 5499

    Raises:
        InvalidAmountError: On invalid input or a total that cannot be represented
    """
    base = to_decimal(base_amount_major, "amount")
    rate = to_decimal(fee_rate, "fee_rate")

    try:
        total = base * (1 + rate) * MINOR_UNITS_PER_MAJOR
        return int(total.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except DecimalException as e:
        raise InvalidAmountError("Charge total is too large") from e


def compute_charge(base_amount_major: Number, fee_rate: Number) -> ComputedCharge:
    """Build the ComputedCharge echoed back into session metadata"""
    base = to_decimal(base_amount_major, "amount")
    rate = to_decimal(fee_rate, "fee_rate")
    return ComputedCharge(
        total_amount_minor=compute_total_with_fee(base, rate),
        base_amount_major=base,
        fee_rate=rate,
    )


def minor_to_major(amount_minor: int) -> str:
    """Format minor units as a two-decimal major amount, e.g. 21000 → "210.00" """
    return f"{Decimal(amount_minor) / MINOR_UNITS_PER_MAJOR:.2f}"
