"""Domain-specific exceptions"""

from typing import List, Optional


class CheckoutError(Exception):
    """Base exception for checkout failures surfaced over HTTP"""

    status_code = 500
    retryable = False
    public_message = "Unable to start checkout"


class CheckoutValidationError(CheckoutError):
    """Client input is missing or malformed"""

    status_code = 400

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = list(missing or [])

    @property
    def public_message(self) -> str:
        return str(self)


class InvalidAmountError(CheckoutValidationError):
    """Amount or fee rate is not a finite non-negative number"""


class NotConfiguredError(CheckoutError):
    """Deployment is missing required configuration"""

    public_message = "Checkout is not configured"


class GatewayUnavailableError(CheckoutError):
    """Payments gateway timed out, was unreachable, or reported an outage"""

    retryable = True
    public_message = "Payment provider unavailable, please retry"


class GatewayRejectedError(CheckoutError):
    """Payments gateway refused the request (bad price, bad key, ...)"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class CorsRejectedError(CheckoutError):
    """Request origin is not permitted"""

    status_code = 403
    public_message = "CORS: Origin not allowed"
