"""Process-lifetime resolution of the configured product price"""

import asyncio
import logging
from typing import Dict, Optional

from lucentpay_checkout.domain.exceptions import GatewayRejectedError, NotConfiguredError
from lucentpay_checkout.domain.models import PriceInfo
from lucentpay_checkout.domain.pricing import classify_price
from lucentpay_checkout.infrastructure.clients.payments_gateway import PaymentsGatewayClient
from lucentpay_checkout.infrastructure.observability.metrics import price_cache_counter

logger = logging.getLogger(__name__)


class PriceResolver:
    """
    Resolve a price record once and keep it for the life of the process.

    Cache semantics:
    - single slot, first successful lookup wins, never expires
    - concurrent cold-start callers share one in-flight lookup (single-flight)
    - no lock is held while the gateway call is outstanding
    - lookups are shielded from caller cancellation so the cache write still lands
    - failures are not cached; the next call retries
    """

    def __init__(self, gateway: PaymentsGatewayClient):
        self.gateway = gateway
        self._cached: Optional[PriceInfo] = None
        self._inflight: Dict[str, asyncio.Future] = {}

    async def resolve(self, price_id: str | None) -> PriceInfo:
        """
        Return PriceInfo for a price id, hitting the gateway at most once.

        Raises:
            NotConfiguredError: If no price id is configured
            GatewayUnavailableError: On lookup timeout or outage
            GatewayRejectedError: If the gateway rejects the lookup
        """
        if not price_id:
            raise NotConfiguredError("Missing product price identifier")

        cached = self._cached
        if cached is not None and cached.identifier == price_id:
            price_cache_counter.labels(result="hit").inc()
            return cached

        price_cache_counter.labels(result="miss").inc()

        inflight = self._inflight.get(price_id)
        if inflight is None:
            inflight = asyncio.ensure_future(self._lookup(price_id))
            self._inflight[price_id] = inflight
            inflight.add_done_callback(lambda _: self._inflight.pop(price_id, None))

        return await asyncio.shield(inflight)

    async def _lookup(self, price_id: str) -> PriceInfo:
        record = await self.gateway.retrieve_price(price_id)
        try:
            info = classify_price(record)
        except (KeyError, TypeError, ValueError) as e:
            raise GatewayRejectedError(f"Invalid price record from gateway: {e}") from e

        if self._cached is None:
            self._cached = info
            logger.info(
                "Price resolved",
                extra={"price_id": info.identifier, "billing_mode": info.billing_mode.value},
            )
        return info
