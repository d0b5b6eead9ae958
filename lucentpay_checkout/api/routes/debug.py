"""GET /debug/price - Inspect the resolved product price"""

from fastapi import APIRouter, Depends

from lucentpay_checkout.api.dependencies import get_price_resolver, get_settings
from lucentpay_checkout.api.schemas import PriceResponse, PriceSchema
from lucentpay_checkout.config import Settings
from lucentpay_checkout.services.price_resolver import PriceResolver

router = APIRouter()


@router.get("/debug/price", response_model=PriceResponse)
async def debug_price(
    config: Settings = Depends(get_settings),
    price_resolver: PriceResolver = Depends(get_price_resolver),
):
    """
    Show how the configured price was classified.

    Returns 500 when no price identifier is configured.
    """
    price = await price_resolver.resolve(config.stripe_price_pro)
    return PriceResponse(price=PriceSchema.from_domain(price))
