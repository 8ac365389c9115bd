"""
Pricing API Endpoints
Jewelry price calculator, gold price, exchange rate and customizer options
"""
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from luster.api.errors import to_http_exception
from luster.domain.catalog import CUSTOMIZER_METALS, CUSTOMIZER_STONES, SUPPORTED_CURRENCIES
from luster.domain.pricing import PriceRequest
from luster.services.errors import GoldPriceUnavailable
from luster.services.exchange_rate import get_exchange_rate_service
from luster.services.gold_price import get_gold_price_service
from luster.services.pricing import get_pricing_service, sample_calculation, split_payment

router = APIRouter()


class SplitRequest(BaseModel):
    total: int = Field(..., ge=0)
    currency: str = "USD"


@router.post("/calculate-price")
async def calculate_price(
    request: PriceRequest,
    force_refresh: bool = Query(False, description="Bypass the gold price and exchange rate caches")
):
    """
    Calculate the price of a piece from metal, weight and stones

    Returns INR and USD totals with their breakdown and payment splits.
    """
    try:
        quote = await get_pricing_service().calculate(request, force_refresh=force_refresh)
        return {
            "status": "success",
            "data": quote.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "calculating price")


@router.get("/gold-price")
async def get_gold_price(force_refresh: bool = Query(False)):
    """Current 24K gold price per gram in INR (cached for an hour)"""
    try:
        result = await get_gold_price_service().get_price(force_refresh=force_refresh)
        if not result.success:
            raise GoldPriceUnavailable(f"Gold price unavailable: {result.error}")

        return {
            "status": "success",
            "data": result.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "fetching gold price")


@router.get("/exchange-rate")
async def get_exchange_rate(force_refresh: bool = Query(False)):
    """USD to INR rate; falls back to a fixed rate, never fails"""
    try:
        result = await get_exchange_rate_service().get_usd_to_inr(force_refresh=force_refresh)
        return {
            "status": "success",
            "data": result.to_dict()
        }

    except Exception as e:
        raise to_http_exception(e, "fetching exchange rate")


@router.get("/pricing/sample")
async def get_sample_calculation():
    """Worked example of the price formula"""
    return {
        "status": "success",
        "data": {"calculation": sample_calculation()}
    }


@router.post("/pricing/split")
async def get_payment_split(request: SplitRequest):
    """50% advance / remaining split of a total"""
    currency = request.currency.upper()
    if currency not in SUPPORTED_CURRENCIES:
        raise HTTPException(status_code=400, detail=f"Unsupported currency '{request.currency}'")

    return {
        "status": "success",
        "data": split_payment(request.total, currency).model_dump()
    }


@router.get("/customizer-options")
async def get_customizer_options(kind: Optional[str] = Query(None, description="metal or stone")):
    """Metal and stone options of the product customizer with their multipliers"""
    data = {}
    if kind in (None, "metal"):
        data["metals"] = [option.to_dict() for option in CUSTOMIZER_METALS]
    if kind in (None, "stone"):
        data["stones"] = [option.to_dict() for option in CUSTOMIZER_STONES]
    if not data:
        raise HTTPException(status_code=400, detail=f"Invalid kind '{kind}'. Valid: metal, stone")

    return {
        "status": "success",
        "data": data
    }
