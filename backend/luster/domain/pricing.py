"""
Pricing Domain Models

Inputs and outputs of the jewelry pricing calculator. A quote is always
computed in INR first and then converted to USD with the current rate.
"""
from decimal import Decimal, ROUND_HALF_UP
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional, Union

from luster.domain.catalog import DEFAULT_METAL_WEIGHT_GRAMS


def round_half_up(value: float) -> int:
    """Round to a whole amount, halves away from zero (2.5 -> 3)"""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StoneSelection(BaseModel):
    """A stone chosen for a piece: a stone type id or name, plus carats"""
    stone_type_id: Optional[Union[int, str]] = Field(None, description="StoneType id or stone name")
    carat_weight: Optional[float] = Field(None, description="Carat weight (defaults by role)", ge=0)


class PriceRequest(BaseModel):
    """Everything the calculator needs to price one piece"""
    metal_type_id: Union[int, str] = Field(..., description="MetalType id or metal name")
    metal_weight: float = Field(DEFAULT_METAL_WEIGHT_GRAMS, description="Metal weight in grams", ge=0)
    primary_stone: Optional[StoneSelection] = Field(None, description="Main stone")
    secondary_stones: List[StoneSelection] = Field(default_factory=list, description="Accent stones")
    other_stone: Optional[StoneSelection] = Field(None, description="Any other stone")
    product_type: str = Field("Necklace", description="Product type, informational")


class PriceBreakdown(BaseModel):
    """Cost components of a price, each rounded on its own"""
    metal_cost: int = 0
    primary_stone_cost: int = 0
    secondary_stone_cost: int = 0
    other_stone_cost: int = 0
    overhead: int = 0

    @property
    def stone_cost(self) -> int:
        return self.primary_stone_cost + self.secondary_stone_cost + self.other_stone_cost


class CurrencyPrice(BaseModel):
    price: int
    currency: str
    breakdown: PriceBreakdown


class PaymentSplit(BaseModel):
    """
    Advance / remaining split of a total.

    advance + remaining == total always holds.
    """
    total: int
    advance: int
    remaining: int
    currency: str


class PriceQuote(BaseModel):
    """
    Full result of a price calculation

    Fields:
        usd / inr: Price and breakdown per currency
        gold_price_per_gram: 24K gold price used (INR/g)
        gold_price_source: api | cache | stale_cache | fallback
        exchange_rate: INR per USD used for conversion
        exchange_rate_source: api | cache | fallback
        metal_modifier: Fraction of the 24K price applied to the metal
        inputs: Echo of the request that produced the quote
    """
    usd: CurrencyPrice
    inr: CurrencyPrice
    gold_price_per_gram: float
    gold_price_source: str
    exchange_rate: float
    exchange_rate_source: str
    metal_modifier: float
    inputs: PriceRequest
    payment_split_usd: PaymentSplit
    payment_split_inr: PaymentSplit

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump()


class ProductPrice(BaseModel):
    """
    Price shown on a product page.

    source is "calculated" when it comes from the stored generator inputs
    and "base_price" when it is the listed INR price converted to USD.
    """
    price_inr: int
    price_usd: int
    source: str
    exchange_rate: float
    gold_price_per_gram: Optional[float] = None
    payment_split_inr: PaymentSplit
    payment_split_usd: PaymentSplit
