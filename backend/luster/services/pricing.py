"""
Jewelry Pricing Calculator

Single implementation of the price formula used by the product customizer,
the admin price breakdown and the checkout summary:

    metal  = weight (g) x 24K gold price (INR/g) x metal modifier
    stones = sum(carats x per-carat price) over every stone
    total  = (metal + stones) x 1.25            (25% overhead)

Totals are computed in INR, rounded half up, then converted to USD with the
current exchange rate. Payment splits take 50% (rounded) as advance and the
rest as the remaining balance, so the two parts always sum to the total.
"""
import logging
from typing import List, Optional, Tuple, Union

from luster.core.config import settings
from luster.domain.catalog import (
    ADVANCE_RATE,
    DEFAULT_CARATS,
    OVERHEAD_RATE,
    PRICE_DRIFT_TOLERANCE,
    SUPPORTED_CURRENCIES,
    FALLBACK_METAL_MODIFIERS,
    fallback_price_per_carat,
    get_customizer_metal,
    get_customizer_stone,
    karat_from_name,
    metal_modifier_from_name,
)
from luster.domain.pricing import (
    CurrencyPrice,
    PaymentSplit,
    PriceBreakdown,
    PriceQuote,
    PriceRequest,
    ProductPrice,
    StoneSelection,
    round_half_up,
)
from luster.domain.product import AIInputs, Product
from luster.repositories.material_repository import MaterialRepository
from luster.services.errors import NotFoundError, ValidationError
from luster.services.exchange_rate import ExchangeRateService, get_exchange_rate_service
from luster.services.gold_price import GoldPriceService, get_gold_price_service

logger = logging.getLogger(__name__)


# ============================================================================
# Pure helpers
# ============================================================================

def split_payment(total: int, currency: str) -> PaymentSplit:
    """50% advance (rounded half up), remaining = total - advance"""
    advance = round_half_up(total * ADVANCE_RATE)
    return PaymentSplit(total=total, advance=advance, remaining=total - advance, currency=currency)


def customize_price(base_price: float, metal_id: Optional[str], stone_id: Optional[str]) -> int:
    """Customizer price: base x metal multiplier x stone multiplier"""
    metal = get_customizer_metal(metal_id)
    stone = get_customizer_stone(stone_id)
    return round_half_up(base_price * metal.price_multiplier * stone.price_multiplier)


def convert(amount: float, from_currency: str, to_currency: str, rate: float) -> int:
    """
    Convert between INR and USD with `rate` INR per USD.

    Raises:
        ValidationError: unsupported currency or non-positive rate
    """
    from_currency = from_currency.upper()
    to_currency = to_currency.upper()
    for currency in (from_currency, to_currency):
        if currency not in SUPPORTED_CURRENCIES:
            raise ValidationError(f"Unsupported currency '{currency}'")
    if rate <= 0:
        raise ValidationError("Exchange rate must be positive")

    if from_currency == to_currency:
        return round_half_up(amount)
    if from_currency == "INR":
        return round_half_up(amount / rate)
    return round_half_up(amount * rate)


def reconcile(client_price: Optional[float], server_price: int) -> Tuple[int, bool]:
    """
    The server price always wins; report whether the client drifted.

    Returns:
        (price to charge, True when |client - server| / server > tolerance)
    """
    if client_price is None:
        return server_price, False

    if server_price == 0:
        drifted = client_price != 0
    else:
        drifted = abs(client_price - server_price) / server_price > PRICE_DRIFT_TOLERANCE

    if drifted:
        logger.warning(f"Client price {client_price} drifted from server price {server_price}")
    return server_price, drifted


def price_request_from_inputs(inputs: AIInputs) -> PriceRequest:
    """
    Build a calculator request from stored generator inputs.

    The first gem is the primary stone, further gems are secondary stones.
    """
    gems = [
        StoneSelection(stone_type_id=gem.name, carat_weight=gem.carats)
        for gem in inputs.primary_gems if gem.name
    ]
    other = None
    if inputs.other_stone_type:
        other = StoneSelection(stone_type_id=inputs.other_stone_type, carat_weight=inputs.other_stone_weight)

    return PriceRequest(
        metal_type_id=inputs.metal_type_id or inputs.metal_type,
        metal_weight=inputs.metal_weight or 0,
        primary_stone=gems[0] if gems else None,
        secondary_stones=gems[1:],
        other_stone=other,
        product_type=inputs.product_type,
    )


def sample_calculation() -> str:
    """Walk-through of the formula for a sample piece at fallback rates"""
    gold = settings.FALLBACK_GOLD_PRICE_INR
    rate = settings.FALLBACK_USD_INR_RATE
    weight = 12
    modifier = FALLBACK_METAL_MODIFIERS["18K"]
    carats = 2.5
    per_carat = fallback_price_per_carat("Natural Diamond")

    metal_cost = weight * gold * modifier
    stone_cost = carats * per_carat
    base_cost = metal_cost + stone_cost
    overhead = base_cost * OVERHEAD_RATE
    total = round_half_up(base_cost + overhead)

    return f"""
Sample Price Calculation for "Elegant Diamond Necklace":

1. Metal Cost:
   {weight} grams x INR {gold:,.0f} (24K gold price) x {modifier} (18K modifier)
   = INR {metal_cost:,.0f}

2. Stone Cost:
   {carats} carats x INR {per_carat:,}/carat (Natural Diamond)
   = INR {stone_cost:,.0f}

3. Base Cost:
   INR {metal_cost:,.0f} + INR {stone_cost:,.0f}
   = INR {base_cost:,.0f}

4. Overhead ({OVERHEAD_RATE:.0%}):
   INR {base_cost:,.0f} x {OVERHEAD_RATE}
   = INR {overhead:,.0f}

5. Total Price:
   INR {base_cost:,.0f} + INR {overhead:,.0f}
   = INR {total:,}

6. USD Equivalent:
   INR {total:,} / {rate:g}
   = USD {round_half_up(total / rate):,}
"""


def _as_id(value: Union[int, str, None]) -> Optional[int]:
    """Numeric id from an int or a numeric string"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    return None


# ============================================================================
# Service
# ============================================================================

class PricingService:
    """
    Pricing calculator backed by the metal/stone tables and live market data

    Usage:
        service = get_pricing_service()
        quote = await service.calculate(PriceRequest(metal_type_id=2, metal_weight=8))
    """

    def __init__(
        self,
        metals: Optional[MaterialRepository] = None,
        stones: Optional[MaterialRepository] = None,
        gold_prices: Optional[GoldPriceService] = None,
        exchange_rates: Optional[ExchangeRateService] = None,
    ):
        self.metals = metals or MaterialRepository("metal")
        self.stones = stones or MaterialRepository("stone")
        self.gold_prices = gold_prices or get_gold_price_service()
        self.exchange_rates = exchange_rates or get_exchange_rate_service()

    split_payment = staticmethod(split_payment)
    customize_price = staticmethod(customize_price)
    convert = staticmethod(convert)
    reconcile = staticmethod(reconcile)
    sample_calculation = staticmethod(sample_calculation)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def resolve_metal_modifier(self, metal_type_id: Union[int, str]) -> float:
        """
        Fraction of the 24K price for a metal id or name.

        Raises:
            NotFoundError: unknown id, or a name that is neither in the
                table nor carries a recognizable karat
        """
        numeric_id = _as_id(metal_type_id)
        if numeric_id is not None:
            metal = self.metals.find_by_id(numeric_id)
            if metal is None:
                raise NotFoundError(f"Metal type {metal_type_id} not found")
        else:
            name = str(metal_type_id or "").strip()
            if not name:
                raise ValidationError("metal_type_id is required")
            metal = self.metals.find_by_name(name)
            if metal is None:
                if karat_from_name(name) is None:
                    raise NotFoundError(f"Metal type '{name}' not found")
                return metal_modifier_from_name(name)

        if metal.price_modifier and metal.price_modifier > 0:
            return metal.price_modifier / 100
        return metal_modifier_from_name(metal.name)

    def resolve_stone_price(self, stone_type_id: Union[int, str]) -> float:
        """INR per carat for a stone id or name; never fails"""
        numeric_id = _as_id(stone_type_id)
        if numeric_id is not None:
            stone = self.stones.find_by_id(numeric_id)
        else:
            name = str(stone_type_id).strip()
            stone = self.stones.find_by_name(name) or self.stones.find_contained_in(name)

        if stone is not None:
            if stone.price_modifier and stone.price_modifier > 0:
                return stone.price_modifier
            return fallback_price_per_carat(stone.name)

        logger.info(f"Stone '{stone_type_id}' not in stone_types, pricing by name")
        return fallback_price_per_carat(str(stone_type_id))

    def _stone_cost(self, selections: List[Optional[StoneSelection]], role: str) -> float:
        total = 0.0
        for selection in selections:
            if selection is None or selection.stone_type_id in (None, ""):
                continue
            carats = selection.carat_weight or DEFAULT_CARATS[role]
            total += carats * self.resolve_stone_price(selection.stone_type_id)
        return total

    # ------------------------------------------------------------------
    # Calculation
    # ------------------------------------------------------------------

    async def calculate(self, request: PriceRequest, force_refresh: bool = False) -> PriceQuote:
        """
        Price a piece in INR and USD.

        Raises:
            NotFoundError: metal type does not exist
            ValidationError: metal type missing
        """
        modifier = self.resolve_metal_modifier(request.metal_type_id)

        gold = await self.gold_prices.get_price(force_refresh=force_refresh)
        if gold.success and gold.price:
            gold_price, gold_source = gold.price, gold.source
        else:
            gold_price, gold_source = float(settings.FALLBACK_GOLD_PRICE_INR), "fallback"
            logger.warning(f"Gold price unavailable ({gold.error}), using fallback {gold_price}")

        metal_cost = max(request.metal_weight, 0) * gold_price * modifier
        primary_cost = self._stone_cost([request.primary_stone], "primary")
        secondary_cost = self._stone_cost(request.secondary_stones, "secondary")
        other_cost = self._stone_cost([request.other_stone], "other")

        base_cost = metal_cost + primary_cost + secondary_cost + other_cost
        overhead = base_cost * OVERHEAD_RATE
        total_inr = round_half_up(base_cost + overhead)

        rate = await self.exchange_rates.get_usd_to_inr(force_refresh=force_refresh)
        total_usd = round_half_up(total_inr / rate.rate)

        def breakdown(divisor: float) -> PriceBreakdown:
            return PriceBreakdown(
                metal_cost=round_half_up(metal_cost / divisor),
                primary_stone_cost=round_half_up(primary_cost / divisor),
                secondary_stone_cost=round_half_up(secondary_cost / divisor),
                other_stone_cost=round_half_up(other_cost / divisor),
                overhead=round_half_up(overhead / divisor),
            )

        logger.debug(
            f"Priced {request.product_type}: metal={metal_cost:.2f} stones="
            f"{primary_cost + secondary_cost + other_cost:.2f} total_inr={total_inr}"
        )

        return PriceQuote(
            usd=CurrencyPrice(price=total_usd, currency="USD", breakdown=breakdown(rate.rate)),
            inr=CurrencyPrice(price=total_inr, currency="INR", breakdown=breakdown(1)),
            gold_price_per_gram=gold_price,
            gold_price_source=gold_source,
            exchange_rate=rate.rate,
            exchange_rate_source=rate.source,
            metal_modifier=modifier,
            inputs=request,
            payment_split_usd=split_payment(total_usd, "USD"),
            payment_split_inr=split_payment(total_inr, "INR"),
        )

    async def product_price(self, product: Product) -> ProductPrice:
        """
        Price for a product page.

        Calculated from the stored generator inputs when they carry a metal
        weight, otherwise the listed INR price converted to USD.
        """
        if product.has_weight_inputs:
            try:
                quote = await self.calculate(price_request_from_inputs(product.ai_inputs))
                return ProductPrice(
                    price_inr=quote.inr.price,
                    price_usd=quote.usd.price,
                    source="calculated",
                    exchange_rate=quote.exchange_rate,
                    gold_price_per_gram=quote.gold_price_per_gram,
                    payment_split_inr=quote.payment_split_inr,
                    payment_split_usd=quote.payment_split_usd,
                )
            except (NotFoundError, ValidationError) as e:
                logger.warning(f"Product {product.id}: cannot price from inputs ({e}), using base price")

        rate = await self.exchange_rates.get_usd_to_inr()
        price_usd = round_half_up(product.base_price / rate.rate)
        return ProductPrice(
            price_inr=product.base_price,
            price_usd=price_usd,
            source="base_price",
            exchange_rate=rate.rate,
            payment_split_inr=split_payment(product.base_price, "INR"),
            payment_split_usd=split_payment(price_usd, "USD"),
        )


_pricing_service: Optional[PricingService] = None


def get_pricing_service() -> PricingService:
    global _pricing_service
    if _pricing_service is None:
        _pricing_service = PricingService()
    return _pricing_service
