"""
Gold price lookup (24K, INR per gram)

The price is cached for an hour; force_refresh skips the cache. When the
API fails the last known price is returned with source "stale_cache". With
no price at all the result has success=False and callers decide what to do
(the gold price endpoint answers 503, the calculator uses the fallback).
"""
import time
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import httpx

from luster.core.config import settings
from luster.domain.catalog import TROY_OUNCE_GRAMS
from luster.services.exchange_rate import ExchangeRateService, get_exchange_rate_service

logger = logging.getLogger(__name__)


@dataclass
class GoldPriceResult:
    success: bool
    price: Optional[float] = None
    timestamp: Optional[datetime] = None
    location: Optional[str] = None
    source: Optional[str] = None  # api | cache | stale_cache
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "price": self.price,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "location": self.location,
            "source": self.source,
            "error": self.error,
        }


class GoldPriceService:
    """
    Cached 24K gold price

    The API may answer with:
    - {"price_per_gram_inr": 7520.5}
    - {"price": 7520.5}                      (INR per gram)
    - {"price": 2350.1, "currency": "USD"}   (USD per troy ounce)
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        location: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
        exchange_rates: Optional[ExchangeRateService] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url if api_url is not None else settings.GOLD_PRICE_API_URL
        self.api_key = api_key if api_key is not None else settings.GOLD_PRICE_API_KEY
        self.location = location or settings.GOLD_PRICE_LOCATION
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.PRICE_CACHE_TTL_SECONDS
        self.exchange_rates = exchange_rates or get_exchange_rate_service()
        self._transport = transport

        self._cached_price: Optional[float] = None
        self._cached_at: float = 0.0
        self._cached_timestamp: Optional[datetime] = None

    def _cache_is_fresh(self) -> bool:
        return self._cached_price is not None and (time.time() - self._cached_at) < self.ttl_seconds

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-access-token"] = self.api_key
        return headers

    async def _price_from_payload(self, data: dict) -> float:
        if data.get("price_per_gram_inr") is not None:
            price = float(data["price_per_gram_inr"])
        elif data.get("price") is not None:
            price = float(data["price"])
            if str(data.get("currency", "INR")).upper() == "USD":
                rate = await self.exchange_rates.get_usd_to_inr()
                price = price / TROY_OUNCE_GRAMS * rate.rate
        else:
            raise ValueError("Gold price response has no price field")

        if price <= 0:
            raise ValueError(f"Invalid gold price {price}")
        return round(price, 2)

    async def fetch_price(self) -> GoldPriceResult:
        """Call the API and refresh the cache; raises on failure"""
        if not self.api_url:
            raise ValueError("GOLD_PRICE_API_URL not configured")

        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.get(self.api_url, headers=self._headers(), timeout=10.0)
            response.raise_for_status()
            data = response.json()

        price = await self._price_from_payload(data)

        self._cached_price = price
        self._cached_at = time.time()
        self._cached_timestamp = datetime.now(timezone.utc)
        logger.info(f"Gold price refreshed: {price} INR/g ({self.location})")

        return GoldPriceResult(
            success=True,
            price=price,
            timestamp=self._cached_timestamp,
            location=self.location,
            source="api",
        )

    async def get_price(self, force_refresh: bool = False) -> GoldPriceResult:
        """Cached price when fresh, otherwise a new lookup"""
        if not force_refresh and self._cache_is_fresh():
            return GoldPriceResult(
                success=True,
                price=self._cached_price,
                timestamp=self._cached_timestamp,
                location=self.location,
                source="cache",
            )

        try:
            return await self.fetch_price()
        except (httpx.HTTPError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Gold price lookup failed: {e}")

            if self._cached_price is not None:
                return GoldPriceResult(
                    success=True,
                    price=self._cached_price,
                    timestamp=self._cached_timestamp,
                    location=self.location,
                    source="stale_cache",
                    error=str(e),
                )

            return GoldPriceResult(success=False, location=self.location, error=str(e))

    def cached_price(self) -> Optional[float]:
        """Last known price without a network call"""
        return self._cached_price


_gold_price_service: Optional[GoldPriceService] = None


def get_gold_price_service() -> GoldPriceService:
    global _gold_price_service
    if _gold_price_service is None:
        _gold_price_service = GoldPriceService()
    return _gold_price_service
