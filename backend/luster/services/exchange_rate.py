"""
USD -> INR exchange rate lookup

Fetches the rate from a JSON rates API and caches it for an hour. The
lookup never raises: on any failure it answers with the last cached rate,
or with the configured fallback (83) when nothing was ever fetched.
"""
import time
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import httpx

from luster.core.config import settings
from luster.domain.pricing import round_half_up

logger = logging.getLogger(__name__)

# Rates outside this band are treated as a bad answer from the API
MIN_VALID_RATE = 50
MAX_VALID_RATE = 100


@dataclass
class ExchangeRateResult:
    rate: float
    source: str  # api | cache | fallback
    timestamp: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "rate": self.rate,
            "source": self.source,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


class ExchangeRateService:
    """
    Cached USD -> INR rate

    Args:
        api_url: JSON endpoint returning {"rates": {"INR": 83.1, ...}}
        ttl_seconds: Cache lifetime
        fallback_rate: Rate used when nothing valid is available
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
        fallback_rate: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url if api_url is not None else settings.EXCHANGE_RATE_API_URL
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.PRICE_CACHE_TTL_SECONDS
        self.fallback_rate = fallback_rate if fallback_rate is not None else settings.FALLBACK_USD_INR_RATE
        self._transport = transport

        self._cached_rate: Optional[float] = None
        self._cached_at: float = 0.0
        self._cached_timestamp: Optional[datetime] = None

    def _cache_is_fresh(self) -> bool:
        return self._cached_rate is not None and (time.time() - self._cached_at) < self.ttl_seconds

    async def _fetch_rate(self) -> float:
        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.get(self.api_url, timeout=10.0)
            response.raise_for_status()
            data = response.json()

        rate = (data.get("rates") or {}).get("INR")
        if rate is None:
            raise ValueError("Exchange rate response has no rates.INR")
        return float(rate)

    async def get_usd_to_inr(self, force_refresh: bool = False) -> ExchangeRateResult:
        """Current rate; never raises"""
        if not force_refresh and self._cache_is_fresh():
            return ExchangeRateResult(rate=self._cached_rate, source="cache", timestamp=self._cached_timestamp)

        if self.api_url:
            try:
                rate = await self._fetch_rate()
                if MIN_VALID_RATE < rate < MAX_VALID_RATE:
                    self._cached_rate = rate
                    self._cached_at = time.time()
                    self._cached_timestamp = datetime.now(timezone.utc)
                    logger.info(f"Fetched USD->INR exchange rate: {rate}")
                    return ExchangeRateResult(rate=rate, source="api", timestamp=self._cached_timestamp)

                logger.warning(f"Exchange rate {rate} outside ({MIN_VALID_RATE}, {MAX_VALID_RATE}), ignoring")

            except (httpx.HTTPError, ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Exchange rate lookup failed: {e}")

        if self._cached_rate is not None:
            return ExchangeRateResult(rate=self._cached_rate, source="cache", timestamp=self._cached_timestamp)

        logger.warning(f"Using fallback USD->INR exchange rate {self.fallback_rate}")
        return ExchangeRateResult(rate=float(self.fallback_rate), source="fallback")

    def cached_rate(self) -> float:
        """Last known rate without a network call"""
        return self._cached_rate if self._cached_rate is not None else float(self.fallback_rate)

    async def convert_inr_to_usd(self, amount_inr: float) -> int:
        result = await self.get_usd_to_inr()
        return round_half_up(amount_inr / result.rate)

    async def convert_usd_to_inr(self, amount_usd: float) -> int:
        result = await self.get_usd_to_inr()
        return round_half_up(amount_usd * result.rate)


_exchange_rate_service: Optional[ExchangeRateService] = None


def get_exchange_rate_service() -> ExchangeRateService:
    global _exchange_rate_service
    if _exchange_rate_service is None:
        _exchange_rate_service = ExchangeRateService()
    return _exchange_rate_service
