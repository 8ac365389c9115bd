"""
Pytest fixtures and configuration for the Luster Legacy backend tests

Everything runs without a database or network: repositories are patched
per test and external HTTP calls go through httpx.MockTransport.
"""
import os

# Settings are read at import time, so the environment is fixed first
os.environ["AUTH_SECRET"] = "test-secret"
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["PAYPAL_CLIENT_ID"] = ""
os.environ["PAYPAL_CLIENT_SECRET"] = ""
os.environ["GOLD_PRICE_API_URL"] = ""
os.environ["DATABASE_URL"] = ""

from datetime import datetime  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402

from luster.core.auth import create_access_token  # noqa: E402
from luster.core.rate_limit import rate_limiter  # noqa: E402
from luster.domain.design import CustomDesignRequest  # noqa: E402
from luster.domain.material import MetalType, StoneType  # noqa: E402
from luster.domain.order import Order, OrderItem  # noqa: E402
from luster.domain.product import Product  # noqa: E402
from luster.services.exchange_rate import ExchangeRateResult  # noqa: E402
from luster.services.gold_price import GoldPriceResult  # noqa: E402


class FakeGoldPrices:
    """Stands in for GoldPriceService"""

    def __init__(self, price=None, source="api"):
        self.price = price
        self.source = source
        self.calls = []

    async def get_price(self, force_refresh=False):
        self.calls.append(force_refresh)
        if self.price is None:
            return GoldPriceResult(success=False, error="no price")
        return GoldPriceResult(success=True, price=self.price, source=self.source, location="Hyderabad, India")

    def cached_price(self):
        return self.price


class FakeExchangeRates:
    """Stands in for ExchangeRateService"""

    def __init__(self, rate=80.0, source="api"):
        self.rate = rate
        self.source = source

    async def get_usd_to_inr(self, force_refresh=False):
        return ExchangeRateResult(rate=self.rate, source=self.source, timestamp=datetime(2026, 1, 1))

    def cached_rate(self):
        return self.rate


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
def gold_prices():
    return FakeGoldPrices(price=8000.0)


@pytest.fixture
def exchange_rates():
    return FakeExchangeRates(rate=80.0)


@pytest.fixture
def mock_db():
    """MagicMock connection and cursor, as returned by get_db_connection_dict"""
    conn = MagicMock()
    cursor = MagicMock()
    conn.cursor.return_value = cursor
    return conn, cursor


@pytest.fixture
def admin_token():
    return create_access_token(1, "admin@lusterlegacy.com", "admin", "admin")


@pytest.fixture
def customer_token():
    return create_access_token(7, "asha@example.com", "asha", "customer")


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def customer_headers(customer_token):
    return {"Authorization": f"Bearer {customer_token}"}


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from luster.main import app
    return TestClient(app)


# ============================================================================
# Sample domain objects
# ============================================================================

@pytest.fixture
def metal_18k():
    return MetalType(id=2, name="18K Yellow Gold", price_modifier=75, display_order=2)


@pytest.fixture
def natural_diamond():
    return StoneType(id=5, name="Natural Diamond", price_modifier=56000, display_order=1)


@pytest.fixture
def sample_product():
    return Product(
        id=10,
        name="Aurora Emerald Necklace",
        description="Emeralds set in 22K gold",
        base_price=120000,
        category="necklaces",
        is_featured=True,
    )


@pytest.fixture
def sample_design():
    return CustomDesignRequest(
        id=3,
        user_id=7,
        full_name="Asha Rao",
        email="asha@example.com",
        country="IN",
        metal_type="22K Gold",
        primary_stones=["Emerald"],
        image_url="https://cdn.example.com/ref1.jpg",
        image_urls=["https://cdn.example.com/ref1.jpg"],
        initial_estimate=160000,
    )


@pytest.fixture
def sample_order():
    return Order(
        id=21,
        user_id=7,
        customer_name="Asha Rao",
        customer_email="asha@example.com",
        shipping_address={"city": "Hyderabad", "country": "IN"},
        currency="INR",
        total_amount=121500,
        advance_amount=60750,
        balance_amount=60750,
        items=[OrderItem(id=1, order_id=21, product_id=10, price=120000, currency="INR")],
    )
