"""
Domain Layer - Business Entities

Pydantic models for the storefront entities and the static pricing tables
in luster.domain.catalog.
"""
from luster.domain.product import Product, AIInputs, GemInput
from luster.domain.material import MetalType, StoneType
from luster.domain.design import CustomDesignRequest, DesignComment, DesignStatus
from luster.domain.order import Order, OrderItem, PaymentStatus, OrderStatus
from luster.domain.testimonial import Testimonial
from luster.domain.user import User
from luster.domain.pricing import (
    StoneSelection, PriceRequest, PriceBreakdown, CurrencyPrice, PaymentSplit, PriceQuote
)

__all__ = [
    'Product', 'AIInputs', 'GemInput',
    'MetalType', 'StoneType',
    'CustomDesignRequest', 'DesignComment', 'DesignStatus',
    'Order', 'OrderItem', 'PaymentStatus', 'OrderStatus',
    'Testimonial', 'User',
    'StoneSelection', 'PriceRequest', 'PriceBreakdown', 'CurrencyPrice', 'PaymentSplit', 'PriceQuote',
]
