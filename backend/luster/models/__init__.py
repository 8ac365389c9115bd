"""
Database models (SQLAlchemy table definitions)
"""
from .user import User
from .product import Product, MetalType, StoneType
from .design import DesignRequest, DesignRequestComment
from .order import Order, OrderItem
from .testimonial import Testimonial

__all__ = [
    "User",
    "Product",
    "MetalType",
    "StoneType",
    "DesignRequest",
    "DesignRequestComment",
    "Order",
    "OrderItem",
    "Testimonial",
]
