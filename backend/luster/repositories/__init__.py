"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic.
"""
from luster.repositories.product_repository import ProductRepository
from luster.repositories.material_repository import MaterialRepository
from luster.repositories.design_repository import DesignRepository
from luster.repositories.order_repository import OrderRepository
from luster.repositories.testimonial_repository import TestimonialRepository
from luster.repositories.user_repository import UserRepository

__all__ = [
    'ProductRepository',
    'MaterialRepository',
    'DesignRepository',
    'OrderRepository',
    'TestimonialRepository',
    'UserRepository',
]
