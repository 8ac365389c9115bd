"""
Catalog tables: products and the metal/stone types used for pricing
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, Float, JSON
from sqlalchemy.sql import func
from luster.core.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    base_price = Column(Integer, nullable=False)  # INR
    image_url = Column(Text)
    additional_images = Column(JSON, default=list)
    details = Column(Text)
    dimensions = Column(Text)

    # Merchandising flags
    is_new = Column(Boolean, default=False)
    is_bestseller = Column(Boolean, default=False)
    is_featured = Column(Boolean, default=False, index=True)
    category = Column(String(100), index=True)

    # Inputs of the AI generator (product_type, metal_type, metal_weight, primary_gems, ...)
    ai_inputs = Column(JSON)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class MetalType(Base):
    """price_modifier is a percentage of the 24K gold price"""
    __tablename__ = "metal_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text)
    price_modifier = Column(Float, nullable=False, default=0)
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    color = Column(String(20))

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class StoneType(Base):
    """price_modifier is the INR price per carat"""
    __tablename__ = "stone_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text)
    price_modifier = Column(Float, nullable=False, default=0)
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    color = Column(String(20))
    image_url = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
