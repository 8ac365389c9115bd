"""
Orders and their line items
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from luster.core.database import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)

    # Customer
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50))
    shipping_address = Column(JSON, nullable=False)
    special_instructions = Column(Text)

    # Amounts (whole units of currency)
    currency = Column(String(3), nullable=False, default="USD")
    total_amount = Column(Integer, nullable=False)
    advance_amount = Column(Integer, nullable=False)
    balance_amount = Column(Integer, nullable=False)

    # Status
    payment_status = Column(String(20), nullable=False, default="pending", index=True)
    order_status = Column(String(20), nullable=False, default="pending", index=True)
    payment_method = Column(String(50))
    payment_id = Column(String(100))

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), index=True)
    metal_type_id = Column(String(50))
    stone_type_id = Column(String(50))
    price = Column(Integer, nullable=False)
    currency = Column(String(3), default="USD")
    is_custom_design = Column(Boolean, default=False)
    is_consultation_fee = Column(Boolean, default=False)
    design_request_id = Column(Integer, ForeignKey("design_requests.id", ondelete="SET NULL"))

    order = relationship("Order", back_populates="items")
