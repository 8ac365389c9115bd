"""
Order Domain Models

Orders are paid in two stages: an advance at checkout and the balance
before shipping. Amounts are whole units of the order currency.
"""
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Union
from datetime import datetime

from luster.domain.catalog import SUPPORTED_CURRENCIES


class PaymentStatus(str, Enum):
    PENDING = "pending"
    ADVANCE_PAID = "advance_paid"
    FULL_PAID = "full_paid"
    REFUNDED = "refunded"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


PAYMENT_STATUSES = [s.value for s in PaymentStatus]
ORDER_STATUSES = [s.value for s in OrderStatus]


class OrderItem(BaseModel):
    """
    Order Item domain model

    Fields:
        id: Order item ID
        order_id: Parent order
        product_id: Catalog product (None for consultation fees)
        metal_type_id: Customizer metal option id
        stone_type_id: Customizer stone option id
        price: Server-computed price in the item currency
        currency: USD or INR
        is_custom_design: True when the item is a custom design
        is_consultation_fee: True when the item is a design consultation fee
        design_request_id: Design request backing a custom item or a fee
    """

    id: int = Field(..., description="Order item ID")
    order_id: int = Field(..., description="Parent order ID")
    product_id: Optional[int] = Field(None, description="Product ID")
    metal_type_id: Optional[str] = None
    stone_type_id: Optional[str] = None
    price: int = Field(..., ge=0)
    currency: str = "USD"
    is_custom_design: bool = False
    is_consultation_fee: bool = False
    design_request_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class Order(BaseModel):
    """
    Order domain model

    total_amount = advance_amount + balance_amount always holds.
    """

    id: int = Field(..., description="Order ID")
    user_id: Optional[int] = None
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    shipping_address: dict = Field(default_factory=dict)
    special_instructions: Optional[str] = None
    currency: str = "USD"
    total_amount: int = Field(..., ge=0)
    advance_amount: int = Field(..., ge=0)
    balance_amount: int = Field(..., ge=0)
    payment_status: str = PaymentStatus.PENDING.value
    order_status: str = OrderStatus.PENDING.value
    payment_method: Optional[str] = None
    payment_id: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[OrderItem] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @property
    def amount_due(self) -> int:
        """What the next PayPal payment should collect"""
        if self.payment_status == PaymentStatus.PENDING.value:
            return self.advance_amount
        if self.payment_status == PaymentStatus.ADVANCE_PAID.value:
            return self.balance_amount
        return 0

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


# ============================================================================
# Checkout
# ============================================================================

class ShippingAddress(BaseModel):
    address_line1: str = Field(..., min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: Optional[str] = None
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=2, description="ISO country code, e.g. US or IN")

    @field_validator("country")
    @classmethod
    def upper_country(cls, value: str) -> str:
        return value.strip().upper()


class CheckoutItem(BaseModel):
    """
    One cart line as sent by the client.

    client_price is what the browser showed; it is only used to detect drift.
    """
    product_id: Optional[int] = None
    metal_type_id: Optional[str] = None
    stone_type_id: Optional[str] = None
    client_price: Optional[Union[int, float]] = Field(None, ge=0)
    is_custom_design: bool = False
    design_request_id: Optional[int] = None
    is_consultation_fee: bool = False


class CheckoutRequest(BaseModel):
    customer_name: str = Field(..., min_length=1)
    customer_email: str = Field(..., min_length=3)
    customer_phone: Optional[str] = None
    shipping_address: ShippingAddress
    special_instructions: Optional[str] = None
    currency: str = "USD"
    payment_method: str = "paypal"
    items: List[CheckoutItem] = Field(..., min_length=1)

    @field_validator("currency")
    @classmethod
    def supported_currency(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency '{value}'. Use USD or INR")
        return value

    @property
    def is_consultation_only(self) -> bool:
        return all(item.is_consultation_fee for item in self.items)


class QuotedItem(BaseModel):
    product_id: Optional[int] = None
    metal_type_id: Optional[str] = None
    stone_type_id: Optional[str] = None
    is_custom_design: bool = False
    design_request_id: Optional[int] = None
    is_consultation_fee: bool = False
    price: int
    client_price: Optional[float] = None
    price_drifted: bool = False


class CheckoutQuote(BaseModel):
    """Server-side checkout summary"""
    currency: str
    items: List[QuotedItem]
    subtotal: int
    shipping: int
    total: int
    advance: int
    balance: int
    exchange_rate: float
    price_drifted: bool = False

    def to_dict(self) -> dict:
        return self.model_dump()


class OrderStatusUpdate(BaseModel):
    payment_status: Optional[str] = None
    order_status: Optional[str] = None

    @field_validator("payment_status")
    @classmethod
    def valid_payment_status(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in PAYMENT_STATUSES:
            raise ValueError(f"Invalid payment_status '{value}'")
        return value

    @field_validator("order_status")
    @classmethod
    def valid_order_status(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in ORDER_STATUSES:
            raise ValueError(f"Invalid order_status '{value}'")
        return value
