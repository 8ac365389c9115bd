"""
Checkout Service

Computes the checkout summary on the server and places orders. Client
prices are only compared against the server price; the server price is
what gets charged.
"""
import logging
from typing import List, Optional, Tuple

from luster.core.auth import TokenUser
from luster.domain.catalog import (
    CONSULTATION_FEE_USD,
    CURRENCY_COUNTRY,
    SHIPPING_FEES,
)
from luster.domain.design import CustomDesignRequest, DesignStatus
from luster.domain.order import (
    CheckoutItem,
    CheckoutQuote,
    CheckoutRequest,
    Order,
    OrderStatus,
    PaymentStatus,
    QuotedItem,
)
from luster.repositories.design_repository import DesignRepository
from luster.repositories.order_repository import OrderRepository
from luster.repositories.product_repository import ProductRepository
from luster.services.errors import AccessDeniedError, NotFoundError, ValidationError
from luster.services.exchange_rate import ExchangeRateService, get_exchange_rate_service
from luster.services.pricing import convert, customize_price, reconcile, split_payment

logger = logging.getLogger(__name__)

# A custom piece can be bought once its estimate is settled
ESTIMATED_DESIGN_STATUSES = (
    DesignStatus.DESIGN_APPROVED.value,
    DesignStatus.FINAL_ESTIMATE_PROVIDED.value,
)


class CheckoutService:
    """
    Quote and place orders

    Prices per item:
    - consultation fee: 150 USD, converted for INR orders
    - custom design: final estimate (or initial) in INR, converted; only once
      the design is approved or has its final estimate
    - catalog product: base price with customizer multipliers, converted
    """

    def __init__(
        self,
        products: Optional[ProductRepository] = None,
        designs: Optional[DesignRepository] = None,
        orders: Optional[OrderRepository] = None,
        exchange_rates: Optional[ExchangeRateService] = None,
    ):
        self.products = products or ProductRepository()
        self.designs = designs or DesignRepository()
        self.orders = orders or OrderRepository()
        self.exchange_rates = exchange_rates or get_exchange_rate_service()

    @staticmethod
    def validate_destination(request: CheckoutRequest):
        """USD orders ship to US, INR orders to IN; consultation fees ship nothing"""
        if request.is_consultation_only:
            return
        expected = CURRENCY_COUNTRY[request.currency]
        if request.shipping_address.country != expected:
            raise ValidationError(
                f"{request.currency} payments are only available for shipping addresses in {expected}"
            )

    def _get_design(self, design_id: Optional[int], user: Optional[TokenUser]) -> CustomDesignRequest:
        """Design request the caller may pay for: their own, or any for admins"""
        if design_id is None:
            raise ValidationError("design_request_id is required for custom design and consultation items")
        design = self.designs.find_by_id(design_id)
        if design is None:
            raise NotFoundError(f"Design request {design_id} not found")
        if user is None or (not user.is_admin and design.user_id != user.id):
            raise AccessDeniedError(f"Design request {design_id} belongs to another customer")
        if design.status == DesignStatus.REJECTED.value:
            raise ValidationError(f"Design request {design_id} was rejected")
        return design

    def _item_price(self, item: CheckoutItem, currency: str, rate: float, user: Optional[TokenUser]) -> int:
        if item.is_consultation_fee:
            design = self._get_design(item.design_request_id, user)
            if design.consultation_fee_paid:
                raise ValidationError(f"Consultation fee for design request {design.id} is already paid")
            return convert(CONSULTATION_FEE_USD, "USD", currency, rate)

        if item.is_custom_design:
            design = self._get_design(item.design_request_id, user)
            if design.status not in ESTIMATED_DESIGN_STATUSES:
                raise ValidationError(f"Design request {design.id} is not ready for purchase (status: {design.status})")
            if design.estimate is None:
                raise ValidationError(f"Design request {design.id} has no estimate yet")
            return convert(design.estimate, "INR", currency, rate)

        if item.product_id is None:
            raise ValidationError("product_id is required")
        product = self.products.find_by_id(item.product_id)
        if product is None:
            raise NotFoundError(f"Product {item.product_id} not found")

        if item.metal_type_id or item.stone_type_id:
            price_inr = customize_price(product.base_price, item.metal_type_id, item.stone_type_id)
        else:
            price_inr = product.base_price
        return convert(price_inr, "INR", currency, rate)

    async def quote(self, request: CheckoutRequest, user: Optional[TokenUser] = None) -> CheckoutQuote:
        """
        Server-side checkout summary

        Raises:
            ValidationError: currency/country mismatch, incomplete items
            NotFoundError: unknown product or design request
            AccessDeniedError: a design request of another customer (or a guest paying for one)
        """
        self.validate_destination(request)

        rate = await self.exchange_rates.get_usd_to_inr()
        currency = request.currency

        quoted: List[QuotedItem] = []
        for item in request.items:
            server_price = self._item_price(item, currency, rate.rate, user)
            price, drifted = reconcile(item.client_price, server_price)
            quoted.append(QuotedItem(
                product_id=item.product_id,
                metal_type_id=item.metal_type_id,
                stone_type_id=item.stone_type_id,
                is_custom_design=item.is_custom_design,
                design_request_id=item.design_request_id,
                is_consultation_fee=item.is_consultation_fee,
                price=price,
                client_price=item.client_price,
                price_drifted=drifted,
            ))

        subtotal = sum(q.price for q in quoted)
        shipping = 0 if request.is_consultation_only else SHIPPING_FEES[currency]
        total = subtotal + shipping

        if request.is_consultation_only:
            # Consultation fees are collected in one payment
            advance, balance = total, 0
        else:
            split = split_payment(total, currency)
            advance, balance = split.advance, split.remaining

        return CheckoutQuote(
            currency=currency,
            items=quoted,
            subtotal=subtotal,
            shipping=shipping,
            total=total,
            advance=advance,
            balance=balance,
            exchange_rate=rate.rate,
            price_drifted=any(q.price_drifted for q in quoted),
        )

    async def place_order(self, user: Optional[TokenUser], request: CheckoutRequest) -> Tuple[Order, CheckoutQuote]:
        """Quote the cart and persist the order with its items"""
        summary = await self.quote(request, user)

        order = self.orders.create(
            order={
                "user_id": user.id if user else None,
                "customer_name": request.customer_name,
                "customer_email": request.customer_email,
                "customer_phone": request.customer_phone,
                "shipping_address": request.shipping_address.model_dump(),
                "special_instructions": request.special_instructions,
                "currency": summary.currency,
                "total_amount": summary.total,
                "advance_amount": summary.advance,
                "balance_amount": summary.balance,
                "payment_status": PaymentStatus.PENDING.value,
                "order_status": OrderStatus.PENDING.value,
                "payment_method": request.payment_method,
            },
            items=[
                {
                    "product_id": q.product_id,
                    "metal_type_id": q.metal_type_id,
                    "stone_type_id": q.stone_type_id,
                    "price": q.price,
                    "currency": summary.currency,
                    "is_custom_design": q.is_custom_design,
                    "is_consultation_fee": q.is_consultation_fee,
                    "design_request_id": q.design_request_id,
                }
                for q in summary.items
            ],
        )

        logger.info(f"Order {order.id} placed: {order.total_amount} {order.currency} (advance {order.advance_amount})")
        return order, summary


_checkout_service: Optional[CheckoutService] = None


def get_checkout_service() -> CheckoutService:
    global _checkout_service
    if _checkout_service is None:
        _checkout_service = CheckoutService()
    return _checkout_service
