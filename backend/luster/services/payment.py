"""
Payment Service - PayPal flows for orders and design consultations

Orders are paid in two stages:
    pending --(advance captured)--> advance_paid --(balance captured)--> full_paid

Design requests pay a flat consultation fee once, which moves the request
to design_fee_paid.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Optional

import httpx

from luster.connectors.paypal_connector import PayPalConnector
from luster.domain.catalog import CONSULTATION_FEE_USD, PRICE_DRIFT_TOLERANCE, SUPPORTED_CURRENCIES
from luster.domain.design import DesignStatus
from luster.domain.order import Order, OrderStatus, PaymentStatus
from luster.repositories.design_repository import DesignRepository
from luster.repositories.order_repository import OrderRepository
from luster.services.errors import NotFoundError, PaymentError, ValidationError
from luster.services.exchange_rate import ExchangeRateService, get_exchange_rate_service
from luster.services.pricing import convert

logger = logging.getLogger(__name__)

ORDER_STAGES = ("advance", "balance")


class PaymentService:
    """
    Starts and captures PayPal payments

    The connector is built lazily so the service can be created without
    PayPal credentials (tests pass a factory).
    """

    def __init__(
        self,
        orders: Optional[OrderRepository] = None,
        designs: Optional[DesignRepository] = None,
        exchange_rates: Optional[ExchangeRateService] = None,
        connector_factory: Optional[Callable[[], PayPalConnector]] = None,
    ):
        self.orders = orders or OrderRepository()
        self.designs = designs or DesignRepository()
        self.exchange_rates = exchange_rates or get_exchange_rate_service()
        self._connector_factory = connector_factory or PayPalConnector
        self._connector: Optional[PayPalConnector] = None

    @property
    def connector(self) -> PayPalConnector:
        if self._connector is None:
            try:
                self._connector = self._connector_factory()
            except ValueError as e:
                raise PaymentError(str(e)) from e
        return self._connector

    def _get_order(self, order_id: int) -> Order:
        order = self.orders.find_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def start_order_payment(self, order_id: int, stage: str) -> Dict:
        """
        Create a PayPal order for the advance or the balance.

        Raises:
            ValidationError: unknown stage, or stage not payable in the current status
            NotFoundError: order does not exist
            PaymentError: PayPal rejected the request
        """
        if stage not in ORDER_STAGES:
            raise ValidationError(f"Invalid payment stage '{stage}'. Valid: advance, balance")

        order = self._get_order(order_id)
        if order.order_status == OrderStatus.CANCELLED.value:
            raise ValidationError(f"Order {order_id} is cancelled")

        if stage == "advance":
            if order.payment_status != PaymentStatus.PENDING.value:
                raise ValidationError(f"Advance for order {order_id} is already paid")
            amount = order.advance_amount
        else:
            if order.payment_status != PaymentStatus.ADVANCE_PAID.value:
                raise ValidationError(f"Balance for order {order_id} is not due (status: {order.payment_status})")
            amount = order.balance_amount

        if amount <= 0:
            raise ValidationError(f"Nothing to pay for the {stage} of order {order_id}")

        try:
            paypal_order = await self.connector.create_order(
                amount=amount,
                currency=order.currency,
                reference_id=f"order-{order.id}-{stage}",
                description=f"Luster Legacy order #{order.id} ({stage} payment)",
            )
        except (httpx.HTTPError, ValueError) as e:
            raise PaymentError(f"Could not start PayPal payment: {e}") from e

        return {
            "order_id": order.id,
            "stage": stage,
            "amount": amount,
            "currency": order.currency,
            "paypal_order_id": paypal_order["id"],
            "approve_url": paypal_order["approve_url"],
        }

    async def capture_order_payment(self, order_id: int, paypal_order_id: str) -> Order:
        """
        Capture an approved PayPal order and advance the payment status.

        advance captured -> advance_paid (full_paid when nothing is left)
        balance captured -> full_paid

        The PayPal order must have been created for this order and stage and
        the captured amount must be the amount due. Consultation fees bought
        through checkout are marked paid on their design requests.
        """
        order = self._get_order(order_id)

        if order.payment_status == PaymentStatus.PENDING.value:
            stage = "advance"
            new_status = PaymentStatus.ADVANCE_PAID.value if order.balance_amount > 0 else PaymentStatus.FULL_PAID.value
        elif order.payment_status == PaymentStatus.ADVANCE_PAID.value:
            stage = "balance"
            new_status = PaymentStatus.FULL_PAID.value
        else:
            raise ValidationError(f"Order {order_id} has no payment due (status: {order.payment_status})")

        capture = await self._capture(paypal_order_id, f"order-{order.id}-{stage}")
        check_captured_amount(capture, order.amount_due, order.currency)

        values = {
            "payment_status": new_status,
            "payment_method": "paypal",
            "payment_id": capture.get("capture_id") or paypal_order_id,
        }
        if order.order_status == OrderStatus.PENDING.value:
            values["order_status"] = OrderStatus.PROCESSING.value

        updated = self.orders.update(order_id, values)
        logger.info(f"Order {order_id} payment captured -> {new_status}")

        for item in order.items:
            if item.is_consultation_fee and item.design_request_id is not None:
                self._mark_consultation_paid(item.design_request_id)

        return updated

    # ------------------------------------------------------------------
    # Design consultations
    # ------------------------------------------------------------------

    async def start_consultation_payment(self, design_id: int, currency: str = "USD") -> Dict:
        """Create a PayPal order for the consultation fee (150 USD, converted for INR)"""
        design = self.designs.find_by_id(design_id)
        if design is None:
            raise NotFoundError(f"Design request {design_id} not found")
        if design.consultation_fee_paid:
            raise ValidationError(f"Consultation fee for design request {design_id} is already paid")
        if design.status == DesignStatus.REJECTED.value:
            raise ValidationError(f"Design request {design_id} was rejected")

        currency = currency.upper()
        rate = await self.exchange_rates.get_usd_to_inr()
        amount = convert(CONSULTATION_FEE_USD, "USD", currency, rate.rate)

        try:
            paypal_order = await self.connector.create_order(
                amount=amount,
                currency=currency,
                reference_id=f"design-{design.id}-consultation",
                description=f"Luster Legacy design consultation #{design.id}",
            )
        except (httpx.HTTPError, ValueError) as e:
            raise PaymentError(f"Could not start PayPal payment: {e}") from e

        return {
            "design_request_id": design.id,
            "amount": amount,
            "currency": currency,
            "paypal_order_id": paypal_order["id"],
            "approve_url": paypal_order["approve_url"],
        }

    async def capture_consultation_payment(self, design_id: int, paypal_order_id: str):
        """
        Capture the consultation fee of a design request.

        INR fees were converted when the payment started, so the captured
        amount may differ from today's conversion by the drift tolerance.
        """
        design = self.designs.find_by_id(design_id)
        if design is None:
            raise NotFoundError(f"Design request {design_id} not found")
        if design.consultation_fee_paid:
            raise ValidationError(f"Consultation fee for design request {design_id} is already paid")

        capture = await self._capture(paypal_order_id, f"design-{design.id}-consultation")

        currency = capture.get("currency")
        if currency not in SUPPORTED_CURRENCIES:
            raise PaymentError(f"PayPal capture {paypal_order_id} is in an unsupported currency: {currency}")
        rate = await self.exchange_rates.get_usd_to_inr()
        expected = convert(CONSULTATION_FEE_USD, "USD", currency, rate.rate)
        check_captured_amount(capture, expected, currency, tolerance=PRICE_DRIFT_TOLERANCE)

        updated = self._mark_consultation_paid(design_id)
        logger.info(f"Design request {design_id} consultation fee captured")
        return updated

    def _mark_consultation_paid(self, design_id: int):
        """Record the fee; the status only moves forward from pending_acceptance"""
        design = self.designs.find_by_id(design_id)
        if design is None:
            logger.warning(f"Consultation fee paid for missing design request {design_id}")
            return None
        if design.consultation_fee_paid:
            return design

        values = {"consultation_fee_paid": True}
        if design.status == DesignStatus.PENDING_ACCEPTANCE.value:
            values["status"] = DesignStatus.DESIGN_FEE_PAID.value
        return self.designs.update(design_id, values)

    async def _capture(self, paypal_order_id: str, reference_id: str) -> Dict:
        """Capture and check that the PayPal order was created for reference_id"""
        try:
            capture = await self.connector.capture_order(paypal_order_id)
        except (httpx.HTTPError, ValueError) as e:
            raise PaymentError(f"Could not capture PayPal payment: {e}") from e

        if capture.get("status") != "COMPLETED":
            raise PaymentError(f"PayPal payment not completed (status: {capture.get('status')})")

        if capture.get("reference_id") != reference_id:
            logger.error(
                f"PayPal order {paypal_order_id} captured for {capture.get('reference_id')}, "
                f"expected {reference_id}"
            )
            raise PaymentError(f"PayPal order {paypal_order_id} does not belong to {reference_id}")
        return capture


def check_captured_amount(capture: Dict, expected: int, currency: str, tolerance: float = 0.0):
    """
    Raises:
        PaymentError: other currency, missing amount, or an amount further
            than `tolerance` (relative) from the expected one
    """
    if capture.get("currency") != currency:
        raise PaymentError(f"PayPal captured {capture.get('currency')}, expected {currency}")

    try:
        captured = Decimal(str(capture.get("amount")))
    except InvalidOperation as e:
        raise PaymentError(f"PayPal capture has no valid amount: {capture.get('amount')}") from e

    if abs(captured - expected) > Decimal(expected) * Decimal(str(tolerance)):
        logger.error(f"PayPal capture {capture.get('id')}: {captured} {currency} captured, {expected} expected")
        raise PaymentError(f"PayPal captured {captured} {currency}, expected {expected} {currency}")


_payment_service: Optional[PaymentService] = None


def get_payment_service() -> PaymentService:
    global _payment_service
    if _payment_service is None:
        _payment_service = PaymentService()
    return _payment_service
