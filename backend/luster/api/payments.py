"""
Payments API Endpoints
PayPal checkout for order advances/balances and design consultation fees
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from luster.api.errors import to_http_exception
from luster.core.auth import TokenUser, get_current_user, get_current_user_optional
from luster.core.config import settings
from luster.repositories.design_repository import DesignRepository
from luster.repositories.order_repository import OrderRepository
from luster.services.payment import get_payment_service

logger = logging.getLogger(__name__)

router = APIRouter()


class StartOrderPayment(BaseModel):
    stage: str = Field("advance", description="advance or balance")


class StartConsultationPayment(BaseModel):
    currency: str = "USD"


class CapturePayment(BaseModel):
    paypal_order_id: str = Field(..., min_length=1)


def _check_order_access(order_id: int, user: Optional[TokenUser]):
    """Orders placed by a user can only be paid by that user or an admin"""
    order = OrderRepository().find_by_id(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    if order.user_id is not None:
        if user is None:
            raise HTTPException(status_code=401, detail="Authentication required")
        if not user.is_admin and order.user_id != user.id:
            raise HTTPException(status_code=403, detail="You do not have access to this order")


def _check_design_access(design_id: int, user: TokenUser):
    design = DesignRepository().find_by_id(design_id)
    if design is None:
        raise HTTPException(status_code=404, detail=f"Design request {design_id} not found")
    if not user.is_admin and design.user_id != user.id:
        raise HTTPException(status_code=403, detail="You do not have access to this design request")


@router.get("/paypal/client-id")
async def get_paypal_client_id():
    """Public client id for the PayPal JS SDK"""
    if not settings.PAYPAL_CLIENT_ID:
        raise HTTPException(status_code=503, detail="PayPal is not configured")

    return {
        "status": "success",
        "data": {
            "client_id": settings.PAYPAL_CLIENT_ID,
            "mode": settings.PAYPAL_MODE
        }
    }


@router.post("/orders/{order_id}/start")
async def start_order_payment(
    order_id: int,
    request: StartOrderPayment,
    user: Optional[TokenUser] = Depends(get_current_user_optional)
):
    """Create the PayPal order for the advance or the balance"""
    try:
        _check_order_access(order_id, user)
        payment = await get_payment_service().start_order_payment(order_id, request.stage)
        return {
            "status": "success",
            "data": payment
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "starting payment")


@router.post("/orders/{order_id}/capture")
async def capture_order_payment(
    order_id: int,
    request: CapturePayment,
    user: Optional[TokenUser] = Depends(get_current_user_optional)
):
    try:
        _check_order_access(order_id, user)
        order = await get_payment_service().capture_order_payment(order_id, request.paypal_order_id)
        return {
            "status": "success",
            "data": order.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "capturing payment")


@router.post("/consultations/{design_id}/start")
async def start_consultation_payment(
    design_id: int,
    request: StartConsultationPayment,
    user: TokenUser = Depends(get_current_user)
):
    try:
        _check_design_access(design_id, user)
        payment = await get_payment_service().start_consultation_payment(design_id, request.currency)
        return {
            "status": "success",
            "data": payment
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "starting consultation payment")


@router.post("/consultations/{design_id}/capture")
async def capture_consultation_payment(
    design_id: int,
    request: CapturePayment,
    user: TokenUser = Depends(get_current_user)
):
    try:
        _check_design_access(design_id, user)
        design = await get_payment_service().capture_consultation_payment(design_id, request.paypal_order_id)
        return {
            "status": "success",
            "data": design.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "capturing consultation payment")


@router.get("/cancel")
async def cancel_payment(token: Optional[str] = Query(None, description="PayPal order id")):
    """PayPal cancel redirect; nothing is charged, so there is nothing to undo"""
    logger.info(f"PayPal payment cancelled by buyer: {token}")
    return {
        "status": "success",
        "data": {
            "cancelled": True,
            "paypal_order_id": token
        }
    }
