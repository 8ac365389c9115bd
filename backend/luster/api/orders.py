"""
Orders API Endpoints
Checkout quote, order placement and order management

Prices sent by the client are only used to detect drift; every amount is
recalculated on the server.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from luster.api.errors import to_http_exception
from luster.core.auth import TokenUser, get_current_user, get_current_user_optional, require_admin
from luster.domain.order import CheckoutRequest, OrderStatusUpdate
from luster.repositories.order_repository import OrderRepository
from luster.services.checkout import get_checkout_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/checkout/quote")
async def quote_checkout(
    request: CheckoutRequest,
    user: Optional[TokenUser] = Depends(get_current_user_optional)
):
    """
    Checkout summary: item prices, shipping, total and the advance/balance split

    Design request items need the owner (or an admin) to be signed in.
    """
    try:
        summary = await get_checkout_service().quote(request, user)
        return {
            "status": "success",
            "data": summary.to_dict()
        }

    except Exception as e:
        raise to_http_exception(e, "quoting checkout")


@router.post("/", status_code=201)
async def place_order(
    request: CheckoutRequest,
    user: Optional[TokenUser] = Depends(get_current_user_optional)
):
    """Place an order; guests may check out without an account"""
    try:
        order, summary = await get_checkout_service().place_order(user, request)
        return {
            "status": "success",
            "data": {
                "order": order.to_dict(),
                "quote": summary.to_dict(),
                "amount_due": order.amount_due,
            }
        }

    except Exception as e:
        raise to_http_exception(e, "placing order")


@router.get("/")
async def get_orders(
    payment_status: Optional[str] = Query(None),
    order_status: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_admin)
):
    try:
        orders, total = OrderRepository().find_all(
            payment_status=payment_status,
            order_status=order_status,
            limit=limit,
            offset=offset
        )
        return {
            "status": "success",
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(orders),
            "data": [order.to_dict() for order in orders]
        }

    except Exception as e:
        raise to_http_exception(e, "fetching orders")


@router.get("/mine")
async def get_my_orders(user: TokenUser = Depends(get_current_user)):
    try:
        orders, total = OrderRepository().find_all(user_id=user.id, limit=500)
        return {
            "status": "success",
            "total": total,
            "count": len(orders),
            "data": [order.to_dict() for order in orders]
        }

    except Exception as e:
        raise to_http_exception(e, "fetching orders")


@router.get("/{order_id}")
async def get_order(order_id: int, user: TokenUser = Depends(get_current_user)):
    try:
        order = OrderRepository().find_by_id(order_id)
        if order is None:
            raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
        if not user.is_admin and order.user_id != user.id:
            raise HTTPException(status_code=403, detail="You do not have access to this order")

        data = order.to_dict()
        data["amount_due"] = order.amount_due
        return {
            "status": "success",
            "data": data
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "fetching order")


@router.put("/{order_id}/status")
async def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    user: TokenUser = Depends(require_admin)
):
    try:
        values = data.model_dump(exclude_unset=True)
        if not values:
            raise HTTPException(status_code=400, detail="Nothing to update")

        order = OrderRepository().update(order_id, values)
        if order is None:
            raise HTTPException(status_code=404, detail=f"Order {order_id} not found")

        logger.info(f"Order {order_id} status updated by {user.email}: {values}")
        return {
            "status": "success",
            "data": order.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "updating order status")
