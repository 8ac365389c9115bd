"""
Products API Endpoints
Catalog listing, product detail with live price, customizer price and
admin management
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from luster.api.errors import to_http_exception
from luster.core.auth import TokenUser, require_admin
from luster.domain.pricing import round_half_up
from luster.domain.product import ProductCreate, ProductUpdate
from luster.repositories.product_repository import ProductRepository
from luster.services.exchange_rate import get_exchange_rate_service
from luster.services.pricing import customize_price, get_pricing_service, split_payment

logger = logging.getLogger(__name__)

router = APIRouter()


class CustomizePriceRequest(BaseModel):
    metal_type_id: Optional[str] = None
    stone_type_id: Optional[str] = None


@router.get("/")
async def get_products(
    category: Optional[str] = Query(None, description="Filter by category"),
    featured: Optional[bool] = Query(None, description="Only featured products"),
    search: Optional[str] = Query(None, description="Search by name or description"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0)
):
    """Get all products with optional filters"""
    try:
        repo = ProductRepository()
        products, total = repo.find_all(
            category=category,
            featured=featured,
            search=search,
            limit=limit,
            offset=offset
        )

        return {
            "status": "success",
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(products),
            "data": [product.to_dict() for product in products]
        }

    except Exception as e:
        raise to_http_exception(e, "fetching products")


@router.get("/featured")
async def get_featured_products(limit: int = Query(8, ge=1, le=50)):
    try:
        products = ProductRepository().find_featured(limit=limit)
        return {
            "status": "success",
            "count": len(products),
            "data": [product.to_dict() for product in products]
        }

    except Exception as e:
        raise to_http_exception(e, "fetching featured products")


@router.get("/{product_id}")
async def get_product(product_id: int):
    """
    Get a single product with its current price

    The price is calculated from the stored generator inputs when they carry
    a metal weight, otherwise the listed price is converted to USD.
    """
    try:
        product = ProductRepository().find_by_id(product_id)
        if product is None:
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        price = await get_pricing_service().product_price(product)
        data = product.to_dict()
        data["price"] = price.model_dump()

        return {
            "status": "success",
            "data": data
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "fetching product")


@router.post("/{product_id}/customize-price")
async def get_customized_price(product_id: int, request: CustomizePriceRequest):
    """Price of a catalog piece with another metal or stone, with the advance split"""
    try:
        product = ProductRepository().find_by_id(product_id)
        if product is None:
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        price_inr = customize_price(product.base_price, request.metal_type_id, request.stone_type_id)
        rate = await get_exchange_rate_service().get_usd_to_inr()
        price_usd = round_half_up(price_inr / rate.rate)

        return {
            "status": "success",
            "data": {
                "product_id": product.id,
                "base_price": product.base_price,
                "metal_type_id": request.metal_type_id,
                "stone_type_id": request.stone_type_id,
                "price_inr": price_inr,
                "price_usd": price_usd,
                "exchange_rate": rate.rate,
                "payment_split_inr": split_payment(price_inr, "INR").model_dump(),
                "payment_split_usd": split_payment(price_usd, "USD").model_dump(),
            }
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "calculating customized price")


@router.post("/", status_code=201)
async def create_product(data: ProductCreate, user: TokenUser = Depends(require_admin)):
    try:
        product = ProductRepository().create(data)
        logger.info(f"Product {product.id} created by {user.email}")
        return {
            "status": "success",
            "data": product.to_dict()
        }

    except Exception as e:
        raise to_http_exception(e, "creating product")


@router.put("/{product_id}")
async def update_product(product_id: int, data: ProductUpdate, user: TokenUser = Depends(require_admin)):
    try:
        product = ProductRepository().update(product_id, data)
        if product is None:
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        return {
            "status": "success",
            "data": product.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "updating product")


@router.delete("/{product_id}")
async def delete_product(product_id: int, user: TokenUser = Depends(require_admin)):
    try:
        if not ProductRepository().delete(product_id):
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        logger.info(f"Product {product_id} deleted by {user.email}")
        return {
            "status": "success",
            "message": f"Product {product_id} deleted"
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "deleting product")
