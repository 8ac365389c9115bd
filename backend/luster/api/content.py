"""
AI Content API Endpoints
Product copy and testimonial polishing for the admin back-office
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from luster.api.errors import to_http_exception
from luster.core.auth import TokenUser, require_admin
from luster.domain.product import AIInputs
from luster.domain.testimonial import TestimonialDraft
from luster.services.content_generator import get_content_generator_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate")
async def generate_product_content(inputs: AIInputs, user: TokenUser = Depends(require_admin)):
    """
    Generate title, tagline and descriptions for a piece

    price_usd / price_inr come from the pricing calculator and are null when
    no metal weight is given.
    """
    try:
        content = await get_content_generator_service().generate_product_content(inputs)
        return {
            "status": "success",
            "data": content
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "generating content")


@router.post("/regenerate/{product_id}")
async def regenerate_product_content(product_id: int, user: TokenUser = Depends(require_admin)):
    """Regenerate and save the copy of a product from its stored inputs"""
    try:
        result = await get_content_generator_service().regenerate_for_product(product_id)
        logger.info(f"Product {product_id} content regenerated by {user.email}")
        return {
            "status": "success",
            "data": result
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "regenerating content")


@router.post("/testimonial")
def generate_testimonial(draft: TestimonialDraft, user: TokenUser = Depends(require_admin)):
    """Polish customer notes into a brief testimonial and a story"""
    try:
        result = get_content_generator_service().generate_testimonial(draft)
        return {
            "status": "success",
            "data": result
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "generating testimonial")
