"""
Testimonials API Endpoints
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from luster.api.errors import to_http_exception
from luster.core.auth import TokenUser, require_admin
from luster.domain.testimonial import TestimonialCreate
from luster.repositories.testimonial_repository import TestimonialRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def get_testimonials():
    """Approved testimonials for the storefront"""
    try:
        testimonials = TestimonialRepository().find_all(approved_only=True)
        return {
            "status": "success",
            "count": len(testimonials),
            "data": [t.to_dict() for t in testimonials]
        }

    except Exception as e:
        raise to_http_exception(e, "fetching testimonials")


@router.post("/", status_code=201)
async def submit_testimonial(data: TestimonialCreate):
    """Customer submission; hidden until an admin approves it"""
    try:
        testimonial = TestimonialRepository().create(data)
        logger.info(f"Testimonial {testimonial.id} submitted by {testimonial.name}")
        return {
            "status": "success",
            "data": testimonial.to_dict()
        }

    except Exception as e:
        raise to_http_exception(e, "submitting testimonial")


@router.get("/admin")
async def get_all_testimonials(user: TokenUser = Depends(require_admin)):
    try:
        testimonials = TestimonialRepository().find_all(approved_only=False)
        return {
            "status": "success",
            "count": len(testimonials),
            "data": [t.to_dict() for t in testimonials]
        }

    except Exception as e:
        raise to_http_exception(e, "fetching testimonials")


async def _set_approved(testimonial_id: int, approved: bool):
    try:
        testimonial = TestimonialRepository().set_approved(testimonial_id, approved)
        if testimonial is None:
            raise HTTPException(status_code=404, detail=f"Testimonial {testimonial_id} not found")

        return {
            "status": "success",
            "data": testimonial.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "updating testimonial")


@router.put("/{testimonial_id}/approve")
async def approve_testimonial(testimonial_id: int, user: TokenUser = Depends(require_admin)):
    return await _set_approved(testimonial_id, True)


@router.put("/{testimonial_id}/unapprove")
async def unapprove_testimonial(testimonial_id: int, user: TokenUser = Depends(require_admin)):
    return await _set_approved(testimonial_id, False)
