"""
Custom Design API Endpoints
Design request intake, the admin workflow and the comment thread
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from luster.api.errors import to_http_exception
from luster.core.auth import TokenUser, get_current_user, require_admin
from luster.domain.design import CommentCreate, CustomDesignRequest, DesignRequestCreate, DesignRequestUpdate
from luster.repositories.design_repository import DesignRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_visible_design(repo: DesignRepository, design_id: int, user: TokenUser,
                        with_comments: bool = False) -> CustomDesignRequest:
    """Owner or admin only"""
    design = repo.find_by_id(design_id, with_comments=with_comments)
    if design is None:
        raise HTTPException(status_code=404, detail=f"Design request {design_id} not found")
    if not user.is_admin and design.user_id != user.id:
        raise HTTPException(status_code=403, detail="You do not have access to this design request")
    return design


@router.post("/", status_code=201)
async def create_design_request(data: DesignRequestCreate, user: TokenUser = Depends(get_current_user)):
    """Submit a custom design request (reference images are URLs)"""
    try:
        design = DesignRepository().create(user.id, data)
        logger.info(f"Design request {design.id} submitted by {user.email}")
        return {
            "status": "success",
            "data": design.to_dict()
        }

    except Exception as e:
        raise to_http_exception(e, "creating design request")


@router.get("/")
async def get_design_requests(
    status: Optional[str] = Query(None, description="Filter by status"),
    user: TokenUser = Depends(require_admin)
):
    try:
        designs = DesignRepository().find_all(status=status)
        return {
            "status": "success",
            "count": len(designs),
            "data": [design.to_dict() for design in designs]
        }

    except Exception as e:
        raise to_http_exception(e, "fetching design requests")


@router.get("/mine")
async def get_my_design_requests(user: TokenUser = Depends(get_current_user)):
    try:
        designs = DesignRepository().find_all(user_id=user.id)
        return {
            "status": "success",
            "count": len(designs),
            "data": [design.to_dict() for design in designs]
        }

    except Exception as e:
        raise to_http_exception(e, "fetching design requests")


@router.get("/{design_id}")
async def get_design_request(design_id: int, user: TokenUser = Depends(get_current_user)):
    """Design request with its comment thread"""
    try:
        design = _get_visible_design(DesignRepository(), design_id, user, with_comments=True)
        return {
            "status": "success",
            "data": design.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "fetching design request")


@router.put("/{design_id}")
async def update_design_request(
    design_id: int,
    data: DesignRequestUpdate,
    user: TokenUser = Depends(require_admin)
):
    """Update status, estimates or iteration count"""
    try:
        design = DesignRepository().update(design_id, data.model_dump(exclude_unset=True))
        if design is None:
            raise HTTPException(status_code=404, detail=f"Design request {design_id} not found")

        logger.info(f"Design request {design_id} updated by {user.email}: {design.status}")
        return {
            "status": "success",
            "data": design.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "updating design request")


@router.post("/{design_id}/comments", status_code=201)
async def add_comment(design_id: int, data: CommentCreate, user: TokenUser = Depends(get_current_user)):
    try:
        repo = DesignRepository()
        _get_visible_design(repo, design_id, user)

        comment = repo.add_comment(
            design_id,
            data.content,
            created_by=user.name or user.email,
            is_admin=user.is_admin
        )
        return {
            "status": "success",
            "data": comment.model_dump(mode="json")
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "adding comment")
