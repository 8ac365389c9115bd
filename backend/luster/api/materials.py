"""
Materials API Endpoints
Metal and stone types offered to customers, with admin management

Routes are shared by both kinds: /metal-types and /stone-types
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from luster.api.errors import to_http_exception
from luster.core.auth import TokenUser, require_admin
from luster.domain.material import MaterialCreate, MaterialUpdate
from luster.repositories.material_repository import MaterialRepository

logger = logging.getLogger(__name__)

router = APIRouter()

MATERIAL_KINDS = {
    "metal-types": "metal",
    "stone-types": "stone",
}


def _repository(material_path: str) -> MaterialRepository:
    kind = MATERIAL_KINDS.get(material_path)
    if kind is None:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown material type '{material_path}'. Valid: {', '.join(MATERIAL_KINDS)}"
        )
    return MaterialRepository(kind)


@router.get("/{material_path}")
async def get_materials(material_path: str):
    """Active types, ordered for display"""
    try:
        materials = _repository(material_path).find_all(active_only=True)
        return {
            "status": "success",
            "count": len(materials),
            "data": [material.to_dict() for material in materials]
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, f"fetching {material_path}")


@router.get("/admin/{material_path}")
async def get_all_materials(
    material_path: str,
    include_inactive: bool = Query(True),
    user: TokenUser = Depends(require_admin)
):
    try:
        materials = _repository(material_path).find_all(active_only=not include_inactive)
        return {
            "status": "success",
            "count": len(materials),
            "data": [material.to_dict() for material in materials]
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, f"fetching {material_path}")


@router.post("/{material_path}", status_code=201)
async def create_material(material_path: str, data: MaterialCreate, user: TokenUser = Depends(require_admin)):
    try:
        repo = _repository(material_path)
        if repo.find_by_name(data.name) is not None:
            raise HTTPException(status_code=409, detail=f"'{data.name}' already exists")

        material = repo.create(data)
        logger.info(f"{repo.kind} type '{material.name}' created by {user.email}")
        return {
            "status": "success",
            "data": material.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, f"creating {material_path}")


@router.put("/{material_path}/{material_id}")
async def update_material(
    material_path: str,
    material_id: int,
    data: MaterialUpdate,
    user: TokenUser = Depends(require_admin)
):
    try:
        material = _repository(material_path).update(material_id, data)
        if material is None:
            raise HTTPException(status_code=404, detail=f"{material_path} {material_id} not found")

        return {
            "status": "success",
            "data": material.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, f"updating {material_path}")


@router.delete("/{material_path}/{material_id}")
async def delete_material(material_path: str, material_id: int, user: TokenUser = Depends(require_admin)):
    try:
        if not _repository(material_path).delete(material_id):
            raise HTTPException(status_code=404, detail=f"{material_path} {material_id} not found")

        return {
            "status": "success",
            "message": f"{material_path} {material_id} deleted"
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, f"deleting {material_path}")
