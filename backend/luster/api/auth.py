"""
Authentication API endpoints
- Customer registration and login (JWT, login attempts rate limited)
- Current user
- User list (admin only)
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from luster.api.errors import to_http_exception
from luster.core.auth import (
    TokenUser,
    create_access_token,
    get_current_user,
    hash_password,
    require_admin,
    verify_password,
)
from luster.core.rate_limit import rate_limit
from luster.domain.user import LoginRequest, User, UserCreate
from luster.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _token_response(user: User) -> dict:
    token = create_access_token(user.id, user.email, user.username, user.role)
    return {
        "access_token": token,
        "token_type": "bearer",
        "user": user.to_dict()
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(data: UserCreate):
    """Create a customer account and log it in"""
    try:
        repo = UserRepository()
        if repo.exists(data.username, data.email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username or email already registered"
            )

        user = repo.create(data.username, data.email, hash_password(data.password))
        logger.info(f"User {user.id} registered: {user.email}")
        return {
            "status": "success",
            "data": _token_response(user)
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "registering user")


@router.post("/login", dependencies=[Depends(rate_limit(10))])
async def login(data: LoginRequest):
    """Username or email plus password"""
    try:
        found = UserRepository().find_by_login(data.username)
        if found is None or not verify_password(data.password, found[1]):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid username or password",
                headers={"WWW-Authenticate": "Bearer"}
            )

        user = found[0]
        return {
            "status": "success",
            "data": _token_response(user)
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "logging in")


@router.get("/me")
async def me(current_user: TokenUser = Depends(get_current_user)):
    try:
        user = UserRepository().find_by_id(current_user.id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        return {
            "status": "success",
            "data": user.to_dict()
        }

    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e, "fetching user")


@router.get("/users")
async def list_users(user: TokenUser = Depends(require_admin)):
    """List all users (admin only)"""
    try:
        users = UserRepository().find_all()
        return {
            "status": "success",
            "count": len(users),
            "data": [u.to_dict() for u in users]
        }

    except Exception as e:
        raise to_http_exception(e, "fetching users")
