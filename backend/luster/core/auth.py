"""
Authentication for Luster Legacy API
Issues and validates HS256 JWT bearer tokens and provides user context
"""
from typing import Optional
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from passlib.context import CryptContext
from pydantic import BaseModel

from .config import settings


# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_ALGORITHM = "HS256"

# Role hierarchy: admin > customer
ROLE_HIERARCHY = {
    "admin": 2,
    "customer": 1,
}


class TokenUser(BaseModel):
    """User data extracted from JWT token"""
    id: int
    email: str
    name: Optional[str] = None
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_auth_secret() -> str:
    secret = settings.AUTH_SECRET
    if not secret:
        raise ValueError("AUTH_SECRET is not configured")
    return secret


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: int, email: str, name: Optional[str], role: str,
                        expires_minutes: Optional[int] = None) -> str:
    """
    Create a signed access token.

    Payload:
    {
        "sub": "42",
        "id": 42,
        "email": "asha@example.com",
        "name": "Asha",
        "role": "customer",
        "iat": 1234567890,
        "exp": 1234567890
    }
    """
    now = datetime.now(timezone.utc)
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    payload = {
        "sub": str(user_id),
        "id": user_id,
        "email": email,
        "name": name,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=minutes)).timestamp()),
    }
    return jwt.encode(payload, get_auth_secret(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and validate an access token, raising 401 on any failure"""
    try:
        return jwt.decode(token, get_auth_secret(), algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        error_msg = str(e).lower()
        if "expired" in error_msg:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"}
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"}
        )


def _user_from_payload(payload: dict) -> Optional[TokenUser]:
    user_id = payload.get("id") or payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        return None
    return TokenUser(
        id=int(user_id),
        email=email,
        name=payload.get("name"),
        role=payload.get("role", "customer")
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenUser:
    """
    Dependency that extracts and validates the current user from JWT.

    Usage:
        @router.get("/mine")
        async def mine(user: TokenUser = Depends(get_current_user)):
            return {"message": f"Hello {user.email}"}
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    payload = decode_access_token(credentials.credentials)
    user = _user_from_payload(payload)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload: missing user id or email",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[TokenUser]:
    """Optional authentication - returns None if no valid token provided."""
    if not credentials:
        return None

    try:
        payload = decode_access_token(credentials.credentials)
    except HTTPException:
        return None
    return _user_from_payload(payload)


def require_role(required_role: str):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.delete("/products/{product_id}")
        async def delete_product(
            product_id: int,
            user: TokenUser = Depends(require_role("admin"))
        ):
            pass
    """
    async def role_checker(
        user: TokenUser = Depends(get_current_user)
    ) -> TokenUser:
        user_level = ROLE_HIERARCHY.get(user.role, 0)
        required_level = ROLE_HIERARCHY.get(required_role, 0)

        if user_level < required_level:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {required_role}, your role: {user.role}"
            )

        return user

    return role_checker


require_admin = require_role("admin")
require_customer = require_role("customer")
