"""
User Domain Models
"""
from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import Optional
from datetime import datetime


class User(BaseModel):
    id: int
    username: str
    email: str
    role: str = "customer"
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    """username may also be the account email"""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
