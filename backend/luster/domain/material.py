"""
Metal and stone type domain models

For metals, price_modifier is a percentage of the 24K gold price
(75 means 75%). For stones it is the INR price per carat.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


class MetalType(BaseModel):
    id: int = Field(..., description="MetalType ID")
    name: str = Field(..., description="Unique metal name, e.g. 18K Yellow Gold")
    description: Optional[str] = None
    price_modifier: float = Field(0, description="Percent of the 24K gold price")
    display_order: int = 0
    is_active: bool = True
    color: Optional[str] = Field(None, description="Hex color for UI display")
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class StoneType(BaseModel):
    id: int = Field(..., description="StoneType ID")
    name: str = Field(..., description="Unique stone name, e.g. Natural Diamond")
    description: Optional[str] = None
    price_modifier: float = Field(0, description="INR price per carat")
    display_order: int = 0
    is_active: bool = True
    color: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class MaterialCreate(BaseModel):
    """Payload for creating a metal or stone type"""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price_modifier: float = Field(0, ge=0)
    display_order: int = 0
    is_active: bool = True
    color: Optional[str] = None
    image_url: Optional[str] = None


class MaterialUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price_modifier: Optional[float] = Field(None, ge=0)
    display_order: Optional[int] = None
    is_active: Optional[bool] = None
    color: Optional[str] = None
    image_url: Optional[str] = None
