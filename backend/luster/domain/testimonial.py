"""
Testimonial Domain Model
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional


def initials_from_name(name: str) -> str:
    """'Asha Rao Menon' -> 'AR' (first two words, uppercase)"""
    parts = [p for p in (name or "").split() if p]
    if not parts:
        return "?"
    return "".join(p[0] for p in parts[:2]).upper()


class Testimonial(BaseModel):
    id: int
    name: str
    product_type: str
    rating: int = Field(..., ge=1, le=5)
    text: str
    initials: str
    story: Optional[str] = Field(None, description="Longer client story")
    is_approved: bool = False

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump()


class TestimonialCreate(BaseModel):
    name: str = Field(..., min_length=1)
    product_type: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    text: str = Field(..., min_length=1)
    story: Optional[str] = None


class TestimonialDraft(BaseModel):
    """Rough notes the AI polishes into a brief testimonial and a story"""
    name: str = Field(..., min_length=1)
    product_type: str = Field(..., min_length=1)
    rating: int = Field(5, ge=1, le=5)
    text: str = Field(..., min_length=1)
    purchase_type: Optional[str] = None
    occasion: Optional[str] = None
    location: Optional[str] = None
