"""
Product Domain Model

Represents a jewelry piece in the Luster Legacy catalog.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime

from luster.core.config import settings


class GemInput(BaseModel):
    """A gem listed in the AI generator inputs"""
    name: str
    carats: Optional[float] = Field(None, ge=0)


class AIInputs(BaseModel):
    """
    Inputs the admin gave the AI content generator for a product.

    They are stored with the product so the price can be recomputed from the
    current gold price and the content can be regenerated later.
    """
    product_type: str = Field("Necklace", description="Ring, Necklace, Earrings, ...")
    metal_type: str = Field(..., description="Metal name, e.g. 18K Yellow Gold")
    metal_type_id: Optional[int] = Field(None, description="MetalType id when picked from the list")
    metal_weight: Optional[float] = Field(None, description="Metal weight in grams", ge=0)
    primary_gems: List[GemInput] = Field(default_factory=list)
    user_description: Optional[str] = None
    other_stone_type: Optional[str] = None
    other_stone_weight: Optional[float] = Field(None, ge=0)

    model_config = ConfigDict(extra="ignore")


class Product(BaseModel):
    """
    Product domain model

    Fields:
        id: Product ID (primary key)
        name: Display name
        description: Long description
        base_price: Listed price in INR
        image_url: Main image (placeholder when missing)
        additional_images: Extra image URLs
        details: Free-form details / specifications
        dimensions: Size information
        is_new / is_bestseller / is_featured: Merchandising flags
        category: Category label (rings, necklaces, ...)
        ai_inputs: Inputs used to generate content and price
        created_at: When the product was created
    """

    id: int = Field(..., description="Product ID")
    name: str = Field(..., description="Product name")
    description: str = Field("", description="Product description")
    base_price: int = Field(..., description="Base price in INR", ge=0)
    image_url: Optional[str] = Field(None, description="Main image URL")
    additional_images: List[str] = Field(default_factory=list, description="Extra image URLs")
    details: Optional[str] = Field(None, description="Details / specifications")
    dimensions: Optional[str] = Field(None, description="Dimensions")
    is_new: bool = Field(False, description="Shown with the 'new' badge")
    is_bestseller: bool = Field(False, description="Shown with the 'bestseller' badge")
    is_featured: bool = Field(False, description="Listed on the home page")
    category: Optional[str] = Field(None, description="Category")
    ai_inputs: Optional[AIInputs] = Field(None, description="AI generator inputs")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def display_image(self) -> str:
        """Main image, or the store placeholder when none was uploaded"""
        return self.image_url or settings.DEFAULT_PRODUCT_IMAGE

    @property
    def has_weight_inputs(self) -> bool:
        return bool(self.ai_inputs and self.ai_inputs.metal_weight)

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["image_url"] = self.display_image
        return data


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    base_price: int = Field(..., ge=0)
    image_url: Optional[str] = None
    additional_images: List[str] = Field(default_factory=list)
    details: Optional[str] = None
    dimensions: Optional[str] = None
    is_new: bool = False
    is_bestseller: bool = False
    is_featured: bool = False
    category: Optional[str] = None
    ai_inputs: Optional[AIInputs] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    base_price: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None
    additional_images: Optional[List[str]] = None
    details: Optional[str] = None
    dimensions: Optional[str] = None
    is_new: Optional[bool] = None
    is_bestseller: Optional[bool] = None
    is_featured: Optional[bool] = None
    category: Optional[str] = None
    ai_inputs: Optional[AIInputs] = None
