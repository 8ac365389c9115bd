"""
Custom Design Domain Models

A customer sends a design request (reference images, metal, stones). The
studio accepts it, the customer pays the consultation fee, and the design
goes through review iterations until a final estimate is given.
"""
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime


class DesignStatus(str, Enum):
    PENDING_ACCEPTANCE = "pending_acceptance"
    DESIGN_FEE_PAID = "design_fee_paid"
    DESIGN_STARTED = "design_started"
    DESIGN_IN_PROGRESS = "design_in_progress"
    DESIGN_READY_FOR_REVIEW = "design_ready_for_review"
    DESIGN_APPROVED = "design_approved"
    FINAL_ESTIMATE_PROVIDED = "final_estimate_provided"
    COMPLETED = "completed"
    REJECTED = "rejected"


DESIGN_STATUSES = [s.value for s in DesignStatus]


class DesignComment(BaseModel):
    id: int
    design_request_id: int
    content: str
    created_by: str = Field(..., description="Name or email of the author")
    is_admin: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CustomDesignRequest(BaseModel):
    """
    Custom design request domain model

    Estimates are whole INR amounts.
    """

    id: int = Field(..., description="Design request ID")
    user_id: Optional[int] = Field(None, description="Requesting user")
    full_name: str
    email: str
    phone: Optional[str] = None
    country: Optional[str] = None
    metal_type: str
    primary_stones: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    image_url: str = Field(..., description="Main reference image")
    image_urls: List[str] = Field(default_factory=list)
    status: str = DesignStatus.PENDING_ACCEPTANCE.value
    consultation_fee_paid: bool = False
    initial_estimate: Optional[int] = Field(None, description="Estimate before design (INR)")
    final_estimate: Optional[int] = Field(None, description="Estimate after approval (INR)")
    iterations_count: int = 0
    created_at: Optional[datetime] = None
    comments: List[DesignComment] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @property
    def estimate(self) -> Optional[int]:
        """Final estimate when given, otherwise the initial one"""
        if self.final_estimate is not None:
            return self.final_estimate
        return self.initial_estimate

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class DesignRequestCreate(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: Optional[str] = None
    country: Optional[str] = None
    metal_type: str = Field(..., min_length=1)
    primary_stones: List[str] = Field(..., min_length=1, description="At least one stone")
    notes: Optional[str] = None
    image_urls: List[str] = Field(..., min_length=1, description="At least one reference image")

    @field_validator("primary_stones", "image_urls")
    @classmethod
    def strip_blank(cls, values: List[str]) -> List[str]:
        cleaned = [v.strip() for v in values if v and v.strip()]
        if not cleaned:
            raise ValueError("must contain at least one non-empty value")
        return cleaned


class DesignRequestUpdate(BaseModel):
    status: Optional[str] = None
    initial_estimate: Optional[int] = Field(None, ge=0)
    final_estimate: Optional[int] = Field(None, ge=0)
    iterations_count: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def valid_status(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in DESIGN_STATUSES:
            raise ValueError(f"Invalid status '{value}'. Valid: {', '.join(DESIGN_STATUSES)}")
        return value


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)

    @field_validator("content")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Comment cannot be empty")
        return value.strip()
