"""
Custom design requests and their comment threads
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from luster.core.database import Base


class DesignRequest(Base):
    __tablename__ = "design_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)

    # Contact
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50))
    country = Column(String(100))

    # Design brief
    metal_type = Column(String(100), nullable=False)
    primary_stones = Column(JSON, nullable=False, default=list)
    notes = Column(Text)
    image_url = Column(Text, nullable=False)
    image_urls = Column(JSON, nullable=False, default=list)

    # Workflow
    status = Column(String(50), nullable=False, default="pending_acceptance", index=True)
    consultation_fee_paid = Column(Boolean, nullable=False, default=False)
    initial_estimate = Column(Integer)  # INR
    final_estimate = Column(Integer)  # INR
    iterations_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    comments = relationship("DesignRequestComment", back_populates="design_request", cascade="all, delete-orphan")


class DesignRequestComment(Base):
    __tablename__ = "design_request_comments"

    id = Column(Integer, primary_key=True, index=True)
    design_request_id = Column(Integer, ForeignKey("design_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_by = Column(String(255), nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    design_request = relationship("DesignRequest", back_populates="comments")
