"""
Client testimonials
"""
from sqlalchemy import Column, Integer, String, Boolean, Text
from luster.core.database import Base


class Testimonial(Base):
    __tablename__ = "testimonials"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    product_type = Column(String(100), nullable=False)
    rating = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)
    initials = Column(String(5), nullable=False)
    story = Column(Text)
    is_approved = Column(Boolean, default=False, index=True)
