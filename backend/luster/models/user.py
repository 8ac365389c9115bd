"""
User accounts
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from luster.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    role = Column(String(20), nullable=False, default="customer")  # admin | customer

    created_at = Column(DateTime(timezone=True), server_default=func.now())
