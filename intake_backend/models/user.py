from enum import Enum

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from intake_backend.db import Base
from intake_backend.models.lead import new_id, utcnow


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class User(Base):
    """Dashboard account. Referenced for lead assignment and status attribution."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default=UserRole.USER.value)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    assigned_leads = relationship("Lead", back_populates="assigned_to")
    status_changes = relationship("StatusHistory", back_populates="changed_by")
