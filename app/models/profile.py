"""
User profile model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.core.db import Base

USER_ROLES = ("admin", "manager", "staff", "superadmin")

class Profile(Base):
    __tablename__ = "profiles"

    # Firebase uid when auth is delegated, random uuid otherwise
    id = Column(String(128), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default="staff")  # admin, manager, staff, superadmin
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=True)
    password_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    company = relationship("Company", back_populates="users")

    @property
    def can_manage_users(self) -> bool:
        return self.role in ("admin", "superadmin")
