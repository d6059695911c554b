"""
SQLAlchemy Profile model
"""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func
from order_service.database import Base


class Profile(Base):
    """User profile keyed by the auth service user id"""

    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Profile(id='{self.id}', email='{self.email}', is_admin={self.is_admin})>"
