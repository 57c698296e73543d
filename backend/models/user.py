"""User model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String
from backend.database import Base

ROLES = ("admin", "user", "owner")


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(60), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    address = Column(String(400), nullable=False, default="")
    role = Column(String, nullable=False, default="user")  # admin/user/owner
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
