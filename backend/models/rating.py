"""Rating model definitions."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, UniqueConstraint
from backend.database import Base

MIN_RATING = 1
MAX_RATING = 5


class Rating(Base):
    """A single user's rating of a single store."""
    __tablename__ = "ratings"
    __table_args__ = (
        # One rating per user per store
        UniqueConstraint("user_id", "store_id", name="uq_ratings_user_store"),
        CheckConstraint(f"value >= {MIN_RATING} AND value <= {MAX_RATING}", name="ck_ratings_value_range"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    value = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=True)
