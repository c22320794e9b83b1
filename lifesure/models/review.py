"""Review model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint
from lifesure.database import Base, utcnow


class Review(Base):
    """A customer's rating of a policy; one per user and policy."""
    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("user_id", "policy_id", name="uq_reviews_user_policy"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    user_name = Column(String)
    user_email = Column(String)
    user_photo = Column(String)
    policy_id = Column(Integer, index=True, nullable=False)
    rating = Column(Integer, nullable=False)
    feedback = Column(Text, nullable=False)
    is_approved = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)
