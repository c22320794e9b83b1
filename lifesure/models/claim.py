"""Claim model definitions."""

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from lifesure.database import Base, utcnow


class Claim(Base):
    """A payout request against an approved application."""
    __tablename__ = "claims"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    user_email = Column(String)
    policy_id = Column(Integer, index=True, nullable=False)
    application_id = Column(Integer, index=True, nullable=False)
    reason = Column(Text, nullable=False)
    documents = Column(JSON, default=list)
    status = Column(String, default="pending")
    submitted_at = Column(DateTime(timezone=True), default=utcnow)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)
