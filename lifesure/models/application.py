"""Application model definitions."""

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text
from lifesure.database import Base, utcnow


class Application(Base):
    """A customer's request to enrol in a policy.

    ``policy_id`` is a plain reference: deleting the policy leaves the
    application (and its policy snapshot) in place.
    """
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    user_email = Column(String)
    policy_id = Column(Integer, index=True, nullable=False)
    policy_name = Column(String)
    premium = Column(Float)
    coverage_amount = Column(Float)
    duration = Column(String)
    details = Column(JSON)
    status = Column(String, index=True, nullable=False, default="pending")
    assigned_agent = Column(String, index=True)
    assigned_agent_name = Column(String)
    assigned_agent_email = Column(String)
    assigned_at = Column(DateTime(timezone=True))
    assigned_by = Column(String)
    rejection_reason = Column(Text)
    rejected_at = Column(DateTime(timezone=True))
    rejected_by = Column(String)
    updated_by = Column(String)
    updated_by_email = Column(String)
    submitted_at = Column(DateTime(timezone=True), default=utcnow)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)
