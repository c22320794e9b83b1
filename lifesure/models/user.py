"""User model definitions."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String
from lifesure.database import Base, utcnow


class User(Base):
    """Represents a marketplace user keyed by the identity provider's subject id."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    uid = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, index=True, nullable=False)
    display_name = Column(String)
    photo_url = Column(String)
    role = Column(String, nullable=False, default="customer")  # customer/agent/admin
    provider = Column(String, default="email")
    is_active = Column(Boolean, default=True)
    agent_application_status = Column(String, index=True)  # pending/approved/rejected
    agent_application = Column(JSON)
    processed_by = Column(String)
    processed_at = Column(DateTime(timezone=True))
    updated_by = Column(String)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    last_login = Column(DateTime(timezone=True), default=utcnow)
