"""Policy model definitions."""

from sqlalchemy import Column, DateTime, Float, Integer, String, Text
from lifesure.database import Base, utcnow


class Policy(Base):
    """Represents an insurance product offered on the marketplace."""
    __tablename__ = "policies"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False)
    min_age = Column(Integer)
    max_age = Column(Integer)
    coverage_min = Column(Float)
    coverage_max = Column(Float)
    duration = Column(String, default="")
    base_premium = Column(Float)
    image_url = Column(String, default="")
    applications_count = Column(Integer, nullable=False, default=0)
    created_by = Column(String)
    updated_by = Column(String)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)
