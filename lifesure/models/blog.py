"""Blog model definitions."""

from sqlalchemy import Column, DateTime, Integer, String, Text
from lifesure.database import Base, utcnow


class Blog(Base):
    """An article written by an agent."""
    __tablename__ = "blogs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    author_id = Column(String, index=True, nullable=False)
    author_name = Column(String)
    author_email = Column(String)
    publish_date = Column(DateTime(timezone=True), default=utcnow)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)
