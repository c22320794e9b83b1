"""Payment model definitions."""

from sqlalchemy import Column, DateTime, Float, Integer, String
from lifesure.database import Base, utcnow


class Payment(Base):
    """Immutable record of a confirmed payment."""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    payment_intent_id = Column(String, index=True, nullable=False)
    user_id = Column(String, index=True, nullable=False)
    user_email = Column(String)
    policy_id = Column(Integer, index=True, nullable=False)
    amount = Column(Float, nullable=False)
    currency = Column(String, default="usd")
    status = Column(String, default="completed")
    transaction_id = Column(String)
    payment_date = Column(DateTime(timezone=True), default=utcnow)
    created_at = Column(DateTime(timezone=True), default=utcnow)
