from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from shared.config.database import Base

class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = {"schema": "payment_schema"}

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(50), nullable=False, default="credit_card")
    status = Column(String(50), default="pending") # pending, success, failed
    transaction_id = Column(String(255), nullable=True, unique=True)
    processed_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    refund_of = Column(Integer, ForeignKey("payment_schema.payments.id"), nullable=True)
