from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

class PaymentCreate(BaseModel):
    order_id: int
    amount: Decimal = Field(gt=0, decimal_places=2)
    payment_method: str = "credit_card"

class RefundCreate(BaseModel):
    # Defaults to the full original amount
    amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)

class PaymentResponse(BaseModel):
    id: int
    order_id: int
    amount: Decimal
    payment_method: str
    status: str
    transaction_id: str | None
    processed_at: datetime | None
    refund_of: int | None = None

    class Config:
        from_attributes = True
