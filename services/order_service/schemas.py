from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class CheckoutItem(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)

class CheckoutRequest(BaseModel):
    # Omit to check out the stored cart
    items: Optional[List[CheckoutItem]] = None
    shipping_address: Optional[str] = None

class OrderLineResponse(BaseModel):
    product_id: int
    quantity: int
    price: Decimal

    class Config:
        from_attributes = True

class OrderResponse(BaseModel):
    id: int
    owner_id: int
    total_amount: Decimal
    shipping_address: str
    status: str
    created_at: datetime
    updated_at: datetime
    items: List[OrderLineResponse] = []

    class Config:
        from_attributes = True

class StatusUpdate(BaseModel):
    status: str

class CartItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(default=1, gt=0)

class CartLineResponse(BaseModel):
    product_id: int
    quantity: int

    class Config:
        from_attributes = True
