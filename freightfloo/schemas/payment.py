from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from freightfloo.models.enums import RefundReason


class PaymentIntentRequest(BaseModel):
    shipment_id: int
    bid_id: int


class PaymentIntentResponse(BaseModel):
    payment_id: int
    amount: float
    status: str
    client_secret: Optional[str] = None  # None when Stripe is not configured


class PaymentComplete(BaseModel):
    shipment_id: int
    bid_id: int
    amount: float = Field(gt=0)


class PaymentResponse(BaseModel):
    id: int
    shipment_id: int
    bid_id: int
    user_id: int
    amount: float
    status: str
    stripe_payment_intent_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RefundCreate(BaseModel):
    payment_id: int
    amount: float = Field(gt=0)
    reason: RefundReason
    description: Optional[str] = Field(default=None, max_length=2000)


class RefundResolve(BaseModel):
    approve: bool


class RefundResponse(BaseModel):
    id: int
    payment_id: int
    requested_by_id: int
    amount: float
    reason: str
    description: Optional[str] = None
    status: str
    details: Optional[Dict[str, Any]] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
