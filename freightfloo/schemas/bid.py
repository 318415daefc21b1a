from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class BidCreate(BaseModel):
    shipment_id: int
    amount: float = Field(gt=0)
    message: Optional[str] = Field(default=None, max_length=2000)


class BidDecision(BaseModel):
    status: Literal["ACCEPTED", "REJECTED"]


class BidResponse(BaseModel):
    id: int
    shipment_id: int
    user_id: int
    amount: float
    message: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
