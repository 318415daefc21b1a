from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from freightfloo.models.enums import PricingType
from freightfloo.schemas.bid import BidResponse
from freightfloo.schemas.document import DocumentResponse
from freightfloo.schemas.payment import PaymentResponse


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC; aware ones are converted to it."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ShipmentBase(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    origin: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    distance: Optional[float] = Field(default=None, ge=0)
    weight: Optional[float] = Field(default=None, ge=0)
    dimensions: Optional[str] = None
    category: Optional[str] = None
    pickup_date: datetime
    delivery_date: Optional[datetime] = None

    @field_validator("pickup_date", "delivery_date")
    @classmethod
    def dates_in_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class ShipmentCreate(ShipmentBase):
    pricing_type: PricingType = PricingType.AUCTION
    starting_bid: Optional[float] = None
    offer_price: Optional[float] = None


class ShipmentUpdate(BaseModel):
    """Descriptive fields only. Pricing is fixed once the shipment is posted."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    origin: Optional[str] = Field(default=None, min_length=1)
    destination: Optional[str] = Field(default=None, min_length=1)
    distance: Optional[float] = Field(default=None, ge=0)
    weight: Optional[float] = Field(default=None, ge=0)
    dimensions: Optional[str] = None
    category: Optional[str] = None
    pickup_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    pricing_type: Optional[PricingType] = None

    @field_validator("pickup_date", "delivery_date")
    @classmethod
    def dates_in_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class ShipmentResponse(ShipmentBase):
    id: int
    user_id: int
    pricing_type: str
    starting_bid: Optional[float] = None
    offer_price: Optional[float] = None
    status: str
    payment_status: str
    current_status: Optional[str] = None
    pickup_time: Optional[datetime] = None
    transit_time: Optional[datetime] = None
    delivery_time: Optional[datetime] = None
    completion_time: Optional[datetime] = None
    pod_received: bool = False
    pod_image: Optional[str] = None
    pod_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    bid_count: int = 0
    lowest_bid: Optional[float] = None

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ShipmentList(BaseModel):
    shipments: List[ShipmentResponse]
    pagination: Pagination


class StatusUpdate(BaseModel):
    """Tracking step: PICKED_UP, IN_TRANSIT, DELIVERED, or COMPLETED to close out."""
    status: str
    pod_received: Optional[bool] = None
    pod_image: Optional[str] = None
    pod_notes: Optional[str] = None


class TrackingEvent(BaseModel):
    status: str
    location: str
    timestamp: Optional[datetime] = None
    description: str


class CarrierContact(BaseModel):
    name: Optional[str] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class TrackingResponse(BaseModel):
    id: int
    title: str
    origin: str
    destination: str
    status: str
    current_status: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    carrier: Optional[CarrierContact] = None
    events: List[TrackingEvent]
    pod_received: bool
    pod_image: Optional[str] = None
    pod_notes: Optional[str] = None


class ShipmentDetail(ShipmentResponse):
    bids: List[BidResponse] = []
    payments: List[PaymentResponse] = []
    documents: List[DocumentResponse] = []
