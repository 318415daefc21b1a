from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    reviewee_id: int
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=2000)
    communication_rating: Optional[int] = Field(default=None, ge=1, le=5)
    timeliness_rating: Optional[int] = Field(default=None, ge=1, le=5)
    professionalism_rating: Optional[int] = Field(default=None, ge=1, le=5)
    value_rating: Optional[int] = Field(default=None, ge=1, le=5)
    shipment_id: Optional[int] = None
    trip_id: Optional[int] = None
    is_public: bool = True


class ReviewResponse(BaseModel):
    id: int
    reviewer_id: int
    reviewee_id: int
    shipment_id: Optional[int] = None
    trip_id: Optional[int] = None
    rating: int
    comment: Optional[str] = None
    communication_rating: Optional[int] = None
    timeliness_rating: Optional[int] = None
    professionalism_rating: Optional[int] = None
    value_rating: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReviewSummary(BaseModel):
    reviews: List[ReviewResponse]
    total_reviews: int
    average_rating: float
    rating_breakdown: Dict[int, int]
