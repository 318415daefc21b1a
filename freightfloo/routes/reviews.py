from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from freightfloo.core.deps import get_db, require_user
from freightfloo.models.user import User
from freightfloo.schemas.review import ReviewCreate, ReviewResponse, ReviewSummary
from freightfloo.services import reviews
from freightfloo.services.events import EventBus

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.get("", response_model=ReviewSummary)
def list_reviews(
    reviewee_id: Optional[int] = None,
    reviewer_id: Optional[int] = None,
    shipment_id: Optional[int] = None,
    trip_id: Optional[int] = None,
    rating: Optional[int] = Query(None, ge=1, le=5),
    db: Session = Depends(get_db),
):
    return reviews.review_summary(db, reviewee_id, reviewer_id, shipment_id, trip_id, rating)


@router.post("", response_model=ReviewResponse, status_code=201)
def create_review(
    payload: ReviewCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    events = EventBus()
    review = reviews.create_review(db, events, user, payload)
    events.dispatch(db, background_tasks)
    return review
