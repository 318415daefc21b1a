"""Reviews between the two parties of a completed shipment or trip."""
import logging
from collections import Counter
from typing import Optional

from sqlalchemy.orm import Session

from freightfloo.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from freightfloo.models.enums import NotificationType, ShipmentStatus, TripStatus
from freightfloo.models.fleet import Trip
from freightfloo.models.review import Review
from freightfloo.models.shipment import Shipment
from freightfloo.models.user import User
from freightfloo.schemas.review import ReviewCreate
from freightfloo.services.events import EventBus
from freightfloo.services.shipments import is_participant

logger = logging.getLogger(__name__)


def _shipment_parties(shipment: Shipment) -> set:
    parties = {shipment.user_id}
    accepted = shipment.accepted_bid
    if accepted:
        parties.add(accepted.user_id)
    return parties


def _trip_parties(trip: Trip) -> set:
    parties = {trip.carrier_id}
    if trip.shipment:
        parties.add(trip.shipment.user_id)
    return parties


def create_review(db: Session, events: EventBus, reviewer: User, payload: ReviewCreate) -> Review:
    if payload.reviewee_id == reviewer.id:
        raise ValidationError("You cannot review yourself")
    if not payload.shipment_id and not payload.trip_id:
        raise ValidationError("A review must reference a shipment or a trip")
    reviewee = db.get(User, payload.reviewee_id)
    if not reviewee:
        raise NotFoundError("User not found")

    if payload.shipment_id:
        shipment = db.get(Shipment, payload.shipment_id)
        if not shipment:
            raise NotFoundError("Shipment not found")
        if (
            shipment.status != ShipmentStatus.COMPLETED.value
            or not is_participant(shipment, reviewer)
            or reviewee.id not in _shipment_parties(shipment)
        ):
            raise AuthorizationError("You can only review users for completed shipments you were involved in")
    if payload.trip_id:
        trip = db.get(Trip, payload.trip_id)
        if not trip:
            raise NotFoundError("Trip not found")
        parties = _trip_parties(trip)
        if trip.status != TripStatus.COMPLETED.value or reviewer.id not in parties or reviewee.id not in parties:
            raise AuthorizationError("You can only review users for completed trips you were involved in")

    existing = (
        db.query(Review)
        .filter(
            Review.reviewer_id == reviewer.id,
            Review.reviewee_id == reviewee.id,
            Review.shipment_id == payload.shipment_id if payload.shipment_id else Review.trip_id == payload.trip_id,
        )
        .first()
    )
    if existing:
        raise ConflictError("You have already reviewed this user for this shipment/trip")

    review = Review(reviewer_id=reviewer.id, **payload.model_dump())
    db.add(review)
    db.commit()
    db.refresh(review)
    logger.info("Review %s: user %s rated user %s %d/5", review.id, reviewer.id, reviewee.id, review.rating)

    events.emit(
        NotificationType.NEW_REVIEW, reviewee.id, "New Review",
        f"{reviewer.name} left you a {review.rating}-star review.",
        shipment_id=review.shipment_id,
    )
    return review


def review_summary(
    db: Session,
    reviewee_id: Optional[int] = None,
    reviewer_id: Optional[int] = None,
    shipment_id: Optional[int] = None,
    trip_id: Optional[int] = None,
    rating: Optional[int] = None,
) -> dict:
    """Public reviews matching the filters, with average and per-star breakdown."""
    query = db.query(Review).filter(Review.is_public.is_(True))
    if reviewee_id:
        query = query.filter(Review.reviewee_id == reviewee_id)
    if reviewer_id:
        query = query.filter(Review.reviewer_id == reviewer_id)
    if shipment_id:
        query = query.filter(Review.shipment_id == shipment_id)
    if trip_id:
        query = query.filter(Review.trip_id == trip_id)
    if rating:
        query = query.filter(Review.rating == rating)
    reviews = query.order_by(Review.id.desc()).all()

    total = len(reviews)
    average = round(sum(r.rating for r in reviews) / total, 2) if total else 0.0
    return {
        "reviews": reviews,
        "total_reviews": total,
        "average_rating": average,
        "rating_breakdown": dict(Counter(r.rating for r in reviews)),
    }
