"""
Shipment status machine.

    ACTIVE -> PENDING -> ASSIGNED -> COMPLETED
    ACTIVE | PENDING -> CANCELLED

While ASSIGNED the shipment also carries a tracking sub-state
(None -> PICKED_UP -> IN_TRANSIT -> DELIVERED). Closing out to COMPLETED
is only possible from DELIVERED with proof of delivery on record.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from freightfloo.core.capabilities import capabilities_for
from freightfloo.core.errors import (
    AuthorizationError,
    ConflictError,
    InsufficientStateError,
    NotFoundError,
    ValidationError,
)
from freightfloo.models.enums import (
    NotificationType,
    PaymentStatus,
    PricingType,
    ShipmentStatus,
    TrackingStatus,
)
from freightfloo.models.shipment import Shipment
from freightfloo.models.user import User
from freightfloo.schemas.shipment import ShipmentCreate, ShipmentUpdate, as_utc
from freightfloo.services.events import EventBus, shipment_url

logger = logging.getLogger(__name__)

COMPLETED = ShipmentStatus.COMPLETED.value

# current tracking sub-state -> the only step allowed next
NEXT_TRACKING_STEP: Dict[Optional[str], str] = {
    None: TrackingStatus.PICKED_UP.value,
    TrackingStatus.PICKED_UP.value: TrackingStatus.IN_TRANSIT.value,
    TrackingStatus.IN_TRANSIT.value: TrackingStatus.DELIVERED.value,
    TrackingStatus.DELIVERED.value: COMPLETED,
}

TIMESTAMP_FIELD = {
    TrackingStatus.PICKED_UP.value: "pickup_time",
    TrackingStatus.IN_TRANSIT.value: "transit_time",
    TrackingStatus.DELIVERED.value: "delivery_time",
    COMPLETED: "completion_time",
}

STATUS_MESSAGES = {
    TrackingStatus.PICKED_UP.value: "has been picked up",
    TrackingStatus.IN_TRANSIT.value: "is now in transit",
    TrackingStatus.DELIVERED.value: "has been delivered",
    COMPLETED: "has been completed",
}

CANCELLABLE = (ShipmentStatus.ACTIVE.value, ShipmentStatus.PENDING.value)

# NOT NULL columns an edit may change but never clear
REQUIRED_FIELDS = ("title", "origin", "destination", "pickup_date")

# steps on which proof of delivery may be recorded
POD_STEPS = (TrackingStatus.DELIVERED.value, COMPLETED)

# Used when there is no delivery date and the freight is already moving
ESTIMATED_TRANSIT_DAYS = 4


def get_shipment_or_404(db: Session, shipment_id: int) -> Shipment:
    shipment = db.get(Shipment, shipment_id)
    if not shipment:
        raise NotFoundError("Shipment not found")
    return shipment


def is_participant(shipment: Shipment, user: User) -> bool:
    """Owner, or carrier holding the accepted bid."""
    if shipment.user_id == user.id:
        return True
    accepted = shipment.accepted_bid
    return accepted is not None and accepted.user_id == user.id


def create_shipment(db: Session, owner: User, payload: ShipmentCreate) -> Shipment:
    if not capabilities_for(owner.role).can_post_shipments:
        raise AuthorizationError("Only shippers can post shipments")

    if payload.pricing_type == PricingType.AUCTION:
        if not payload.starting_bid or payload.starting_bid <= 0:
            raise ValidationError("Auction shipments need a starting bid greater than zero")
        starting_bid, offer_price = payload.starting_bid, None
    else:
        if not payload.offer_price or payload.offer_price <= 0:
            raise ValidationError("Offer shipments need an offer price greater than zero")
        starting_bid, offer_price = None, payload.offer_price

    if payload.delivery_date and payload.delivery_date < payload.pickup_date:
        raise ValidationError("Delivery date cannot be before pickup date")

    shipment = Shipment(
        user_id=owner.id,
        title=payload.title,
        description=payload.description,
        origin=payload.origin,
        destination=payload.destination,
        distance=payload.distance,
        weight=payload.weight,
        dimensions=payload.dimensions,
        category=payload.category,
        pickup_date=payload.pickup_date,
        delivery_date=payload.delivery_date,
        pricing_type=payload.pricing_type.value,
        starting_bid=starting_bid,
        offer_price=offer_price,
        status=ShipmentStatus.ACTIVE.value,
        payment_status=PaymentStatus.NONE.value,
    )
    db.add(shipment)
    db.commit()
    db.refresh(shipment)
    logger.info("Shipment %s posted by user %s (%s)", shipment.id, owner.id, shipment.pricing_type)
    return shipment


def update_shipment(db: Session, owner: User, shipment_id: int, payload: ShipmentUpdate) -> Shipment:
    shipment = get_shipment_or_404(db, shipment_id)
    if shipment.user_id != owner.id:
        raise AuthorizationError("You can only edit your own shipments")
    changes = payload.model_dump(exclude_unset=True)
    cleared = [name for name in REQUIRED_FIELDS if name in changes and changes[name] is None]
    if cleared:
        raise ValidationError("Required fields cannot be cleared", details={"fields": cleared})
    pricing_type = changes.pop("pricing_type", None)
    if pricing_type is not None and pricing_type != shipment.pricing_type:
        raise ValidationError("Pricing type cannot be changed after creation")
    if shipment.status != ShipmentStatus.ACTIVE.value or shipment.bids:
        raise InsufficientStateError("Shipments can only be edited while active and before any bids")

    for field_name, value in changes.items():
        setattr(shipment, field_name, value)
    if shipment.delivery_date and as_utc(shipment.delivery_date) < as_utc(shipment.pickup_date):
        db.rollback()
        raise ValidationError("Delivery date cannot be before pickup date")
    db.commit()
    db.refresh(shipment)
    return shipment


def list_shipments(
    db: Session,
    status: str = ShipmentStatus.ACTIVE.value,
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    category: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Shipment], int]:
    query = db.query(Shipment)
    if status and status != "ALL":
        query = query.filter(Shipment.status == status)
    if origin:
        query = query.filter(Shipment.origin.ilike(f"%{origin}%"))
    if destination:
        query = query.filter(Shipment.destination.ilike(f"%{destination}%"))
    if category:
        query = query.filter(Shipment.category == category)
    total = query.count()
    items = query.order_by(Shipment.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return items, total


def list_user_shipments(db: Session, owner: User, status: Optional[str] = None) -> List[Shipment]:
    query = db.query(Shipment).filter(Shipment.user_id == owner.id)
    if status and status != "ALL":
        query = query.filter(Shipment.status == status)
    return query.order_by(Shipment.id.desc()).all()


def cancel_shipment(db: Session, events: EventBus, owner: User, shipment_id: int) -> Shipment:
    shipment = get_shipment_or_404(db, shipment_id)
    if shipment.user_id != owner.id:
        raise AuthorizationError("You can only cancel your own shipments")
    if shipment.status not in CANCELLABLE:
        raise InsufficientStateError(f"Cannot cancel a shipment that is {shipment.status.lower()}")

    accepted = shipment.accepted_bid
    updated = (
        db.query(Shipment)
        .filter(Shipment.id == shipment_id, Shipment.status.in_(CANCELLABLE))
        .update(
            {Shipment.status: ShipmentStatus.CANCELLED.value, Shipment.payment_status: PaymentStatus.NONE.value},
            synchronize_session=False,
        )
    )
    if updated != 1:
        db.rollback()
        raise ConflictError("Shipment status changed while cancelling")
    db.commit()
    db.refresh(shipment)
    logger.info("Shipment %s cancelled by owner %s", shipment_id, owner.id)

    if accepted:
        events.emit(
            NotificationType.SHIPMENT_CANCELLED, accepted.user_id, "Shipment Cancelled",
            f"Shipment \"{shipment.title}\" has been cancelled by the shipper.",
            shipment_id=shipment.id, bid_id=accepted.id,
        )
    return shipment


def update_tracking_status(
    db: Session,
    events: EventBus,
    user: User,
    shipment_id: int,
    new_status: str,
    pod_received: Optional[bool] = None,
    pod_image: Optional[str] = None,
    pod_notes: Optional[str] = None,
) -> Shipment:
    """Advance the tracking sub-state one step, or close out to COMPLETED."""
    if new_status not in TIMESTAMP_FIELD:
        raise ValidationError("Invalid status")
    shipment = get_shipment_or_404(db, shipment_id)
    if not is_participant(shipment, user):
        raise AuthorizationError("Only the shipper or the assigned carrier can update this shipment")
    if shipment.status != ShipmentStatus.ASSIGNED.value:
        raise InsufficientStateError("Tracking updates are only possible once the shipment is assigned")

    current = shipment.current_status
    if NEXT_TRACKING_STEP.get(current) != new_status:
        raise ConflictError(
            f"Invalid status transition from {current or ShipmentStatus.ASSIGNED.value} to {new_status}",
            details={"current_status": current, "expected": NEXT_TRACKING_STEP.get(current)},
        )
    if new_status not in POD_STEPS and (pod_received or pod_image or pod_notes):
        raise ValidationError("Proof of delivery can only be recorded on delivery or completion")

    values = {TIMESTAMP_FIELD[new_status]: datetime.now(timezone.utc)}
    if pod_received:
        values["pod_received"] = True
    if pod_image:
        values["pod_image"] = pod_image
    if pod_notes:
        values["pod_notes"] = pod_notes

    if new_status == COMPLETED:
        if not (shipment.pod_received or pod_received):
            raise ValidationError("Proof of delivery is required before completing the shipment")
        values["status"] = COMPLETED
    else:
        values["current_status"] = new_status

    query = db.query(Shipment).filter(
        Shipment.id == shipment_id,
        Shipment.status == ShipmentStatus.ASSIGNED.value,
    )
    query = query.filter(Shipment.current_status.is_(None) if current is None else Shipment.current_status == current)
    updated = query.update({getattr(Shipment, k): v for k, v in values.items()}, synchronize_session=False)
    if updated != 1:
        db.rollback()
        raise ConflictError("Shipment status changed by another request; reload and retry")
    db.commit()
    db.refresh(shipment)
    logger.info("Shipment %s tracking %s -> %s by user %s", shipment_id, current, new_status, user.id)

    message = STATUS_MESSAGES[new_status]
    context = {
        "shipment_title": shipment.title,
        "status_message": message,
        "shipment_url": shipment_url(shipment.id),
    }
    events.emit(
        NotificationType.SHIPMENT_STATUS_UPDATE, shipment.user_id, "Shipment Status Updated",
        f"Your shipment \"{shipment.title}\" {message}",
        shipment_id=shipment.id, email_template="status_update", email_context=context,
    )
    accepted = shipment.accepted_bid
    if accepted:
        events.emit(
            NotificationType.SHIPMENT_STATUS_UPDATE, accepted.user_id, "Shipment Status Updated",
            f"Shipment \"{shipment.title}\" {message}",
            shipment_id=shipment.id, bid_id=accepted.id,
        )
    return shipment


def tracking_view(db: Session, user: User, shipment_id: int) -> dict:
    shipment = get_shipment_or_404(db, shipment_id)
    if not is_participant(shipment, user):
        raise AuthorizationError("Only the shipper or the assigned carrier can track this shipment")

    events = [{
        "status": ShipmentStatus.PENDING.value,
        "location": shipment.origin,
        "timestamp": shipment.created_at,
        "description": "Shipment created and ready for pickup",
    }]
    steps = (
        ("pickup_time", TrackingStatus.PICKED_UP.value, shipment.origin, "Freight picked up from origin"),
        ("transit_time", TrackingStatus.IN_TRANSIT.value, "In Transit", "Freight in transit to destination"),
        ("delivery_time", TrackingStatus.DELIVERED.value, shipment.destination, "Freight delivered to destination"),
        ("completion_time", COMPLETED, shipment.destination, "Shipment completed and proof of delivery received"),
    )
    for attr, status, location, description in steps:
        stamp = getattr(shipment, attr)
        if stamp:
            events.append({"status": status, "location": location, "timestamp": stamp, "description": description})

    estimated = shipment.delivery_date
    if not estimated and shipment.pickup_time:
        estimated = shipment.pickup_time + timedelta(days=ESTIMATED_TRANSIT_DAYS)

    accepted = shipment.accepted_bid
    carrier = None
    if accepted:
        c = accepted.carrier
        carrier = {"name": c.name, "company_name": c.company_name, "phone": c.company_phone, "email": c.email}

    return {
        "id": shipment.id,
        "title": shipment.title,
        "origin": shipment.origin,
        "destination": shipment.destination,
        "status": shipment.status,
        "current_status": shipment.current_status,
        "estimated_delivery": estimated,
        "carrier": carrier,
        "events": events,
        "pod_received": shipment.pod_received,
        "pod_image": shipment.pod_image,
        "pod_notes": shipment.pod_notes,
    }
