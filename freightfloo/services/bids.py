"""
Bid lifecycle: carriers submit bids, shipment owners accept or reject them.

PENDING -> ACCEPTED | REJECTED, each bid decided once. Accepting moves the
shipment ACTIVE -> PENDING (awaiting payment) through a conditional update,
so two owners' tabs or a racing offer acceptance cannot both win.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from freightfloo.core.capabilities import capabilities_for
from freightfloo.core.config import settings
from freightfloo.core.errors import (
    AuthorizationError,
    ConflictError,
    InsufficientStateError,
    NotFoundError,
    ValidationError,
)
from freightfloo.models.enums import BidStatus, NotificationType, PaymentStatus, PricingType, ShipmentStatus
from freightfloo.models.shipment import Bid, Shipment
from freightfloo.models.user import User
from freightfloo.services.events import EventBus, shipment_url
from freightfloo.services.pricing import PricingContext, require_valid_bid

logger = logging.getLogger(__name__)


def display_name(user: User) -> str:
    return user.company_name or user.name or "Anonymous"


def _move_shipment_to_payment(db: Session, shipment_id: int) -> None:
    """ACTIVE -> PENDING, only if nobody else got there first."""
    updated = (
        db.query(Shipment)
        .filter(Shipment.id == shipment_id, Shipment.status == ShipmentStatus.ACTIVE.value)
        .update(
            {Shipment.status: ShipmentStatus.PENDING.value, Shipment.payment_status: PaymentStatus.PENDING.value},
            synchronize_session=False,
        )
    )
    if updated != 1:
        db.rollback()
        raise ConflictError("Shipment is no longer accepting bids")


def _set_bid_status(db: Session, bid_id: int, new_status: BidStatus) -> None:
    updated = (
        db.query(Bid)
        .filter(Bid.id == bid_id, Bid.status == BidStatus.PENDING.value)
        .update({Bid.status: new_status.value}, synchronize_session=False)
    )
    if updated != 1:
        db.rollback()
        raise ConflictError("Bid has already been decided")


def pending_bid_amounts(db: Session, shipment_id: int) -> List[float]:
    rows = (
        db.query(Bid.amount)
        .filter(Bid.shipment_id == shipment_id, Bid.status == BidStatus.PENDING.value)
        .all()
    )
    return [amount for (amount,) in rows]


def submit_bid(
    db: Session,
    events: EventBus,
    carrier: User,
    shipment_id: int,
    amount: float,
    message: Optional[str] = None,
) -> Bid:
    shipment = db.get(Shipment, shipment_id)
    if not shipment:
        raise NotFoundError("Shipment not found")
    if not capabilities_for(carrier.role).can_bid:
        raise AuthorizationError("Only carriers can bid on shipments")
    if shipment.user_id == carrier.id:
        raise AuthorizationError("Cannot bid on your own shipment")
    if shipment.status != ShipmentStatus.ACTIVE.value:
        raise InsufficientStateError("Shipment is not accepting bids")

    existing = (
        db.query(Bid)
        .filter(
            Bid.shipment_id == shipment_id,
            Bid.user_id == carrier.id,
            Bid.status.in_([BidStatus.PENDING.value, BidStatus.ACCEPTED.value]),
        )
        .first()
    )
    if existing:
        raise ConflictError("You already have a bid on this shipment", details={"bid_id": existing.id})

    evaluation = require_valid_bid(
        amount, PricingContext.from_shipment(shipment), pending_bid_amounts(db, shipment_id)
    )

    if evaluation.auto_accept:
        _move_shipment_to_payment(db, shipment_id)

    bid = Bid(
        shipment_id=shipment_id,
        user_id=carrier.id,
        amount=amount,
        message=message,
        status=(BidStatus.ACCEPTED if evaluation.auto_accept else BidStatus.PENDING).value,
    )
    db.add(bid)
    db.commit()
    db.refresh(bid)

    title = shipment.title
    carrier_name = display_name(carrier)
    context = {
        "shipment_title": title,
        "bid_amount": amount,
        "carrier_name": carrier_name,
        "bid_message": message,
        "shipment_url": shipment_url(shipment_id),
    }
    if shipment.pricing_type == PricingType.OFFER.value:
        logger.info("Offer on shipment %s accepted by carrier %s at %.2f", shipment_id, carrier.id, amount)
        events.emit(
            NotificationType.OFFER_ACCEPTED, shipment.user_id, "Offer Accepted",
            f"{carrier_name} accepted your ${amount:,.2f} offer for \"{title}\". "
            "Please complete payment to assign the shipment.",
            shipment_id=shipment_id, bid_id=bid.id,
            email_template="offer_accepted", email_context=context,
        )
        events.emit(
            NotificationType.BID_ACCEPTED, carrier.id, "Offer Accepted",
            f"Your acceptance of the ${amount:,.2f} offer for \"{title}\" has been confirmed.",
            shipment_id=shipment_id, bid_id=bid.id,
            email_template="bid_accepted", email_context=context,
        )
    else:
        logger.info("Bid %s placed on shipment %s by carrier %s at %.2f", bid.id, shipment_id, carrier.id, amount)
        events.emit(
            NotificationType.NEW_BID, shipment.user_id, "New Bid Received",
            f"{carrier_name} placed a bid of ${amount:,.2f} on your shipment \"{title}\"",
            shipment_id=shipment_id, bid_id=bid.id,
            email_template="new_bid", email_context=context,
        )
    return bid


def decide_bid(db: Session, events: EventBus, owner: User, bid_id: int, decision: str) -> Bid:
    """Accept or reject a PENDING bid. Only the shipment owner may decide."""
    try:
        decision = BidStatus(decision)
    except ValueError:
        raise ValidationError("Invalid status. Must be ACCEPTED or REJECTED") from None
    if decision == BidStatus.PENDING:
        raise ValidationError("Invalid status. Must be ACCEPTED or REJECTED")

    bid = db.get(Bid, bid_id)
    if not bid:
        raise NotFoundError("Bid not found")
    shipment = bid.shipment
    if shipment.user_id != owner.id:
        raise AuthorizationError("You can only manage bids on your own shipments")
    if bid.status != BidStatus.PENDING.value:
        raise ConflictError(f"Bid has already been {bid.status.lower()}")

    rejected_siblings: List[Bid] = []
    if decision == BidStatus.ACCEPTED:
        if shipment.status != ShipmentStatus.ACTIVE.value:
            raise InsufficientStateError("Cannot accept bids on a shipment that is not active")
        _move_shipment_to_payment(db, shipment.id)
        _set_bid_status(db, bid.id, BidStatus.ACCEPTED)
        if settings.AUTO_REJECT_SIBLING_BIDS:
            rejected_siblings = (
                db.query(Bid)
                .filter(
                    Bid.shipment_id == shipment.id,
                    Bid.id != bid.id,
                    Bid.status == BidStatus.PENDING.value,
                )
                .all()
            )
            for sibling in rejected_siblings:
                sibling.status = BidStatus.REJECTED.value
    else:
        _set_bid_status(db, bid.id, BidStatus.REJECTED)

    db.commit()
    db.refresh(bid)

    shipper_name = display_name(owner)
    context = {
        "shipment_title": shipment.title,
        "bid_amount": bid.amount,
        "shipment_url": shipment_url(shipment.id),
    }
    if decision == BidStatus.ACCEPTED:
        logger.info("Bid %s accepted on shipment %s; awaiting payment", bid.id, shipment.id)
        events.emit(
            NotificationType.BID_ACCEPTED, bid.user_id, "Bid Accepted!",
            f"{shipper_name} accepted your bid of ${bid.amount:,.2f} for shipment \"{shipment.title}\"",
            shipment_id=shipment.id, bid_id=bid.id,
            email_template="bid_accepted", email_context=context,
        )
    else:
        logger.info("Bid %s rejected on shipment %s", bid.id, shipment.id)

    for rejected in ([bid] if decision == BidStatus.REJECTED else rejected_siblings):
        events.emit(
            NotificationType.BID_REJECTED, rejected.user_id, "Bid Rejected",
            f"{shipper_name} rejected your bid of ${rejected.amount:,.2f} for shipment \"{shipment.title}\"",
            shipment_id=shipment.id, bid_id=rejected.id,
            email_template="bid_rejected",
            email_context={**context, "bid_amount": rejected.amount},
        )
    return bid


def list_bids_for_carrier(db: Session, carrier: User, status: Optional[str] = None) -> List[Bid]:
    query = db.query(Bid).filter(Bid.user_id == carrier.id)
    if status and status != "ALL":
        query = query.filter(Bid.status == status)
    return query.order_by(Bid.id.desc()).all()


def list_bids_for_shipment(db: Session, shipment_id: int) -> List[Bid]:
    return db.query(Bid).filter(Bid.shipment_id == shipment_id).order_by(Bid.amount.asc(), Bid.id.asc()).all()
