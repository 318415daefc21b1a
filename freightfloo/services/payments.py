"""
Payment and refund coordination.

Payment completion is the only way a shipment reaches ASSIGNED: the
PENDING -> ASSIGNED move and payment_status=COMPLETED are written by one
conditional update, whether completion comes from the client
(/payments/complete) or from Stripe (payment_intent.succeeded webhook).
Refunds never move the shipment back; they only flip payment/refund status
once Stripe (or an admin) confirms them.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import stripe
from sqlalchemy import or_
from sqlalchemy.orm import Session

from freightfloo.core.capabilities import capabilities_for
from freightfloo.core.config import settings
from freightfloo.core.errors import (
    AmountMismatchError,
    AuthorizationError,
    ConflictError,
    FreightFlooError,
    InsufficientStateError,
    NotFoundError,
    PaymentProviderError,
    ValidationError,
)
from freightfloo.models.enums import (
    BidStatus,
    NotificationType,
    PaymentStatus,
    RefundStatus,
    ShipmentStatus,
)
from freightfloo.models.shipment import Bid, Payment, Refund, Shipment
from freightfloo.models.user import User
from freightfloo.services import stripe_gateway
from freightfloo.services.bids import display_name
from freightfloo.services.events import EventBus, shipment_url

logger = logging.getLogger(__name__)


def _same_amount(a: float, b: float) -> bool:
    return round(a, 2) == round(b, 2)


def _payable(db: Session, owner: User, shipment_id: int, bid_id: int) -> Tuple[Shipment, Bid]:
    """Shipment PENDING with this bid ACCEPTED on it, owned by the caller."""
    shipment = db.get(Shipment, shipment_id)
    if not shipment:
        raise NotFoundError("Shipment not found")
    if shipment.user_id != owner.id:
        raise AuthorizationError("Only the shipment owner can pay for it")
    bid = db.get(Bid, bid_id)
    if not bid:
        raise NotFoundError("Bid not found")
    if bid.shipment_id != shipment.id or bid.status != BidStatus.ACCEPTED.value:
        raise InsufficientStateError("Bid is not the accepted bid for this shipment")
    if shipment.status != ShipmentStatus.PENDING.value:
        raise InsufficientStateError(f"Shipment is {shipment.status.lower()}, not awaiting payment")
    return shipment, bid


def _pending_payment(db: Session, bid_id: int) -> Optional[Payment]:
    return (
        db.query(Payment)
        .filter(Payment.bid_id == bid_id, Payment.status == PaymentStatus.PENDING.value)
        .first()
    )


def create_payment_intent(db: Session, owner: User, shipment_id: int, bid_id: int) -> Tuple[Payment, Optional[str]]:
    """
    Open (or reopen) a PENDING payment for the accepted bid.
    Returns the payment and the Stripe client secret, if Stripe is configured.
    """
    shipment, bid = _payable(db, owner, shipment_id, bid_id)
    if bid.amount > settings.MAX_PAYMENT_AMOUNT:
        raise ValidationError(
            f"Payment amount exceeds the ${settings.MAX_PAYMENT_AMOUNT:,.2f} limit",
            details={"max_amount": settings.MAX_PAYMENT_AMOUNT},
        )

    existing = _pending_payment(db, bid.id)
    if existing:
        try:
            return existing, stripe_gateway.retrieve_client_secret(existing.stripe_payment_intent_id)
        except stripe.StripeError as e:
            logger.exception("Could not retrieve PaymentIntent %s", existing.stripe_payment_intent_id)
            raise PaymentProviderError("Payment provider is unavailable, try again") from e

    try:
        intent = stripe_gateway.create_payment_intent(
            bid.amount, shipment_id=shipment.id, bid_id=bid.id, user_id=owner.id
        )
    except stripe.StripeError as e:
        logger.exception("PaymentIntent creation failed for shipment %s", shipment.id)
        raise PaymentProviderError("Payment provider rejected the request") from e

    payment = Payment(
        shipment_id=shipment.id,
        bid_id=bid.id,
        user_id=owner.id,
        amount=bid.amount,
        status=PaymentStatus.PENDING.value,
        stripe_payment_intent_id=intent["id"] if intent else None,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    logger.info("Payment %s opened for shipment %s (%.2f)", payment.id, shipment.id, payment.amount)
    return payment, intent["client_secret"] if intent else None


def complete_payment(
    db: Session,
    events: EventBus,
    owner: User,
    shipment_id: int,
    bid_id: int,
    amount: float,
    payment_intent_id: Optional[str] = None,
) -> Payment:
    shipment, bid = _payable(db, owner, shipment_id, bid_id)
    if not _same_amount(amount, bid.amount):
        raise AmountMismatchError(
            f"Payment amount ${amount:,.2f} does not match accepted bid ${bid.amount:,.2f}",
            expected=bid.amount,
            received=amount,
        )

    updated = (
        db.query(Shipment)
        .filter(Shipment.id == shipment.id, Shipment.status == ShipmentStatus.PENDING.value)
        .update(
            {Shipment.status: ShipmentStatus.ASSIGNED.value, Shipment.payment_status: PaymentStatus.COMPLETED.value},
            synchronize_session=False,
        )
    )
    if updated != 1:
        db.rollback()
        raise ConflictError("Shipment was paid for or cancelled by another request")

    payment = None
    if payment_intent_id:
        payment = db.query(Payment).filter(Payment.stripe_payment_intent_id == payment_intent_id).first()
    payment = payment or _pending_payment(db, bid.id)
    if payment:
        payment.status = PaymentStatus.COMPLETED.value
    else:
        payment = Payment(
            shipment_id=shipment.id,
            bid_id=bid.id,
            user_id=owner.id,
            amount=bid.amount,
            status=PaymentStatus.COMPLETED.value,
            stripe_payment_intent_id=payment_intent_id,
        )
        db.add(payment)
    db.commit()
    db.refresh(payment)
    db.refresh(shipment)
    logger.info("Payment %s completed; shipment %s assigned to carrier %s", payment.id, shipment.id, bid.user_id)

    carrier = bid.carrier
    context = {
        "shipment_title": shipment.title,
        "bid_amount": bid.amount,
        "carrier_name": display_name(carrier),
        "origin": shipment.origin,
        "destination": shipment.destination,
        "pickup_date": shipment.pickup_date.strftime("%b %d, %Y") if shipment.pickup_date else "TBD",
        "shipment_url": shipment_url(shipment.id),
    }
    events.emit(
        NotificationType.SHIPMENT_ASSIGNED, bid.user_id, "Shipment Assigned",
        f"Payment received. Shipment \"{shipment.title}\" is assigned to you.",
        shipment_id=shipment.id, bid_id=bid.id,
        email_template="shipment_assigned", email_context=context,
    )
    events.emit(
        NotificationType.PAYMENT_COMPLETED, owner.id, "Payment Completed",
        f"Your payment of ${bid.amount:,.2f} for \"{shipment.title}\" was successful.",
        shipment_id=shipment.id, bid_id=bid.id,
        email_template="payment_completed", email_context=context,
    )
    return payment


def _intent_succeeded(db: Session, events: EventBus, intent: dict) -> str:
    metadata = intent.get("metadata") or {}
    try:
        shipment_id, bid_id, user_id = (int(metadata[key]) for key in ("shipment_id", "bid_id", "user_id"))
    except (KeyError, TypeError, ValueError):
        logger.error("PaymentIntent %s carries no shipment metadata", intent.get("id"))
        return "ignored"

    shipment = db.get(Shipment, shipment_id)
    owner = db.get(User, user_id)
    if not shipment or not owner:
        logger.error("PaymentIntent %s points at unknown shipment %s or user %s", intent.get("id"), shipment_id, user_id)
        return "ignored"
    if shipment.status != ShipmentStatus.PENDING.value:
        # /payments/complete or an earlier delivery of this event got there first
        logger.info("PaymentIntent %s: shipment %s is already %s", intent.get("id"), shipment_id, shipment.status)
        return "ignored"

    cents = intent.get("amount_received") or intent.get("amount") or 0
    try:
        complete_payment(db, events, owner, shipment_id, bid_id, cents / 100, payment_intent_id=intent.get("id"))
    except FreightFlooError as e:
        logger.error("PaymentIntent %s could not complete shipment %s: %s", intent.get("id"), shipment_id, e.message)
        return "ignored"
    return "completed"


def _intent_failed(db: Session, events: EventBus, intent: dict) -> str:
    intent_id = intent.get("id")
    payment = (
        db.query(Payment).filter(Payment.stripe_payment_intent_id == intent_id).first() if intent_id else None
    )
    if not payment:
        logger.warning("Failed PaymentIntent %s has no payment on record", intent_id)
        return "ignored"

    updated = (
        db.query(Payment)
        .filter(Payment.id == payment.id, Payment.status == PaymentStatus.PENDING.value)
        .update({Payment.status: PaymentStatus.FAILED.value}, synchronize_session=False)
    )
    if updated != 1:
        db.rollback()
        logger.info("Failed PaymentIntent %s: payment %s is no longer pending", intent_id, payment.id)
        return "ignored"
    db.commit()
    db.refresh(payment)
    logger.info("Payment %s failed (PaymentIntent %s)", payment.id, intent_id)

    events.emit(
        NotificationType.PAYMENT_FAILED, payment.user_id, "Payment Failed",
        f"Payment for \"{payment.shipment.title}\" failed. Please try again or contact support.",
        shipment_id=payment.shipment_id, bid_id=payment.bid_id,
    )
    return "failed"


def handle_stripe_event(db: Session, events: EventBus, event: dict) -> Optional[str]:
    """
    Apply a verified Stripe webhook event.

    payment_intent.succeeded completes the payment through the same conditional
    PENDING -> ASSIGNED update as complete_payment; payment_intent.payment_failed
    marks the PENDING payment FAILED and leaves the shipment awaiting payment.
    Events that no longer apply are acknowledged and ignored so Stripe stops
    retrying them. Returns the outcome, or None for event types not handled.
    """
    event_type = event.get("type")
    intent = (event.get("data") or {}).get("object") or {}
    if event_type == "payment_intent.succeeded":
        return _intent_succeeded(db, events, intent)
    if event_type == "payment_intent.payment_failed":
        return _intent_failed(db, events, intent)
    logger.debug("Unhandled Stripe event %s", event_type)
    return None


def _mark_refunded(db: Session, refund: Refund) -> None:
    """Close a refund as COMPLETED and flip the payment and shipment payment_status."""
    refund.status = RefundStatus.COMPLETED.value
    refund.resolved_at = datetime.now(timezone.utc)
    payment = refund.payment
    payment.status = PaymentStatus.REFUNDED.value
    payment.shipment.payment_status = PaymentStatus.REFUNDED.value


def _refund_events(events: EventBus, refund: Refund, recipients: List[int]) -> None:
    payment = refund.payment
    shipment = payment.shipment
    context = {
        "shipment_title": shipment.title,
        "refund_amount": refund.amount,
        "reason": refund.reason,
        "refund_status": refund.status,
        "shipment_url": shipment_url(shipment.id),
    }
    for user_id in recipients:
        events.emit(
            NotificationType.REFUND_PROCESSED, user_id, "Refund " + refund.status.title(),
            f"Refund of ${refund.amount:,.2f} for \"{shipment.title}\" is {refund.status.lower()}.",
            shipment_id=shipment.id, bid_id=payment.bid_id,
            email_template="refund_processed", email_context=context,
        )


def request_refund(
    db: Session,
    events: EventBus,
    owner: User,
    payment_id: int,
    amount: float,
    reason: str,
    description: Optional[str] = None,
) -> Refund:
    payment = db.get(Payment, payment_id)
    if not payment:
        raise NotFoundError("Payment not found")
    if payment.shipment.user_id != owner.id:
        raise AuthorizationError("Only the shipment owner can request a refund")
    if payment.status != PaymentStatus.COMPLETED.value:
        raise InsufficientStateError("Only completed payments can be refunded")
    if amount <= 0 or round(amount, 2) > round(payment.amount, 2):
        raise AmountMismatchError(
            f"Refund amount ${amount:,.2f} exceeds payment amount ${payment.amount:,.2f}",
            expected=payment.amount,
            received=amount,
        )
    open_refund = (
        db.query(Refund)
        .filter(Refund.payment_id == payment.id, Refund.status == RefundStatus.PENDING.value)
        .first()
    )
    if open_refund:
        raise ConflictError("A refund request is already pending for this payment", details={"refund_id": open_refund.id})

    refund = Refund(
        payment_id=payment.id,
        requested_by_id=owner.id,
        amount=amount,
        reason=getattr(reason, "value", reason),
        description=description,
        status=RefundStatus.PENDING.value,
        details={
            "original_amount": payment.amount,
            "refund_percentage": round(amount / payment.amount * 100, 2),
        },
    )
    db.add(refund)
    db.commit()
    db.refresh(refund)
    logger.info("Refund %s requested on payment %s (%.2f, %s)", refund.id, payment.id, amount, refund.reason)

    try:
        result = stripe_gateway.create_refund(payment.stripe_payment_intent_id, amount, refund.reason)
    except stripe.StripeError:
        # left PENDING for an admin to resolve
        logger.exception("Stripe refund failed for refund %s", refund.id)
        result = None
    if result:
        refund.stripe_refund_id = result["id"]
        if result["status"] in ("succeeded", "pending"):
            _mark_refunded(db, refund)
        db.commit()
        db.refresh(refund)

    _refund_events(events, refund, [owner.id, payment.bid.user_id])
    return refund


def resolve_refund(db: Session, events: EventBus, admin: User, refund_id: int, approve: bool) -> Refund:
    if not capabilities_for(admin.role).is_admin:
        raise AuthorizationError("Only administrators can resolve refunds")
    refund = db.get(Refund, refund_id)
    if not refund:
        raise NotFoundError("Refund not found")
    if refund.status != RefundStatus.PENDING.value:
        raise ConflictError(f"Refund is already {refund.status.lower()}")

    if approve:
        _mark_refunded(db, refund)
    else:
        refund.status = RefundStatus.REJECTED.value
        refund.resolved_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(refund)
    logger.info("Refund %s %s by admin %s", refund.id, refund.status, admin.id)

    _refund_events(events, refund, [refund.requested_by_id])
    return refund


def list_payments(db: Session, user: User) -> List[Payment]:
    """Payments the caller made, or received as the carrier on the bid."""
    return (
        db.query(Payment)
        .join(Bid, Payment.bid_id == Bid.id)
        .filter(or_(Payment.user_id == user.id, Bid.user_id == user.id))
        .order_by(Payment.id.desc())
        .all()
    )


def list_refunds(db: Session, user: User, status: Optional[str] = None) -> List[Refund]:
    query = db.query(Refund)
    if not capabilities_for(user.role).is_admin:
        query = query.filter(Refund.requested_by_id == user.id)
    if status:
        query = query.filter(Refund.status == status)
    return query.order_by(Refund.id.desc()).all()
