from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from freightfloo.core.deps import get_db, require_admin, require_user
from freightfloo.models.user import User
from freightfloo.schemas.payment import (
    PaymentComplete,
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentResponse,
    RefundCreate,
    RefundResolve,
    RefundResponse,
)
from freightfloo.services import payments, stripe_gateway
from freightfloo.services.events import EventBus

router = APIRouter(prefix="/api", tags=["payments"])


@router.post("/payments/intent", response_model=PaymentIntentResponse)
def create_payment_intent(
    payload: PaymentIntentRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    payment, client_secret = payments.create_payment_intent(db, user, payload.shipment_id, payload.bid_id)
    return {
        "payment_id": payment.id,
        "amount": payment.amount,
        "status": payment.status,
        "client_secret": client_secret,
    }


@router.post("/payments/complete", response_model=PaymentResponse)
def complete_payment(
    payload: PaymentComplete,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    events = EventBus()
    payment = payments.complete_payment(db, events, user, payload.shipment_id, payload.bid_id, payload.amount)
    events.dispatch(db, background_tasks)
    return payment


@router.post("/payments/webhook")
async def stripe_webhook(request: Request, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    """Called by Stripe, authenticated by the Stripe-Signature header rather than a session."""
    payload = await request.body()
    event = stripe_gateway.verify_webhook(payload, request.headers.get("stripe-signature", ""))
    events = EventBus()
    outcome = payments.handle_stripe_event(db, events, event)
    events.dispatch(db, background_tasks)
    return {"received": True, "outcome": outcome}


@router.get("/payments", response_model=List[PaymentResponse])
def my_payments(db: Session = Depends(get_db), user: User = Depends(require_user)):
    return payments.list_payments(db, user)


@router.post("/refunds", response_model=RefundResponse, status_code=201)
def request_refund(
    payload: RefundCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    events = EventBus()
    refund = payments.request_refund(
        db, events, user, payload.payment_id, payload.amount, payload.reason.value, payload.description
    )
    events.dispatch(db, background_tasks)
    return refund


@router.get("/refunds", response_model=List[RefundResponse])
def my_refunds(status: Optional[str] = None, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return payments.list_refunds(db, user, status)


@router.patch("/admin/refunds/{refund_id}", response_model=RefundResponse)
def resolve_refund(
    refund_id: int,
    payload: RefundResolve,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    events = EventBus()
    refund = payments.resolve_refund(db, events, admin, refund_id, payload.approve)
    events.dispatch(db, background_tasks)
    return refund
