"""
Stripe PaymentIntents, Refunds and webhook verification for shipment payments.
The API calls are no-ops (return None) when Stripe is not configured, so local
and test environments run the full payment lifecycle without a gateway.
"""
import json
import logging
from typing import Optional

import stripe

from freightfloo.core.config import settings
from freightfloo.core.errors import PaymentProviderError, ValidationError

logger = logging.getLogger(__name__)


def _configured() -> bool:
    if not settings.STRIPE_SECRET_KEY:
        return False
    stripe.api_key = settings.STRIPE_SECRET_KEY
    return True


def to_cents(amount: float) -> int:
    return int(round(amount * 100))


def create_payment_intent(amount: float, *, shipment_id: int, bid_id: int, user_id: int) -> Optional[dict]:
    """
    Create a PaymentIntent for the accepted bid.
    Returns {"id", "client_secret"} or None if Stripe is not configured.
    """
    if not _configured():
        return None
    intent = stripe.PaymentIntent.create(
        amount=to_cents(amount),
        currency="usd",
        metadata={"shipment_id": str(shipment_id), "bid_id": str(bid_id), "user_id": str(user_id)},
    )
    logger.info("Stripe PaymentIntent %s created for shipment %s", intent.id, shipment_id)
    return {"id": intent.id, "client_secret": intent.client_secret}


def create_refund(payment_intent_id: Optional[str], amount: float, reason: Optional[str] = None) -> Optional[dict]:
    """
    Refund part or all of a PaymentIntent.
    Returns {"id", "status"}, or None when there is nothing to refund against.
    Raises stripe.StripeError on gateway failure.
    """
    if not payment_intent_id or not _configured():
        return None
    # the remaining reasons have no Stripe equivalent
    stripe_reason = {"DUPLICATE": "duplicate", "CANCELLED": "requested_by_customer"}.get(reason or "")
    params = {"payment_intent": payment_intent_id, "amount": to_cents(amount)}
    if stripe_reason:
        params["reason"] = stripe_reason
    refund = stripe.Refund.create(**params)
    logger.info("Stripe refund %s (%s) for intent %s", refund.id, refund.status, payment_intent_id)
    return {"id": refund.id, "status": refund.status}


def retrieve_client_secret(payment_intent_id: Optional[str]) -> Optional[str]:
    if not payment_intent_id or not _configured():
        return None
    return stripe.PaymentIntent.retrieve(payment_intent_id).client_secret


def verify_webhook(payload: bytes, signature: str) -> dict:
    """
    Check the Stripe-Signature header against STRIPE_WEBHOOK_SECRET and return
    the event as a plain dict.
    """
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise PaymentProviderError("Stripe webhooks are not configured")
    try:
        stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning("Rejected Stripe webhook: %s", e)
        raise ValidationError("Invalid webhook signature") from e
    return json.loads(payload)
