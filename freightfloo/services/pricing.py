"""
Pricing rules for carrier bids.

Auction shipments run a reverse auction: every bid must be strictly below the
shipper's starting price and undercut the lowest PENDING bid by at least the
minimum decrement. Offer shipments have a fixed price: a "bid" at exactly that
price is an acceptance and skips the competitive step.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from freightfloo.core.config import settings
from freightfloo.core.errors import AmountMismatchError, ValidationError
from freightfloo.models.enums import PricingType


@dataclass(frozen=True)
class PricingContext:
    pricing_type: str
    starting_bid: Optional[float] = None
    offer_price: Optional[float] = None

    @classmethod
    def from_shipment(cls, shipment) -> "PricingContext":
        return cls(
            pricing_type=shipment.pricing_type,
            starting_bid=shipment.starting_bid,
            offer_price=shipment.offer_price,
        )


@dataclass(frozen=True)
class BidEvaluation:
    accepted: bool
    reason: str
    auto_accept: bool = False      # offer acceptance: bid goes straight to ACCEPTED
    ceiling: Optional[float] = None  # limit the amount was checked against
    mismatch: bool = False         # offer amount differs from the fixed price


def _money(value: float) -> str:
    return f"${value:,.2f}"


def evaluate_bid(
    amount: float,
    pricing: PricingContext,
    pending_amounts: Iterable[float] = (),
    min_decrement: Optional[float] = None,
) -> BidEvaluation:
    """
    Validate a proposed bid. Pure: no I/O, no side effects.

    pending_amounts must hold only PENDING bids; rejected bids never constrain
    a new bid, so a carrier whose earlier bid was rejected may bid again.
    """
    if min_decrement is None:
        min_decrement = settings.MIN_BID_DECREMENT
    if amount is None or amount <= 0:
        return BidEvaluation(False, "Bid amount must be greater than zero")

    if pricing.pricing_type == PricingType.OFFER.value:
        if pricing.offer_price is None:
            return BidEvaluation(False, "Shipment has no offer price")
        if amount != pricing.offer_price:
            return BidEvaluation(
                False,
                f"Offer must be accepted at exactly {_money(pricing.offer_price)}",
                ceiling=pricing.offer_price,
                mismatch=True,
            )
        return BidEvaluation(True, "Offer accepted", auto_accept=True, ceiling=pricing.offer_price)

    if pricing.pricing_type != PricingType.AUCTION.value:
        return BidEvaluation(False, f"Unknown pricing type: {pricing.pricing_type}")
    if pricing.starting_bid is None:
        return BidEvaluation(False, "Shipment has no starting price")

    if amount >= pricing.starting_bid:
        return BidEvaluation(
            False,
            f"Bid must be lower than starting price of {_money(pricing.starting_bid)}",
            ceiling=pricing.starting_bid,
        )

    pending = list(pending_amounts)
    if pending:
        lowest = min(pending)
        ceiling = lowest - min_decrement
        if amount > ceiling:
            return BidEvaluation(
                False,
                f"Bid must be at least {_money(min_decrement)} lower than current lowest bid of "
                f"{_money(lowest)} (maximum {_money(ceiling)})",
                ceiling=ceiling,
            )
        return BidEvaluation(True, "Bid accepted", ceiling=ceiling)

    return BidEvaluation(True, "Bid accepted", ceiling=pricing.starting_bid)


def require_valid_bid(
    amount: float,
    pricing: PricingContext,
    pending_amounts: Iterable[float] = (),
    min_decrement: Optional[float] = None,
) -> BidEvaluation:
    """evaluate_bid, raising instead of returning a failed evaluation."""
    result = evaluate_bid(amount, pricing, pending_amounts, min_decrement)
    if result.accepted:
        return result
    if result.mismatch:
        raise AmountMismatchError(result.reason, expected=pricing.offer_price, received=amount)
    raise ValidationError(result.reason, details={"ceiling": result.ceiling} if result.ceiling is not None else None)
