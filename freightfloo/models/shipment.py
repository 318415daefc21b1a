"""
Shipment, Bid, Payment and Refund: the records behind the bidding and
payment lifecycle.
"""
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Text, Boolean, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .bootstrap_db import Base
from .enums import BidStatus, PaymentStatus, PricingType, RefundStatus, ShipmentStatus


class Shipment(Base):
    __tablename__ = "shipments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # shipper

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    origin = Column(String, nullable=False)
    destination = Column(String, nullable=False)
    distance = Column(Float, nullable=True)  # miles
    weight = Column(Float, nullable=True)    # lbs
    dimensions = Column(String, nullable=True)
    category = Column(String, nullable=True)
    pickup_date = Column(DateTime(timezone=True), nullable=False)
    delivery_date = Column(DateTime(timezone=True), nullable=True)

    # Fixed at creation
    pricing_type = Column(String(10), nullable=False, default=PricingType.AUCTION.value)
    starting_bid = Column(Float, nullable=True)
    offer_price = Column(Float, nullable=True)

    status = Column(String(20), nullable=False, default=ShipmentStatus.ACTIVE.value, index=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.NONE.value)

    # Tracking sub-state, only meaningful while status == ASSIGNED
    current_status = Column(String(20), nullable=True)
    pickup_time = Column(DateTime(timezone=True), nullable=True)
    transit_time = Column(DateTime(timezone=True), nullable=True)
    delivery_time = Column(DateTime(timezone=True), nullable=True)
    completion_time = Column(DateTime(timezone=True), nullable=True)

    # Proof of delivery
    pod_received = Column(Boolean, nullable=False, default=False)
    pod_image = Column(String, nullable=True)
    pod_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    owner = relationship("User", foreign_keys=[user_id])
    bids = relationship("Bid", back_populates="shipment", order_by="Bid.id.desc()")
    payments = relationship("Payment", back_populates="shipment", order_by="Payment.id.desc()")

    @property
    def accepted_bid(self):
        return next((b for b in self.bids if b.status == BidStatus.ACCEPTED.value), None)

    @property
    def bid_count(self) -> int:
        return len(self.bids)

    @property
    def lowest_bid(self):
        pending = [b.amount for b in self.bids if b.status == BidStatus.PENDING.value]
        return min(pending) if pending else None


class Bid(Base):
    __tablename__ = "bids"

    id = Column(Integer, primary_key=True, index=True)
    shipment_id = Column(Integer, ForeignKey("shipments.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # carrier

    amount = Column(Float, nullable=False)
    message = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=BidStatus.PENDING.value, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    shipment = relationship("Shipment", back_populates="bids")
    carrier = relationship("User", foreign_keys=[user_id])


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    shipment_id = Column(Integer, ForeignKey("shipments.id"), nullable=False, index=True)
    bid_id = Column(Integer, ForeignKey("bids.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # payer (shipper)

    amount = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    stripe_payment_intent_id = Column(String, nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    shipment = relationship("Shipment", back_populates="payments")
    bid = relationship("Bid")
    refunds = relationship("Refund", back_populates="payment", order_by="Refund.id.desc()")


class Refund(Base):
    __tablename__ = "refunds"

    id = Column(Integer, primary_key=True, index=True)
    payment_id = Column(Integer, ForeignKey("payments.id"), nullable=False, index=True)
    requested_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    amount = Column(Float, nullable=False)
    reason = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=RefundStatus.PENDING.value)
    stripe_refund_id = Column(String, nullable=True)
    details = Column(JSON, nullable=True)  # original amount, refund percentage
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    payment = relationship("Payment", back_populates="refunds")
