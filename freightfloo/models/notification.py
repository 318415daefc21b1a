from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func

from .bootstrap_db import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(50), nullable=False)  # e.g. NEW_BID, SHIPMENT_ASSIGNED
    title = Column(String(200), nullable=False)
    message = Column(String(500), nullable=False)
    shipment_id = Column(Integer, ForeignKey("shipments.id"), nullable=True, index=True)
    bid_id = Column(Integer, ForeignKey("bids.id"), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
