from .bootstrap_db import Base
from .user import User
from .shipment import Shipment, Bid, Payment, Refund
from .notification import Notification
from .fleet import Truck, Driver, Trip
from .review import Review
from .document import Document

__all__ = [
    "Base",
    "User",
    "Shipment",
    "Bid",
    "Payment",
    "Refund",
    "Notification",
    "Truck",
    "Driver",
    "Trip",
    "Review",
    "Document",
]
