"""
Status vocabularies. Stored as plain String columns (no database enums);
the Python enums are the single source of allowed values.
"""
import enum


class Role(str, enum.Enum):
    SHIPPER = "SHIPPER"
    CARRIER = "CARRIER"
    ADMIN = "ADMIN"
    BOTH = "BOTH"


class UserType(str, enum.Enum):
    INDIVIDUAL = "INDIVIDUAL"
    COMPANY = "COMPANY"


class PricingType(str, enum.Enum):
    AUCTION = "auction"  # shipper sets a ceiling, carriers bid downward
    OFFER = "offer"      # fixed price, first carrier to accept takes it


class ShipmentStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"        # open for bidding
    PENDING = "PENDING"      # bid accepted, awaiting payment
    ASSIGNED = "ASSIGNED"    # paid, carrier moving the freight
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, enum.Enum):
    NONE = "NONE"
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class TrackingStatus(str, enum.Enum):
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"


class BidStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class RefundStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class RefundReason(str, enum.Enum):
    CANCELLED = "CANCELLED"
    DISPUTE = "DISPUTE"
    DUPLICATE = "DUPLICATE"
    DAMAGED = "DAMAGED"
    OTHER = "OTHER"


class NotificationType(str, enum.Enum):
    NEW_BID = "NEW_BID"
    BID_ACCEPTED = "BID_ACCEPTED"
    BID_REJECTED = "BID_REJECTED"
    OFFER_ACCEPTED = "OFFER_ACCEPTED"
    PAYMENT_COMPLETED = "PAYMENT_COMPLETED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    SHIPMENT_ASSIGNED = "SHIPMENT_ASSIGNED"
    SHIPMENT_STATUS_UPDATE = "SHIPMENT_STATUS_UPDATE"
    SHIPMENT_CANCELLED = "SHIPMENT_CANCELLED"
    REFUND_PROCESSED = "REFUND_PROCESSED"
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED"
    NEW_REVIEW = "NEW_REVIEW"


class TruckStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    IN_USE = "IN_USE"
    MAINTENANCE = "MAINTENANCE"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


class DriverStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    ON_DUTY = "ON_DUTY"
    DRIVING = "DRIVING"
    OFF_DUTY = "OFF_DUTY"
    INACTIVE = "INACTIVE"


class TripStatus(str, enum.Enum):
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class DocumentCategory(str, enum.Enum):
    BOL = "BOL"
    POD = "POD"
    INVOICE = "INVOICE"
    INSURANCE = "INSURANCE"
    PERMIT = "PERMIT"
    CONTRACT = "CONTRACT"
    OTHER = "OTHER"
