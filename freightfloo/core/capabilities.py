"""
Role capabilities: one object per role, resolved once at the request boundary.
Routes ask "can this caller bid?" instead of branching on role strings.
"""
from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from freightfloo.models.enums import BidStatus, PaymentStatus, Role, ShipmentStatus
from freightfloo.models.fleet import Driver, Trip, Truck
from freightfloo.models.shipment import Bid, Payment, Shipment
from freightfloo.models.user import User


def _shipper_stats(db: Session, user: User) -> Dict[str, Any]:
    rows = (
        db.query(Shipment.status, func.count(Shipment.id))
        .filter(Shipment.user_id == user.id)
        .group_by(Shipment.status)
        .all()
    )
    by_status = {s.value: 0 for s in ShipmentStatus}
    by_status.update({status: count for status, count in rows})
    total_spent = (
        db.query(func.coalesce(func.sum(Payment.amount), 0.0))
        .filter(Payment.user_id == user.id, Payment.status == PaymentStatus.COMPLETED.value)
        .scalar()
    )
    return {
        "shipments_total": sum(by_status.values()),
        "shipments_by_status": by_status,
        "awaiting_payment": by_status[ShipmentStatus.PENDING.value],
        "total_spent": float(total_spent or 0.0),
    }


def _carrier_stats(db: Session, user: User) -> Dict[str, Any]:
    rows = (
        db.query(Bid.status, func.count(Bid.id))
        .filter(Bid.user_id == user.id)
        .group_by(Bid.status)
        .all()
    )
    by_status = {s.value: 0 for s in BidStatus}
    by_status.update({status: count for status, count in rows})
    won = (
        db.query(Shipment)
        .join(Bid, Bid.shipment_id == Shipment.id)
        .filter(Bid.user_id == user.id, Bid.status == BidStatus.ACCEPTED.value)
    )
    earnings = (
        db.query(func.coalesce(func.sum(Payment.amount), 0.0))
        .select_from(Payment)
        .join(Bid, Payment.bid_id == Bid.id)
        .filter(Bid.user_id == user.id, Payment.status == PaymentStatus.COMPLETED.value)
        .scalar()
    )
    return {
        "bids_total": sum(by_status.values()),
        "bids_by_status": by_status,
        "active_loads": won.filter(Shipment.status == ShipmentStatus.ASSIGNED.value).count(),
        "completed_loads": won.filter(Shipment.status == ShipmentStatus.COMPLETED.value).count(),
        "earnings": float(earnings or 0.0),
        "trucks": db.query(Truck).filter(Truck.owner_id == user.id).count(),
        "drivers": db.query(Driver).filter(Driver.carrier_id == user.id).count(),
        "trips": db.query(Trip).filter(Trip.carrier_id == user.id).count(),
    }


class RoleCapabilities:
    label = "Unknown"
    can_post_shipments = False
    can_bid = False
    can_manage_fleet = False
    is_admin = False

    def dashboard_stats(self, db: Session, user: User) -> Dict[str, Any]:
        return {"role": user.role}


class ShipperCapabilities(RoleCapabilities):
    label = "Shipper"
    can_post_shipments = True

    def dashboard_stats(self, db: Session, user: User) -> Dict[str, Any]:
        return {"role": user.role, "shipper": _shipper_stats(db, user)}


class CarrierCapabilities(RoleCapabilities):
    label = "Carrier"
    can_bid = True
    can_manage_fleet = True

    def dashboard_stats(self, db: Session, user: User) -> Dict[str, Any]:
        return {"role": user.role, "carrier": _carrier_stats(db, user)}


class DualRoleCapabilities(RoleCapabilities):
    label = "Shipper/carrier"
    can_post_shipments = True
    can_bid = True
    can_manage_fleet = True

    def dashboard_stats(self, db: Session, user: User) -> Dict[str, Any]:
        return {
            "role": user.role,
            "shipper": _shipper_stats(db, user),
            "carrier": _carrier_stats(db, user),
        }


class AdminCapabilities(RoleCapabilities):
    label = "Admin"
    is_admin = True

    def dashboard_stats(self, db: Session, user: User) -> Dict[str, Any]:
        users = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
        shipments = dict(db.query(Shipment.status, func.count(Shipment.id)).group_by(Shipment.status).all())
        volume = (
            db.query(func.coalesce(func.sum(Payment.amount), 0.0))
            .filter(Payment.status == PaymentStatus.COMPLETED.value)
            .scalar()
        )
        return {
            "role": user.role,
            "users_by_role": users,
            "shipments_by_status": shipments,
            "payment_volume": float(volume or 0.0),
        }


_CAPABILITIES = {
    Role.SHIPPER.value: ShipperCapabilities(),
    Role.CARRIER.value: CarrierCapabilities(),
    Role.BOTH.value: DualRoleCapabilities(),
    Role.ADMIN.value: AdminCapabilities(),
}


def capabilities_for(role: str) -> RoleCapabilities:
    return _CAPABILITIES.get(role, RoleCapabilities())
