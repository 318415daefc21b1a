"""
Carrier fleet records. Every query is scoped to the calling carrier; a
record owned by someone else is reported as not found.
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from freightfloo.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from freightfloo.models.enums import TripStatus
from freightfloo.models.fleet import Driver, Trip, Truck
from freightfloo.models.shipment import Shipment
from freightfloo.models.user import User
from freightfloo.schemas.fleet import DriverCreate, DriverUpdate, TripCreate, TripUpdate, TruckCreate, TruckUpdate
from freightfloo.services.equipment import get_equipment_type

logger = logging.getLogger(__name__)


def _cutoff(days: int) -> date:
    return date.today() + timedelta(days=days)


def _enum_values(data: dict) -> dict:
    return {k: getattr(v, "value", v) for k, v in data.items()}


# --- trucks ---

def list_trucks(
    db: Session, carrier: User, status: Optional[str] = None, expiring_within_days: Optional[int] = None
) -> List[Truck]:
    query = db.query(Truck).filter(Truck.owner_id == carrier.id)
    if status:
        query = query.filter(Truck.status == status)
    if expiring_within_days is not None:
        cutoff = _cutoff(expiring_within_days)
        query = query.filter(or_(Truck.insurance_expiry <= cutoff, Truck.registration_expiry <= cutoff))
    return query.order_by(Truck.id.desc()).all()


def get_truck(db: Session, carrier: User, truck_id: int) -> Truck:
    truck = db.get(Truck, truck_id)
    if not truck or truck.owner_id != carrier.id:
        raise NotFoundError("Truck not found")
    return truck


def create_truck(db: Session, carrier: User, payload: TruckCreate) -> Truck:
    if not get_equipment_type(payload.truck_type):
        raise ValidationError(f"Unknown truck type: {payload.truck_type}")
    duplicate = (
        db.query(Truck)
        .filter(or_(Truck.vin == payload.vin, Truck.license_plate == payload.license_plate))
        .first()
    )
    if duplicate:
        raise ConflictError("Truck with this VIN or license plate already exists")
    truck = Truck(owner_id=carrier.id, **_enum_values(payload.model_dump()))
    db.add(truck)
    db.commit()
    db.refresh(truck)
    logger.info("Truck %s added by carrier %s", truck.id, carrier.id)
    return truck


def update_truck(db: Session, carrier: User, truck_id: int, payload: TruckUpdate) -> Truck:
    truck = get_truck(db, carrier, truck_id)
    for key, value in _enum_values(payload.model_dump(exclude_unset=True)).items():
        setattr(truck, key, value)
    db.commit()
    db.refresh(truck)
    return truck


def delete_truck(db: Session, carrier: User, truck_id: int) -> None:
    truck = get_truck(db, carrier, truck_id)
    if db.query(Trip).filter(Trip.truck_id == truck.id).first():
        raise ConflictError("Truck is used by a trip and cannot be deleted")
    db.delete(truck)
    db.commit()


# --- drivers ---

def list_drivers(
    db: Session, carrier: User, status: Optional[str] = None, expiring_within_days: Optional[int] = None
) -> List[Driver]:
    query = db.query(Driver).filter(Driver.carrier_id == carrier.id)
    if status:
        query = query.filter(Driver.status == status)
    if expiring_within_days is not None:
        cutoff = _cutoff(expiring_within_days)
        query = query.filter(or_(Driver.license_expiry <= cutoff, Driver.medical_card_expiry <= cutoff))
    return query.order_by(Driver.id.desc()).all()


def get_driver(db: Session, carrier: User, driver_id: int) -> Driver:
    driver = db.get(Driver, driver_id)
    if not driver or driver.carrier_id != carrier.id:
        raise NotFoundError("Driver not found")
    return driver


def create_driver(db: Session, carrier: User, payload: DriverCreate) -> Driver:
    duplicate = (
        db.query(Driver)
        .filter(or_(Driver.email == payload.email, Driver.license_number == payload.license_number))
        .first()
    )
    if duplicate:
        raise ConflictError("Driver with this email or license number already exists")
    if payload.hours_of_service > payload.max_hours_of_service:
        raise ValidationError("Hours of service cannot exceed the maximum")
    driver = Driver(carrier_id=carrier.id, **_enum_values(payload.model_dump()))
    db.add(driver)
    db.commit()
    db.refresh(driver)
    logger.info("Driver %s added by carrier %s", driver.id, carrier.id)
    return driver


def update_driver(db: Session, carrier: User, driver_id: int, payload: DriverUpdate) -> Driver:
    driver = get_driver(db, carrier, driver_id)
    for key, value in _enum_values(payload.model_dump(exclude_unset=True)).items():
        setattr(driver, key, value)
    if driver.hours_of_service > driver.max_hours_of_service:
        db.rollback()
        raise ValidationError("Hours of service cannot exceed the maximum")
    db.commit()
    db.refresh(driver)
    return driver


def delete_driver(db: Session, carrier: User, driver_id: int) -> None:
    driver = get_driver(db, carrier, driver_id)
    if db.query(Trip).filter(Trip.driver_id == driver.id).first():
        raise ConflictError("Driver is assigned to a trip and cannot be deleted")
    db.delete(driver)
    db.commit()


# --- trips ---

def list_trips(db: Session, carrier: User, status: Optional[str] = None) -> List[Trip]:
    query = db.query(Trip).filter(Trip.carrier_id == carrier.id)
    if status:
        query = query.filter(Trip.status == status)
    return query.order_by(Trip.planned_start_time.desc()).all()


def get_trip(db: Session, carrier: User, trip_id: int) -> Trip:
    trip = db.get(Trip, trip_id)
    if not trip or trip.carrier_id != carrier.id:
        raise NotFoundError("Trip not found")
    return trip


def create_trip(db: Session, carrier: User, payload: TripCreate) -> Trip:
    if payload.planned_end_time < payload.planned_start_time:
        raise ValidationError("Planned end time cannot be before planned start time")
    truck = db.get(Truck, payload.truck_id)
    if not truck or truck.owner_id != carrier.id:
        raise ValidationError("Truck not found or does not belong to you")
    driver = db.get(Driver, payload.driver_id)
    if not driver or driver.carrier_id != carrier.id:
        raise ValidationError("Driver not found or does not belong to you")
    if payload.shipment_id:
        shipment = db.get(Shipment, payload.shipment_id)
        if not shipment:
            raise NotFoundError("Shipment not found")
        accepted = shipment.accepted_bid
        if not accepted or accepted.user_id != carrier.id:
            raise AuthorizationError("Trips can only carry shipments assigned to you")
    if db.query(Trip).filter(Trip.trip_number == payload.trip_number).first():
        raise ConflictError("Trip with this number already exists")

    trip = Trip(carrier_id=carrier.id, **_enum_values(payload.model_dump()))
    db.add(trip)
    db.commit()
    db.refresh(trip)
    logger.info("Trip %s (%s) planned by carrier %s", trip.id, trip.trip_number, carrier.id)
    return trip


def update_trip(db: Session, carrier: User, trip_id: int, payload: TripUpdate) -> Trip:
    trip = get_trip(db, carrier, trip_id)
    changes = _enum_values(payload.model_dump(exclude_unset=True))
    now = datetime.now(timezone.utc)
    new_status = changes.get("status")
    if new_status == TripStatus.IN_PROGRESS.value and not (changes.get("actual_start_time") or trip.actual_start_time):
        changes["actual_start_time"] = now
    if new_status == TripStatus.COMPLETED.value and not (changes.get("actual_end_time") or trip.actual_end_time):
        changes["actual_end_time"] = now
    for key, value in changes.items():
        setattr(trip, key, value)
    db.commit()
    db.refresh(trip)
    if new_status:
        logger.info("Trip %s is now %s", trip.id, new_status)
    return trip
