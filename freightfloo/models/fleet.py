"""
Carrier fleet records: trucks, drivers and the trips that pair them.
Plain CRUD rows; the expiry dates feed the "expiring soon" filters.
"""
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Boolean, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .bootstrap_db import Base
from .enums import DriverStatus, TripStatus, TruckStatus


class Truck(Base):
    __tablename__ = "trucks"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    make = Column(String, nullable=False)
    model = Column(String, nullable=False)
    year = Column(Integer, nullable=False)
    vin = Column(String, unique=True, nullable=False)
    license_plate = Column(String, unique=True, nullable=False)
    truck_type = Column(String, nullable=False)  # equipment id, e.g. dry-van
    capacity = Column(Float, nullable=False)
    max_weight = Column(Float, nullable=False)
    length = Column(Float, nullable=True)
    width = Column(Float, nullable=True)
    height = Column(Float, nullable=True)
    fuel_type = Column(String, nullable=False)
    status = Column(String(20), nullable=False, default=TruckStatus.AVAILABLE.value)
    location = Column(String, nullable=True)
    mileage = Column(Integer, nullable=False, default=0)

    last_maintenance = Column(Date, nullable=True)
    next_maintenance = Column(Date, nullable=True)
    insurance_expiry = Column(Date, nullable=True)
    registration_expiry = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True)
    carrier_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    phone = Column(String, nullable=False)
    license_number = Column(String, unique=True, nullable=False)
    license_class = Column(String(5), nullable=False)  # A, B, C
    license_expiry = Column(Date, nullable=False)
    medical_card_expiry = Column(Date, nullable=False)
    twic_card_expiry = Column(Date, nullable=True)

    hazmat_endorsement = Column(Boolean, nullable=False, default=False)
    tanker_endorsement = Column(Boolean, nullable=False, default=False)
    doubles_triples_endorsement = Column(Boolean, nullable=False, default=False)
    passenger_endorsement = Column(Boolean, nullable=False, default=False)
    school_bus_endorsement = Column(Boolean, nullable=False, default=False)

    status = Column(String(20), nullable=False, default=DriverStatus.AVAILABLE.value)
    current_location = Column(String, nullable=True)
    hours_of_service = Column(Integer, nullable=False, default=0)
    max_hours_of_service = Column(Integer, nullable=False, default=70)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Trip(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    carrier_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    trip_number = Column(String, unique=True, nullable=False)
    status = Column(String(20), nullable=False, default=TripStatus.PLANNED.value)

    start_location = Column(String, nullable=False)
    end_location = Column(String, nullable=False)
    planned_start_time = Column(DateTime(timezone=True), nullable=False)
    planned_end_time = Column(DateTime(timezone=True), nullable=False)
    actual_start_time = Column(DateTime(timezone=True), nullable=True)
    actual_end_time = Column(DateTime(timezone=True), nullable=True)
    distance = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    truck_id = Column(Integer, ForeignKey("trucks.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=False)
    shipment_id = Column(Integer, ForeignKey("shipments.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    truck = relationship("Truck")
    driver = relationship("Driver")
    shipment = relationship("Shipment")
