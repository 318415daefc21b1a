from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from freightfloo.models.enums import DriverStatus, TripStatus, TruckStatus


class TruckCreate(BaseModel):
    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: int = Field(ge=1950, le=2100)
    vin: str = Field(min_length=1)
    license_plate: str = Field(min_length=1)
    truck_type: str
    capacity: float = Field(gt=0)
    max_weight: float = Field(gt=0)
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    fuel_type: str = Field(min_length=1)
    status: TruckStatus = TruckStatus.AVAILABLE
    location: Optional[str] = None
    mileage: int = Field(default=0, ge=0)
    last_maintenance: Optional[date] = None
    next_maintenance: Optional[date] = None
    insurance_expiry: Optional[date] = None
    registration_expiry: Optional[date] = None


class TruckUpdate(BaseModel):
    status: Optional[TruckStatus] = None
    location: Optional[str] = None
    mileage: Optional[int] = Field(default=None, ge=0)
    last_maintenance: Optional[date] = None
    next_maintenance: Optional[date] = None
    insurance_expiry: Optional[date] = None
    registration_expiry: Optional[date] = None


class TruckResponse(TruckCreate):
    id: int
    owner_id: int
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DriverCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str = Field(min_length=1)
    license_number: str = Field(min_length=1)
    license_class: str = Field(min_length=1, max_length=5)
    license_expiry: date
    medical_card_expiry: date
    twic_card_expiry: Optional[date] = None
    hazmat_endorsement: bool = False
    tanker_endorsement: bool = False
    doubles_triples_endorsement: bool = False
    passenger_endorsement: bool = False
    school_bus_endorsement: bool = False
    status: DriverStatus = DriverStatus.AVAILABLE
    current_location: Optional[str] = None
    hours_of_service: int = Field(default=0, ge=0)
    max_hours_of_service: int = Field(default=70, gt=0)


class DriverUpdate(BaseModel):
    phone: Optional[str] = None
    status: Optional[DriverStatus] = None
    current_location: Optional[str] = None
    hours_of_service: Optional[int] = Field(default=None, ge=0)
    license_expiry: Optional[date] = None
    medical_card_expiry: Optional[date] = None
    twic_card_expiry: Optional[date] = None


class DriverResponse(DriverCreate):
    id: int
    carrier_id: int
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TripCreate(BaseModel):
    trip_number: str = Field(min_length=1)
    start_location: str = Field(min_length=1)
    end_location: str = Field(min_length=1)
    planned_start_time: datetime
    planned_end_time: datetime
    truck_id: int
    driver_id: int
    shipment_id: Optional[int] = None
    status: TripStatus = TripStatus.PLANNED
    distance: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class TripUpdate(BaseModel):
    status: Optional[TripStatus] = None
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    notes: Optional[str] = None


class TripResponse(BaseModel):
    id: int
    carrier_id: int
    trip_number: str
    status: str
    start_location: str
    end_location: str
    planned_start_time: datetime
    planned_end_time: datetime
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    truck_id: int
    driver_id: int
    shipment_id: Optional[int] = None
    distance: Optional[float] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
