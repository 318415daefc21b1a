"""Trucks, drivers and trips for carrier accounts."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from freightfloo.core.deps import get_db, require_capability
from freightfloo.models.user import User
from freightfloo.schemas.fleet import (
    DriverCreate,
    DriverResponse,
    DriverUpdate,
    TripCreate,
    TripResponse,
    TripUpdate,
    TruckCreate,
    TruckResponse,
    TruckUpdate,
)
from freightfloo.services import fleet

router = APIRouter(prefix="/api", tags=["fleet"])

fleet_owner = require_capability("can_manage_fleet")


@router.get("/trucks", response_model=List[TruckResponse])
def list_trucks(
    status: Optional[str] = None,
    expiring_within_days: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
    user: User = Depends(fleet_owner),
):
    return fleet.list_trucks(db, user, status, expiring_within_days)


@router.post("/trucks", response_model=TruckResponse, status_code=201)
def create_truck(payload: TruckCreate, db: Session = Depends(get_db), user: User = Depends(fleet_owner)):
    return fleet.create_truck(db, user, payload)


@router.get("/trucks/{truck_id}", response_model=TruckResponse)
def get_truck(truck_id: int, db: Session = Depends(get_db), user: User = Depends(fleet_owner)):
    return fleet.get_truck(db, user, truck_id)


@router.patch("/trucks/{truck_id}", response_model=TruckResponse)
def update_truck(truck_id: int, payload: TruckUpdate, db: Session = Depends(get_db), user: User = Depends(fleet_owner)):
    return fleet.update_truck(db, user, truck_id, payload)


@router.delete("/trucks/{truck_id}", status_code=204)
def delete_truck(truck_id: int, db: Session = Depends(get_db), user: User = Depends(fleet_owner)):
    fleet.delete_truck(db, user, truck_id)


@router.get("/drivers", response_model=List[DriverResponse])
def list_drivers(
    status: Optional[str] = None,
    expiring_within_days: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
    user: User = Depends(fleet_owner),
):
    return fleet.list_drivers(db, user, status, expiring_within_days)


@router.post("/drivers", response_model=DriverResponse, status_code=201)
def create_driver(payload: DriverCreate, db: Session = Depends(get_db), user: User = Depends(fleet_owner)):
    return fleet.create_driver(db, user, payload)


@router.get("/drivers/{driver_id}", response_model=DriverResponse)
def get_driver(driver_id: int, db: Session = Depends(get_db), user: User = Depends(fleet_owner)):
    return fleet.get_driver(db, user, driver_id)


@router.patch("/drivers/{driver_id}", response_model=DriverResponse)
def update_driver(
    driver_id: int, payload: DriverUpdate, db: Session = Depends(get_db), user: User = Depends(fleet_owner)
):
    return fleet.update_driver(db, user, driver_id, payload)


@router.delete("/drivers/{driver_id}", status_code=204)
def delete_driver(driver_id: int, db: Session = Depends(get_db), user: User = Depends(fleet_owner)):
    fleet.delete_driver(db, user, driver_id)


@router.get("/trips", response_model=List[TripResponse])
def list_trips(status: Optional[str] = None, db: Session = Depends(get_db), user: User = Depends(fleet_owner)):
    return fleet.list_trips(db, user, status)


@router.post("/trips", response_model=TripResponse, status_code=201)
def create_trip(payload: TripCreate, db: Session = Depends(get_db), user: User = Depends(fleet_owner)):
    return fleet.create_trip(db, user, payload)


@router.get("/trips/{trip_id}", response_model=TripResponse)
def get_trip(trip_id: int, db: Session = Depends(get_db), user: User = Depends(fleet_owner)):
    return fleet.get_trip(db, user, trip_id)


@router.patch("/trips/{trip_id}", response_model=TripResponse)
def update_trip(trip_id: int, payload: TripUpdate, db: Session = Depends(get_db), user: User = Depends(fleet_owner)):
    return fleet.update_trip(db, user, trip_id, payload)
