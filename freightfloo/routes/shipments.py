import math
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from freightfloo.core.deps import current_user, get_db, require_capability, require_user
from freightfloo.models.enums import ShipmentStatus
from freightfloo.models.user import User
from freightfloo.schemas.bid import BidResponse
from freightfloo.schemas.document import DocumentResponse
from freightfloo.schemas.shipment import (
    ShipmentCreate,
    ShipmentDetail,
    ShipmentList,
    ShipmentResponse,
    ShipmentUpdate,
    StatusUpdate,
    TrackingResponse,
)
from freightfloo.services import bids, documents, shipments
from freightfloo.services.events import EventBus

router = APIRouter(prefix="/api/shipments", tags=["shipments"])


@router.get("", response_model=ShipmentList)
def list_shipments(
    status: str = Query(ShipmentStatus.ACTIVE.value),
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, total = shipments.list_shipments(db, status, origin, destination, category, page, limit)
    return {
        "shipments": items,
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


@router.post("", response_model=ShipmentResponse, status_code=201)
def create_shipment(
    payload: ShipmentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("can_post_shipments")),
):
    return shipments.create_shipment(db, user, payload)


@router.get("/mine", response_model=List[ShipmentResponse])
def my_shipments(status: Optional[str] = None, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return shipments.list_user_shipments(db, user, status)


@router.get("/{shipment_id}", response_model=ShipmentDetail)
def shipment_detail(
    shipment_id: int,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(current_user),
):
    shipment = shipments.get_shipment_or_404(db, shipment_id)
    detail = ShipmentDetail.model_validate(shipment)
    if user:
        docs = documents.list_documents(db, user, shipment_id=shipment_id)
        detail.documents = [DocumentResponse.model_validate(d) for d in docs]
    if not user or not shipments.is_participant(shipment, user):
        # payment records are for the two parties only
        detail.payments = []
    return detail


@router.patch("/{shipment_id}", response_model=ShipmentResponse)
def update_shipment(
    shipment_id: int,
    payload: ShipmentUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    return shipments.update_shipment(db, user, shipment_id, payload)


@router.post("/{shipment_id}/cancel", response_model=ShipmentResponse)
def cancel_shipment(
    shipment_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    events = EventBus()
    shipment = shipments.cancel_shipment(db, events, user, shipment_id)
    events.dispatch(db, background_tasks)
    return shipment


@router.patch("/{shipment_id}/status", response_model=ShipmentResponse)
def update_status(
    shipment_id: int,
    payload: StatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    events = EventBus()
    shipment = shipments.update_tracking_status(
        db, events, user, shipment_id, payload.status,
        pod_received=payload.pod_received, pod_image=payload.pod_image, pod_notes=payload.pod_notes,
    )
    events.dispatch(db, background_tasks)
    return shipment


@router.get("/{shipment_id}/tracking", response_model=TrackingResponse)
def tracking(shipment_id: int, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return shipments.tracking_view(db, user, shipment_id)


@router.get("/{shipment_id}/bids", response_model=List[BidResponse])
def shipment_bids(shipment_id: int, db: Session = Depends(get_db)):
    shipments.get_shipment_or_404(db, shipment_id)
    return bids.list_bids_for_shipment(db, shipment_id)
