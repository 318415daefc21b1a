from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from freightfloo.core.deps import get_db, require_capability, require_user
from freightfloo.models.user import User
from freightfloo.schemas.bid import BidCreate, BidDecision, BidResponse
from freightfloo.services import bids
from freightfloo.services.events import EventBus

router = APIRouter(prefix="/api", tags=["bids"])


@router.post("/bids", response_model=BidResponse, status_code=201)
def submit_bid(
    payload: BidCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    events = EventBus()
    bid = bids.submit_bid(db, events, user, payload.shipment_id, payload.amount, payload.message)
    events.dispatch(db, background_tasks)
    return bid


@router.patch("/bids/{bid_id}", response_model=BidResponse)
def decide_bid(
    bid_id: int,
    payload: BidDecision,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    events = EventBus()
    bid = bids.decide_bid(db, events, user, bid_id, payload.status)
    events.dispatch(db, background_tasks)
    return bid


@router.get("/user/bids", response_model=List[BidResponse])
def my_bids(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("can_bid")),
):
    return bids.list_bids_for_carrier(db, user, status)
