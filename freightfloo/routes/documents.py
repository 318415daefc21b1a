from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from freightfloo.core.deps import get_db, require_user
from freightfloo.models.user import User
from freightfloo.schemas.document import DocumentCreate, DocumentResponse
from freightfloo.services import documents
from freightfloo.services.events import EventBus

router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.get("", response_model=List[DocumentResponse])
def list_documents(
    shipment_id: Optional[int] = None,
    trip_id: Optional[int] = None,
    category: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    return documents.list_documents(db, user, shipment_id, trip_id, category)


@router.post("", response_model=DocumentResponse, status_code=201)
def create_document(
    payload: DocumentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    events = EventBus()
    document = documents.create_document(db, events, user, payload)
    events.dispatch(db, background_tasks)
    return document


@router.delete("/{document_id}", status_code=204)
def delete_document(document_id: int, db: Session = Depends(get_db), user: User = Depends(require_user)):
    documents.delete_document(db, user, document_id)
