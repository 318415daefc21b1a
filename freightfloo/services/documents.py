"""Document metadata. Files live in external storage; only the URL is kept here."""
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from freightfloo.core.errors import AuthorizationError, NotFoundError
from freightfloo.models.document import Document
from freightfloo.models.enums import NotificationType
from freightfloo.models.fleet import Trip
from freightfloo.models.shipment import Shipment
from freightfloo.models.user import User
from freightfloo.schemas.document import DocumentCreate
from freightfloo.services.events import EventBus
from freightfloo.services.shipments import is_participant

logger = logging.getLogger(__name__)


def list_documents(
    db: Session,
    user: User,
    shipment_id: Optional[int] = None,
    trip_id: Optional[int] = None,
    category: Optional[str] = None,
) -> List[Document]:
    """The caller's own documents plus public ones."""
    query = db.query(Document).filter(or_(Document.uploaded_by_id == user.id, Document.is_public.is_(True)))
    if shipment_id:
        query = query.filter(Document.shipment_id == shipment_id)
    if trip_id:
        query = query.filter(Document.trip_id == trip_id)
    if category:
        query = query.filter(Document.category == category)
    return query.order_by(Document.id.desc()).all()


def create_document(db: Session, events: EventBus, user: User, payload: DocumentCreate) -> Document:
    shipment = None
    if payload.shipment_id:
        shipment = db.get(Shipment, payload.shipment_id)
        if not shipment:
            raise NotFoundError("Shipment not found")
        if not is_participant(shipment, user):
            raise AuthorizationError("You can only attach documents to your own shipments")
    if payload.trip_id:
        trip = db.get(Trip, payload.trip_id)
        if not trip or trip.carrier_id != user.id:
            raise NotFoundError("Trip not found")

    data = payload.model_dump()
    data["category"] = payload.category.value
    document = Document(uploaded_by_id=user.id, **data)
    db.add(document)
    db.commit()
    db.refresh(document)
    logger.info("Document %s (%s) uploaded by user %s", document.id, document.category, user.id)

    if shipment:
        accepted = shipment.accepted_bid
        counterparty = shipment.user_id if user.id != shipment.user_id else (accepted.user_id if accepted else None)
        if counterparty:
            events.emit(
                NotificationType.DOCUMENT_UPLOADED, counterparty, "New Document",
                f"A {document.category} document \"{document.title}\" was added to \"{shipment.title}\".",
                shipment_id=shipment.id,
            )
    return document


def delete_document(db: Session, user: User, document_id: int) -> None:
    document = db.get(Document, document_id)
    if not document:
        raise NotFoundError("Document not found")
    if document.uploaded_by_id != user.id:
        raise AuthorizationError("You can only delete documents you uploaded")
    db.delete(document)
    db.commit()
