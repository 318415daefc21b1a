"""
Domain events for the notification side channel.

Services emit events while they work; the route dispatches them only after
the core transaction has committed. Dispatch writes the in-app notification
rows in their own transaction and hands emails to background tasks, so a
failing notification can never undo a bid, payment or status change.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from freightfloo.core.config import settings
from freightfloo.models.notification import Notification
from freightfloo.models.user import User
from freightfloo.services.email import send_templated_email

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    event_type: str
    recipient_id: int
    title: str
    message: str
    shipment_id: Optional[int] = None
    bid_id: Optional[int] = None
    email_template: Optional[str] = None
    email_context: Dict[str, Any] = field(default_factory=dict)


def shipment_url(shipment_id: int) -> str:
    return f"{settings.BASE_URL}/shipment/{shipment_id}"


class EventBus:
    """Collects events for one request."""

    def __init__(self):
        self.events: List[DomainEvent] = []

    def emit(self, event_type: str, recipient_id: int, title: str, message: str, **kwargs) -> DomainEvent:
        event = DomainEvent(event_type=getattr(event_type, "value", event_type), recipient_id=recipient_id,
                            title=title, message=message, **kwargs)
        self.events.append(event)
        return event

    def dispatch(self, db: Session, background_tasks: Optional[BackgroundTasks] = None) -> int:
        """
        Persist notifications and schedule emails. Returns the number of
        notification rows written; never raises.
        """
        if not self.events:
            return 0
        events, self.events = self.events, []

        written = 0
        try:
            for event in events:
                db.add(Notification(
                    user_id=event.recipient_id,
                    type=event.event_type,
                    title=event.title,
                    message=event.message[:500],
                    shipment_id=event.shipment_id,
                    bid_id=event.bid_id,
                ))
            db.commit()
            written = len(events)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to store %d notification(s)", len(events))

        for event in events:
            if not event.email_template:
                continue
            try:
                recipient = db.get(User, event.recipient_id)
            except SQLAlchemyError:
                logger.exception("Could not load email recipient %s", event.recipient_id)
                continue
            if not recipient or not recipient.email:
                continue
            if background_tasks is not None:
                background_tasks.add_task(_send_event_email, recipient.email, event)
            else:
                _send_event_email(recipient.email, event)
        return written


def _send_event_email(to_email: str, event: DomainEvent) -> None:
    try:
        result = send_templated_email(to_email, event.email_template, event.email_context)
    except Exception:
        logger.exception("Email for %s event could not be rendered or sent", event.event_type)
        return
    if result.get("email") == "error":
        logger.warning("Email for %s event to user %s failed", event.event_type, event.recipient_id)
