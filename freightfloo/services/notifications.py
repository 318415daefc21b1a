"""In-app notification inbox. Rows are written by EventBus.dispatch."""
from typing import List, Tuple

from sqlalchemy.orm import Session

from freightfloo.core.errors import NotFoundError
from freightfloo.models.notification import Notification
from freightfloo.models.user import User


def _own(db: Session, user: User, notification_id: int) -> Notification:
    notification = db.get(Notification, notification_id)
    if not notification or notification.user_id != user.id:
        raise NotFoundError("Notification not found")
    return notification


def unread_count(db: Session, user: User) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user.id, Notification.is_read.is_(False))
        .count()
    )


def list_notifications(
    db: Session, user: User, unread_only: bool = False, page: int = 1, limit: int = 20
) -> Tuple[List[Notification], int]:
    """Returns (page of notifications, unread count)."""
    query = db.query(Notification).filter(Notification.user_id == user.id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    items = query.order_by(Notification.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return items, unread_count(db, user)


def mark_read(db: Session, user: User, notification_id: int) -> Notification:
    notification = _own(db, user, notification_id)
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, user: User) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user.id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return updated


def delete_notification(db: Session, user: User, notification_id: int) -> None:
    db.delete(_own(db, user, notification_id))
    db.commit()
