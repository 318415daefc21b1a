from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from freightfloo.core.deps import get_db, require_user
from freightfloo.models.user import User
from freightfloo.schemas.notification import NotificationList, NotificationResponse
from freightfloo.services import notifications

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
def list_notifications(
    unread_only: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    items, unread = notifications.list_notifications(db, user, unread_only, page, limit)
    return {"notifications": items, "unread_count": unread}


@router.get("/unread-count")
def unread_count(db: Session = Depends(get_db), user: User = Depends(require_user)):
    return {"count": notifications.unread_count(db, user)}


@router.post("/mark-all-read")
def mark_all_read(db: Session = Depends(get_db), user: User = Depends(require_user)):
    return {"updated": notifications.mark_all_read(db, user)}


@router.patch("/{notification_id}", response_model=NotificationResponse)
def mark_read(notification_id: int, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return notifications.mark_read(db, user, notification_id)


@router.delete("/{notification_id}", status_code=204)
def delete_notification(notification_id: int, db: Session = Depends(get_db), user: User = Depends(require_user)):
    notifications.delete_notification(db, user, notification_id)
