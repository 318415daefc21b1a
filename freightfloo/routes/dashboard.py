"""Dashboard, account settings, admin stats and other small read endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from freightfloo.core.capabilities import RoleCapabilities
from freightfloo.core.deps import get_capabilities, get_db, require_admin, require_user
from freightfloo.core.errors import ValidationError
from freightfloo.models.user import User
from freightfloo.schemas.user import UserResponse, UserSettingsUpdate
from freightfloo.services.equipment import EQUIPMENT_TYPES, suitable_equipment, unknown_equipment_ids

router = APIRouter(prefix="/api", tags=["dashboard"])


@router.get("/dashboard/stats")
def dashboard_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
    caps: RoleCapabilities = Depends(get_capabilities),
):
    return caps.dashboard_stats(db, user)


@router.get("/user/settings", response_model=UserResponse)
def get_settings(user: User = Depends(require_user)):
    return user


@router.patch("/user/settings", response_model=UserResponse)
def update_settings(payload: UserSettingsUpdate, db: Session = Depends(get_db), user: User = Depends(require_user)):
    changes = payload.model_dump(exclude_unset=True)
    if "equipment_types" in changes:
        unknown = unknown_equipment_ids(changes["equipment_types"] or [])
        if unknown:
            raise ValidationError("Unknown equipment type", details={"unknown": unknown})
        changes["equipment_types"] = list(dict.fromkeys(changes["equipment_types"] or []))
    for key, value in changes.items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user


@router.get("/admin/stats")
def admin_stats(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return get_capabilities(admin).dashboard_stats(db, admin)


@router.get("/equipment-types")
def equipment_types(cargo: Optional[str] = None):
    items = suitable_equipment(cargo) if cargo else EQUIPMENT_TYPES
    return [e.to_dict() for e in items]


@router.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return {"status": "degraded", "database": "unreachable"}
    return {"status": "ok", "database": "ok"}
