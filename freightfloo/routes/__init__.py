from freightfloo.routes.auth import router as auth_router
from freightfloo.routes.shipments import router as shipments_router
from freightfloo.routes.bids import router as bids_router
from freightfloo.routes.payments import router as payments_router
from freightfloo.routes.notifications import router as notifications_router
from freightfloo.routes.reviews import router as reviews_router
from freightfloo.routes.fleet import router as fleet_router
from freightfloo.routes.documents import router as documents_router
from freightfloo.routes.dashboard import router as dashboard_router

__all__ = [
    "auth_router",
    "shipments_router",
    "bids_router",
    "payments_router",
    "notifications_router",
    "reviews_router",
    "fleet_router",
    "documents_router",
    "dashboard_router",
]
