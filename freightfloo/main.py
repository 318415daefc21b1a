import logging
import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from freightfloo.core.config import settings
from freightfloo.core.errors import FreightFlooError
from freightfloo.routes import (
    auth_router,
    bids_router,
    dashboard_router,
    documents_router,
    fleet_router,
    notifications_router,
    payments_router,
    reviews_router,
    shipments_router,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("freightfloo")

app = FastAPI(title="FreightFloo")


@app.exception_handler(FreightFlooError)
async def domain_error_handler(request: Request, exc: FreightFlooError):
    logger.warning("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc)
    content = {"detail": exc.message, "code": exc.code}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(auth_router)
app.include_router(shipments_router)
app.include_router(bids_router)
app.include_router(payments_router)
app.include_router(notifications_router)
app.include_router(reviews_router)
app.include_router(fleet_router)
app.include_router(documents_router)
app.include_router(dashboard_router)


PORT = int(os.getenv("PORT", "8990"))

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("freightfloo.main:app", host="0.0.0.0", port=PORT, reload=settings.APP_ENV == "development")
