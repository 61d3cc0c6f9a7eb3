from fastapi import APIRouter
from bizpulse.api.v2 import (
    alerts,
    notifications,
    reports,
)

api_router = APIRouter()

# Include all v2 routers
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(alerts.router, prefix="/alerts", tags=["alerts"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
