"""Events service routers package."""

from services.events_service.routers.attendance import router as attendance_router
from services.events_service.routers.events import router as events_router
from services.events_service.routers.stats import router as stats_router

__all__ = ["attendance_router", "events_router", "stats_router"]
