"""Transport service routers package."""

from services.transport_service.routers.carpooling import router as carpooling_router

__all__ = ["carpooling_router"]
