"""Members service routers package."""

from services.members_service.routers.groups import router as groups_router
from services.members_service.routers.roster import router as roster_router

__all__ = [
    "groups_router",
    "roster_router",
]
