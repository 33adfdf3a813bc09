"""FastAPI application entrypoint for the TeamSheet gateway service.

Every service shares one database, so the gateway mounts the service
routers in-process under ``/api`` instead of proxying to separate hosts.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.events_service.routers import (
    attendance_router,
    events_router,
    stats_router,
)
from services.members_service.routers import groups_router, roster_router
from services.transport_service.routers import carpooling_router

API_PREFIX = "/api"


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = get_settings()
    app = FastAPI(
        title="TeamSheet Gateway Service",
        version="0.1.0",
        description="Team management API: rosters, events, attendance, carpooling.",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Add global exception handlers for consistent error responses
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    @app.get(f"{API_PREFIX}/health", tags=["system"], include_in_schema=False)
    async def health_check() -> dict[str, str]:
        """Simple readiness endpoint."""
        return {"status": "ok"}

    # Members: roster and groups
    app.include_router(roster_router, prefix=API_PREFIX)
    app.include_router(groups_router, prefix=API_PREFIX)

    # Events: events, convocations, attendance, stats
    app.include_router(events_router, prefix=API_PREFIX)
    app.include_router(attendance_router, prefix=API_PREFIX)
    app.include_router(stats_router, prefix=API_PREFIX)

    # Transport: carpooling
    app.include_router(carpooling_router, prefix=API_PREFIX)

    return app


app = create_app()
