"""FastAPI application for the Members Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.members_service.routers import groups_router, roster_router


def create_app() -> FastAPI:
    """Create and configure the Members Service FastAPI app."""
    app = FastAPI(
        title="TeamSheet Members Service",
        version="0.1.0",
        description="Rosters, players and custom groups.",
    )
    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "members"}

    app.include_router(roster_router)
    app.include_router(groups_router)

    return app


app = create_app()
