"""FastAPI application for the Events Service."""
from dotenv import load_dotenv
from fastapi import FastAPI

load_dotenv()

from libs.common.error_handler import add_exception_handlers  # noqa: E402
from libs.common.middleware import add_observability_middleware  # noqa: E402
from services.events_service.routers import (  # noqa: E402
    attendance_router,
    events_router,
    stats_router,
)


def create_app() -> FastAPI:
    """Create and configure the Events Service FastAPI app."""
    app = FastAPI(
        title="TeamSheet Events Service",
        version="0.1.0",
        description="Team events, attendance, convocations and statistics.",
    )
    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "events"}

    app.include_router(events_router)
    app.include_router(attendance_router)
    app.include_router(stats_router)

    return app


app = create_app()
