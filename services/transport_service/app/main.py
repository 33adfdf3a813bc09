"""FastAPI application for the Transport Service."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.transport_service.routers import carpooling_router


def create_app() -> FastAPI:
    """Create and configure the Transport Service FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title="TeamSheet Transport Service",
        version="0.1.0",
        description="Carpooling offers and passengers for team events.",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "transport"}

    app.include_router(carpooling_router)

    return app


app = create_app()
