"""Global exception handlers producing ``{"error": ...}`` bodies.

Usage:
    from libs.common.error_handler import add_exception_handlers

    app = FastAPI()
    add_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from libs.common.errors import AppError, StoreFailure
from libs.common.logging import get_logger

logger = get_logger(__name__)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Surface unclassified database failures with the driver's message."""
    message = str(getattr(exc, "orig", None) or exc)
    logger.exception("Unhandled store failure: %s", message)
    return JSONResponse(
        status_code=StoreFailure.status_code,
        content={"error": message, "code": StoreFailure.code},
    )


def add_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
