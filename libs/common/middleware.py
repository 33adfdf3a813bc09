"""Request tracing middleware.

Every request gets an ``X-Request-ID`` (propagated from the caller when
present) that is bound to the logging context for the lifetime of the
request and echoed back on the response together with its duration.

Usage:
    from libs.common.middleware import add_observability_middleware

    app = FastAPI()
    add_observability_middleware(app)
"""
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

QUIET_PATHS = frozenset({"/health", "/api/health"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request metadata to the log context and time each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get("X-Request-ID"),
            path=request.url.path,
            method=request.method,
        )
        quiet = request.url.path in QUIET_PATHS
        start_time = time.perf_counter()

        if not quiet:
            logger.info("%s %s started", request.method, request.url.path)

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s failed after %.2fms",
                request.method,
                request.url.path,
                (time.perf_counter() - start_time) * 1000,
            )
            raise
        finally:
            clear_request_context()

        duration_ms = (time.perf_counter() - start_time) * 1000
        if not quiet:
            log = logger.warning if response.status_code >= 400 else logger.info
            log(
                "%s %s -> %d in %.2fms",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-ms"] = f"{duration_ms:.2f}"
        return response


def add_observability_middleware(app: FastAPI) -> None:
    """
    Configure logging and install the request context middleware.

    Call this after creating the app but before adding routes.
    """
    configure_logging()
    app.add_middleware(RequestContextMiddleware)
