"""Turns unexpected exceptions into 500 responses without stopping the service."""
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import structlog
from .correlation import get_correlation_id

log = structlog.get_logger()


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Provides structured error responses for unhandled exceptions."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            log.error(
                "unhandled.exception",
                error=str(exc),
                error_type=exc.__class__.__name__,
                path=request.url.path,
                correlation_id=get_correlation_id(),
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={"status": "error", "message": str(exc) or exc.__class__.__name__},
            )
