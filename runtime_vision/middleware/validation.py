"""Rejects request bodies that declare a size above the configured limit."""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
import structlog

log = structlog.get_logger()


class ValidationMiddleware(BaseHTTPMiddleware):
    """Validates the declared payload size of POST/PUT/PATCH requests."""

    def __init__(self, app, max_size: int):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next):
        if request.method in ("POST", "PUT", "PATCH"):
            content_length = request.headers.get("content-length")
            if content_length and content_length.isdigit() and int(content_length) > self.max_size:
                log.warning(
                    "payload.too_large",
                    size=int(content_length),
                    max_size=self.max_size,
                    path=request.url.path,
                )
                return JSONResponse(
                    status_code=413,
                    content={
                        "status": "error",
                        "message": f"Request payload exceeds maximum size of {self.max_size} bytes",
                    },
                )

        return await call_next(request)
