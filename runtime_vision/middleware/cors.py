"""Permissive CORS for the browser-facing endpoints."""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class CorsMiddleware(BaseHTTPMiddleware):
    """
    Reflects the caller's Origin on every response, credentials disabled.

    OPTIONS requests are answered here with an empty 200.
    """

    allow_methods = "GET, POST, OPTIONS"
    allow_headers = "Content-Type"

    def __init__(self, app, fallback_origin: str = "http://localhost:3000"):
        super().__init__(app)
        self.fallback_origin = fallback_origin

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)

        response.headers["Access-Control-Allow-Origin"] = request.headers.get("origin") or self.fallback_origin
        response.headers["Access-Control-Allow-Methods"] = self.allow_methods
        response.headers["Access-Control-Allow-Headers"] = self.allow_headers
        response.headers["Access-Control-Allow-Credentials"] = "false"
        response.headers.setdefault("Vary", "Origin")
        return response
