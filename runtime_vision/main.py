"""
Runtime Vision collector - bounded per-session store for captured runtime events.

Features:
- Event ingestion from the capture agent (one event per request)
- Time-window and type-filtered context queries
- Session listing, liveness and readiness probes
- Structured logging with correlation IDs
- Prometheus metrics
"""
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse
from prometheus_client import make_asgi_app
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.router import router
from .config import Settings, get_settings
from .errors import CollectorError
from .health import HealthChecker
from .logging import get_logger, setup_logging
from .metrics import Metrics
from .middleware import (
    CorrelationMiddleware,
    CorsMiddleware,
    ErrorHandlerMiddleware,
    MetricsMiddleware,
    ValidationMiddleware,
)
from .services.event_store import EventStore

SERVICE_NAME = "runtime-vision"
VERSION = "0.1.0"
DEFAULT_SDK_PATH = Path(__file__).parent / "agent" / "agent.py"

logger = get_logger()


def create_app(settings: Settings | None = None, store: EventStore | None = None) -> FastAPI:
    """
    Build the collector application.

    The event store is created once here and shared with every request
    through ``app.state``.
    """
    settings = settings or get_settings()
    metrics = Metrics(service_name=SERVICE_NAME, version=VERSION)
    if store is None:
        store = EventStore(
            metrics=metrics,
            capacity=settings.BUFFER_CAPACITY,
            default_since=settings.DEFAULT_SINCE,
            default_limit=settings.DEFAULT_LIMIT,
        )
    health_checker = HealthChecker(store, service_name=SERVICE_NAME, version=VERSION)
    sdk_path = Path(settings.SDK_PATH) if settings.SDK_PATH else DEFAULT_SDK_PATH

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "service_starting",
            version=VERSION,
            env=settings.ENV,
            host=settings.HOST,
            port=settings.PORT,
            buffer_capacity=settings.BUFFER_CAPACITY,
        )
        yield
        logger.info("service_stopping", total_events=store.total_events())
        metrics.app_up.labels(service=SERVICE_NAME, version=VERSION).set(0)

    app = FastAPI(
        title="Runtime Vision Collector",
        version=VERSION,
        description="Collects runtime events per session and serves recent context",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.metrics = metrics
    app.state.health_checker = health_checker

    # Last added runs first: CORS wraps everything, errors are caught innermost
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(ValidationMiddleware, max_size=settings.MAX_EVENT_SIZE)
    app.add_middleware(MetricsMiddleware, metrics=metrics)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(CorsMiddleware, fallback_origin=settings.CORS_FALLBACK_ORIGIN)

    app.include_router(router)
    app.mount("/metrics", make_asgi_app(registry=metrics.registry))

    @app.exception_handler(CollectorError)
    async def collector_error_handler(request: Request, exc: CollectorError):
        logger.warning("request.rejected", status_code=exc.status_code, message=exc.message)
        return JSONResponse(status_code=exc.status_code, content={"status": "error", "message": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            path = request.url.path + (f"?{request.url.query}" if request.url.query else "")
            return JSONResponse(status_code=404, content={"status": "not-found", "url": path})
        return JSONResponse(status_code=exc.status_code, content={"status": "error", "message": str(exc.detail)})

    @app.get("/health")
    async def health():
        """Liveness probe: uptime, session count and total stored events."""
        logger.debug("health_check_liveness")
        return health_checker.liveness()

    @app.get("/health/ready")
    async def health_ready():
        """
        Readiness probe.

        Returns:
            200: Service is ready to handle traffic
            503: Service is not ready
        """
        metrics.update_system_metrics()
        result = health_checker.readiness()
        status_code = 200 if result["status"] == "ready" else 503
        return JSONResponse(status_code=status_code, content=result)

    @app.get("/sdk")
    async def sdk():
        """Serve the capture agent source."""
        if not sdk_path.is_file():
            logger.error("sdk.missing", path=str(sdk_path))
            return JSONResponse(status_code=500, content={"status": "error", "message": "Failed to load SDK"})
        logger.info("sdk.served", path=str(sdk_path))
        return FileResponse(sdk_path, media_type="text/x-python", headers={"Cache-Control": "no-cache"})

    return app


settings = get_settings()
setup_logging(json_output=settings.LOG_JSON, service_name=SERVICE_NAME, level=settings.LOG_LEVEL)
app = create_app(settings)


def run():
    """Serve the collector on loopback until SIGINT/SIGTERM."""
    import uvicorn

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        # uvicorn drains in-flight requests on shutdown, then gives up after the grace period
        timeout_graceful_shutdown=settings.SHUTDOWN_GRACE_SECONDS,
        log_config=None,
    )


if __name__ == "__main__":
    run()
