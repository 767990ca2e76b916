"""
Alumni Events API

Event registration accounting for an alumni association: eligibility and
modification windows, fee breakdowns for registrations, guests, merchandise
and donations, atomic checkout, and Redis caching with mutation-driven
invalidation.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from alumni_api.core.config import get_settings
from alumni_api.core.exceptions import ServiceError
from alumni_api.core.logging import setup_logging, get_logger
from alumni_api.core.metrics import metrics_endpoint
from alumni_api.api.router import api_router
from alumni_api.api.middleware import RequestLoggingMiddleware
from alumni_api.db.session import engine
from alumni_api.infrastructure.redis_client import get_redis, close_redis
from alumni_api.services.cache_service import get_cache_stats
from alumni_api.services.notification_service import get_notification_dispatcher

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings)
    logger.info(
        "startup",
        version=settings.APP_VERSION,
        notifications=settings.NOTIFICATIONS_ENABLED,
        cache=settings.REDIS_ENABLED,
    )

    if settings.REDIS_ENABLED and await get_redis() is None:
        logger.warning("cache_degraded", reason="redis_unreachable")

    yield

    # Let queued confirmation notices finish before the loop goes away
    await get_notification_dispatcher().drain()
    await close_redis()
    await engine.dispose()
    logger.info("shutdown")


def _failure(status_code: int, message: str, errors=None, code=None, headers=None) -> JSONResponse:
    body = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = errors
    if code is not None:
        body["code"] = code
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure, expected or not, in the {success: false, ...} envelope."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return _failure(exc.status_code, exc.message, errors=exc.errors, code=exc.code, headers=exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _failure(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"] if part != "body"),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        logger.info("request_validation_failed", errors=len(errors))
        return _failure(status.HTTP_400_BAD_REQUEST, "Validation failed", errors=errors, code="VALIDATION_ERROR")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error", error=str(exc))
        message = "Internal server error" if settings.is_production else str(exc)
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, message, code="INTERNAL_ERROR")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Alumni association events: registration, guests, merchandise and admin reporting",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)
app.include_router(api_router)


@app.get("/health", tags=["Ops"])
async def health_check():
    """Liveness plus a database round trip; the cache is reported but never fails the check."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        database = "ok"
    except Exception as exc:
        logger.error("health_database_failed", error=str(exc))
        database = "unreachable"

    healthy = database == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "degraded",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "database": database,
            "cache": await get_cache_stats(),
        },
    )


@app.get("/metrics", tags=["Ops"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Ops"])
async def root():
    return {"name": settings.APP_NAME, "version": settings.APP_VERSION, "docs": "/docs"}
