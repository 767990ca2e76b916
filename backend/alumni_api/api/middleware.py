"""
Per-request correlation and access logging.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from alumni_api.core.logging import get_logger

logger = get_logger(__name__)

# Polled by load balancers and Prometheus; logged at debug only
_QUIET_PATHS = frozenset({"/health", "/metrics"})

REQUEST_ID_HEADER = "X-Request-ID"


def _request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if incoming and len(incoming) <= 64:
        return incoming
    return uuid.uuid4().hex[:8]


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Binds request_id, method, path and client to structlog's context so every
    log line emitted while serving the request can be correlated, then writes
    one access record with status and duration. An X-Request-ID sent by a proxy
    is reused instead of minting a new one.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = _request_id(request)
        path = request.url.path
        started = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
            client=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_failed", duration_ms=_elapsed_ms(started))
            raise

        elapsed = _elapsed_ms(started)
        if response.status_code >= 500:
            log = logger.error
        elif path in _QUIET_PATHS:
            log = logger.debug
        else:
            log = logger.info
        log("request_completed", status_code=response.status_code, duration_ms=elapsed)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{elapsed}ms"
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
