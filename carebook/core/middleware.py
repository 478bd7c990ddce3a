# carebook/core/middleware.py
import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from carebook.core.logging import generate_request_id, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Per-request logging context:
      - Reuses the caller's X-Request-ID or generates one.
      - Binds request_id/method/path into structlog contextvars so every
        log line emitted while handling the request carries them.
      - Logs one access line with status and duration.
      - Echoes the request id in the response headers.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        started = time.perf_counter()
        try:
            response = await call_next(request)
            logger.info(
                "request_completed",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        except Exception:
            logger.exception("request_failed")
            raise
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
