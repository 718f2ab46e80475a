"""
HTTP middleware: request ids and access logging.
"""
import time
import logging
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"

# Served without access logging
QUIET_PREFIXES = ("/public",)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tag every API request with an id and log its outcome and duration.
    
    A caller-supplied X-Request-ID is reused so a client can correlate its own
    logs with ours.
    """

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith(QUIET_PREFIXES):
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        label = f"{request.method} {request.url.path}"
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"[{request_id}] {label} failed after {time.perf_counter() - started:.4f}s: {str(e)}")
            raise

        elapsed = time.perf_counter() - started
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[PROCESS_TIME_HEADER] = f"{elapsed:.4f}"
        logger.info(f"[{request_id}] {label} -> {response.status_code} ({elapsed:.4f}s)")
        return response


def setup_middlewares(app):
    app.add_middleware(RequestLoggingMiddleware)
