"""Request logging middleware."""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from account_service.managers.logging_manager import get_logger

logger = get_logger(prefix="[REQUEST]")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status code and duration of every request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time
        logger.info(
            "%s %s -> %d (%.3fs) [%s]",
            request.method,
            request.url.path,
            response.status_code,
            duration,
            request_id,
        )
        response.headers["X-Request-ID"] = request_id
        return response
