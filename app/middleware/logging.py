import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


logger = logging.getLogger("app.middleware")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and latency for every HTTP request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = (time.perf_counter() - start_time) * 1000
        client = request.client.host if request.client else None
        logger.info(
            "%s %s - %.2fms - %d",
            request.method,
            request.url.path,
            process_time,
            response.status_code,
            extra={"client": client},
        )
        return response
