import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with a request id and its processing time"""

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        start_time = time.time()

        logger.info(f"[{request_id}] Request: {request.method} {request.url.path}")

        response = await call_next(request)
        process_time = time.time() - start_time

        # Partial cascades surface as 5xx and must stand out in the log
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            f"[{request_id}] Response: {request.method} {request.url.path} "
            f"{response.status_code} - {process_time:.4f}s"
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(process_time)
        return response
