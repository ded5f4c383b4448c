"""FastAPI middleware for observability.

Binds a request ID to every HTTP request and logs its start and completion.
WebSocket traffic bypasses BaseHTTPMiddleware and is logged by the push endpoint.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .request_id import generate_request_id, set_request_id, reset_request_id
from .logging_config import get_logger

logger = get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to generate, propagate and echo X-Request-ID."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        token = set_request_id(request_id)

        start_time = time.perf_counter()
        logger.info(f"{request.method} {request.url.path}")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {str(e)}",
                extra={"duration_ms": round(duration_ms, 2)},
                exc_info=True
            )
            raise
        else:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                f"Request completed: {response.status_code}",
                extra={
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                }
            )
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            reset_request_id(token)
