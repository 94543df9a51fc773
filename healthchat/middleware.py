"""
Middleware for request timing and the logging setup of the service.
"""

import logging
import time
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its status and duration and adds a timing header."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        response_time_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "%s %s -> %d in %.2fms (client=%s)",
            request.method,
            request.url.path,
            response.status_code,
            response_time_ms,
            self._get_client_ip(request),
        )

        response.headers["X-Response-Time"] = f"{response_time_ms:.2f}ms"
        return response

    def _get_client_ip(self, request: Request) -> Optional[str]:
        """Extract client IP from request headers."""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            # X-Forwarded-For can contain multiple IPs, take the first one
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()

        if request.client:
            return request.client.host

        return None


def setup_logging_config(level: str = "INFO"):
    """Setup logging configuration for the application."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
        ]
    )

    # Set specific log levels
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)  # Reduce uvicorn noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("healthchat").setLevel(getattr(logging, level.upper(), logging.INFO))
