"""Request logging middleware"""
from typing import Optional
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import logging
import time

logger = logging.getLogger(__name__)

WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs successful authenticated writes with the acting account or worker"""

    # Skip logging for health check, docs, and static files
    skip_paths = ["/api/health", "/docs", "/openapi.json", "/redoc", "/favicon.ico", "/uploads"]

    async def dispatch(self, request: Request, call_next):
        if any(request.url.path.startswith(path) for path in self.skip_paths):
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)

        # Set by the auth dependencies
        actor: Optional[str] = getattr(request.state, "actor", None)

        if actor and request.method in WRITE_METHODS and response.status_code < 400:
            elapsed_ms = (time.perf_counter() - started) * 1000
            forwarded_for = request.headers.get("X-Forwarded-For")
            client_host = request.client.host if request.client else "unknown"
            ip_address = forwarded_for.split(",")[0] if forwarded_for else client_host
            logger.info(
                f"{actor} {request.method} {request.url.path} -> {response.status_code} "
                f"({elapsed_ms:.0f}ms) from {ip_address}"
            )

        return response
