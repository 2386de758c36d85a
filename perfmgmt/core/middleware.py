"""
HTTP middleware stack: correlation id, request logging, timing, secure headers.
"""
import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from perfmgmt.core.config import settings
from perfmgmt.core.logging import request_id_var

logger = logging.getLogger("perfmgmt.http")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(settings.request_id_header) or uuid.uuid4().hex
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[settings.request_id_header] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={"method": request.method, "path": request.url.path, "status": response.status_code},
        )
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    # Requests slower than this are logged at WARNING
    SLOW_REQUEST_SECONDS = 1.0

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        if elapsed > self.SLOW_REQUEST_SECONDS:
            logger.warning(f"Slow request: {request.method} {request.url.path} took {elapsed:.2f}s")
        return response


class SecureHeadersMiddleware(BaseHTTPMiddleware):
    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
    }

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.HEADERS.items():
            response.headers.setdefault(name, value)
        return response
