"""
Request timing middleware.

Every request is reported to Logfire through ``log_api_request`` and gets an
``X-Process-Time`` header (milliseconds). Requests slower than the threshold
are logged as warnings; the PDF and ZIP exports are the usual suspects.
"""

from time import perf_counter
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from codexalpha.core.logging_config import get_logger
from codexalpha.core.monitoring import log_api_request

logger = get_logger(__name__)

SLOW_REQUEST_MS = 1000.0


class LogfireMiddleware(BaseHTTPMiddleware):
    """Times API requests and reports them to Logfire."""

    def __init__(self, app: ASGIApp, slow_request_ms: float = SLOW_REQUEST_MS) -> None:
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = perf_counter()
        request.state.start_time = started
        method, path = request.method, request.url.path

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed_ms = (perf_counter() - started) * 1000
            logger.error(
                f"API request failed: {method} {path}",
                exc_info=True,
                extra={"method": method, "path": path, "duration_ms": elapsed_ms, "error": str(e)},
            )
            log_api_request(method=method, path=path, status_code=500, duration_ms=elapsed_ms)
            raise

        elapsed_ms = (perf_counter() - started) * 1000
        log_api_request(method=method, path=path, status_code=response.status_code, duration_ms=elapsed_ms)
        response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}"
        if elapsed_ms > self.slow_request_ms:
            logger.warning(
                f"Slow API request: {method} {path} took {elapsed_ms:.2f}ms",
                extra={"method": method, "path": path, "duration_ms": elapsed_ms, "status_code": response.status_code},
            )
        return response
